"""Configuration: environment-backed ``Settings`` and the YAML tunables loader."""

from docchat.config.loader import load_config
from docchat.config.settings import Settings
