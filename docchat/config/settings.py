"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

  1. Environment variables, e.g. ``VOYAGE_API_KEY=pa-...``
  2. A ``.env`` file in the working directory (local development)
  3. The defaults declared below

Field ``voyage_api_key`` maps to env var ``VOYAGE_API_KEY`` and so on.
An empty API key means "not configured": the selected backend then raises
its ``*BackendUnavailableError`` on first use instead of at startup, so the
service can boot (and serve health checks) before keys are provisioned.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docchat application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Backend selection (resolved once at process start) ===
    embedding_provider: str = "voyage"  # voyage | openai | gemini
    llm_provider: str = "gemini"  # gemini | openai | anthropic
    chunk_store_backend: str = "chromadb"  # chromadb | sqlite

    # === Credentials ===
    voyage_api_key: str = ""
    gemini_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""
    anthropic_api_key: str = ""

    # === Models ===
    voyage_embedding_model: str = "voyage-4-large"
    gemini_embedding_model: str = "gemini-embedding-001"
    openai_embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1024
    gemini_text_model: str = "gemini-3-flash-preview"
    openai_text_model: str = "gpt-4o-mini"
    anthropic_text_model: str = "claude-sonnet-4-20250514"
    generation_temperature: float = 0.3
    generation_max_tokens: int = 1024

    # === Storage ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "rag_chunks"
    sqlite_db_path: str = "data/docchat.db"

    # === Deadlines (seconds) for every external-call boundary ===
    extraction_timeout: float = 60.0
    embedding_timeout: float = 30.0
    search_timeout: float = 10.0
    generation_timeout: float = 60.0

    # === Upload limits ===
    max_upload_mb: int = 20

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "*"  # comma-separated

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_configured_backends(self) -> dict[str, bool]:
        """Return which credentialed backends have a non-empty key."""
        return {
            "voyage": bool(self.voyage_api_key),
            "gemini": bool(self.gemini_api_key),
            "openai": bool(self.openai_api_key),
            "anthropic": bool(self.anthropic_api_key),
        }
