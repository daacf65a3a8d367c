"""Allow ``python -m docchat.cli`` execution."""

from docchat.cli.ingest import main

main()
