"""Standalone CLI for document administration.

Runs the same ingestion pipeline and document repository as the HTTP API,
against the storage configured in ``.env``, so documents can be indexed
from disk without going through an upload.

Usage::

    python -m docchat.cli ingest --file ./catalog.pdf
    python -m docchat.cli ingest --file ./notes.bin \\
        --media-type application/vnd.openxmlformats-officedocument.wordprocessingml.document
    python -m docchat.cli documents
    python -m docchat.cli delete --id 3f2a...
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from docchat.config.loader import load_config
from docchat.config.settings import Settings
from docchat.main import _build_all, initialize_components
from docchat.utils.errors import DocChatError, DocumentNotFoundError


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    path = Path(args.file)
    print(f"Ingesting: {path}")
    try:
        result = await components["ingestion_service"].ingest_file(path, args.media_type)
    except DocChatError as exc:
        print(f"Error: ingestion failed: {exc}", file=sys.stderr)
        return 1

    print("\nIngestion complete:")
    print(f"  Document ID:    {result.document.document_id}")
    print(f"  Status:         {result.document.status.value}")
    print(f"  Chunks created: {result.chunks_written}")
    print(f"  Time:           {result.ingestion_time:.2f}s")
    return 0


async def _handle_documents(components: dict[str, Any]) -> int:
    documents = await components["ingestion_service"].list_documents()
    if not documents:
        print("No documents.")
        return 0

    print(f"{'ID':<34} {'STATUS':<11} {'CHUNKS':>6}  FILENAME")
    for doc in documents:
        print(f"{doc.document_id:<34} {doc.status.value:<11} {doc.chunk_count:>6}  {doc.filename}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    try:
        removed = await components["ingestion_service"].delete_document(args.id)
    except DocumentNotFoundError:
        print(f"Error: document {args.id} not found", file=sys.stderr)
        return 1
    print(f"Deleted document {args.id} ({removed} chunks).")
    return 0


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = _build_all(app_settings, load_config(settings=app_settings))
    try:
        await initialize_components(components)
        if args.command == "ingest":
            return await _handle_ingest(args, components)
        if args.command == "documents":
            return await _handle_documents(components)
        if args.command == "delete":
            return await _handle_delete(args, components)
        return 1
    finally:
        await components["http_client"].aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m docchat.cli",
        description="Manage the docchat document corpus.",
    )
    subparsers = parser.add_subparsers(dest="command")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a PDF or DOCX file from disk")
    ingest_parser.add_argument("--file", required=True, help="Path to the file")
    ingest_parser.add_argument(
        "--media-type",
        default=None,
        help="Media type override (default: inferred from the file extension)",
    )

    subparsers.add_parser("documents", help="List documents, newest first")

    delete_parser = subparsers.add_parser("delete", help="Delete a document and its chunks")
    delete_parser.add_argument("--id", required=True, help="Document ID")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, dispatch, exit with the handler's code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    exit_code = asyncio.run(_run(args, app_settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
