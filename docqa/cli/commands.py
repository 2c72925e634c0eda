"""Standalone CLI for docqa.

Usage::

    python -m docqa.cli init

    python -m docqa.cli ingest --user alice --file /path/to/lease.pdf

    python -m docqa.cli ask --user alice --document 1 \\
        --question "What is the notice period?"

    python -m docqa.cli history --user alice --document 1

The CLI shares provider selection and configuration with the API server
(``docqa.main.build_components``), so documents ingested here are
queryable over HTTP and vice versa.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from docqa.utils.errors import DocQAError


def _build_components() -> dict[str, Any]:
    # Deferred so ``--help`` does not pull in chromadb and the SDK clients.
    from docqa.main import build_components

    return build_components()


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_init(components: dict[str, Any]) -> int:
    """Report the database and collection prepared by ``_run``."""
    cfg = components["config"]
    print("Initialized:")
    print(f"  Database:   {cfg['persistence']['database_path']}")
    print(f"  Collection: {cfg['vector_index']['collection']} ({cfg['embedding']['dimension']}-dim)")
    return 0


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest a local PDF for a user."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    print(f"Ingesting {path.name} for user {args.user}")
    result = await components["ingestion_service"].ingest(args.user, path.read_bytes(), path.name)

    print("\nIngestion complete:")
    print(f"  Document ID:    {result.document_id}")
    print(f"  Chunks created: {result.chunks_created}")
    print(f"  Text length:    {result.text_length}")
    print(f"  Time:           {result.ingestion_time:.2f}s")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ask one question about a document and print the answer."""
    answer = await components["qa_service"].answer(args.user, args.document, args.question)
    print(answer)
    return 0


async def _handle_history(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print a user's chat history, oldest first."""
    turns = await components["document_store"].get_chat_history(
        args.user, document_id=args.document
    )
    if not turns:
        print("No chat history.")
        return 0

    for turn in turns:
        label = turn.filename or f"document {turn.document_id}"
        print(f"[{turn.created_at:%Y-%m-%d %H:%M}] {label}")
        print(f"  Q: {turn.question}")
        print(f"  A: {turn.answer}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    from docqa.main import initialize_components

    components = _build_components()
    try:
        await initialize_components(components)
        if args.command == "init":
            return await _handle_init(components)
        if args.command == "ingest":
            return await _handle_ingest(args, components)
        if args.command == "ask":
            return await _handle_ask(args, components)
        return await _handle_history(args, components)
    except DocQAError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        await components["document_store"].close()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the docqa CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docqa.cli",
        description="Ingest PDFs and ask questions answered from their text.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", help="Create the database schema and vector collection")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a PDF for a user")
    ingest_parser.add_argument("--user", required=True, help="Owner user id")
    ingest_parser.add_argument("--file", required=True, help="Path to the PDF file")

    ask_parser = subparsers.add_parser("ask", help="Ask a question about a document")
    ask_parser.add_argument("--user", required=True, help="Owner user id")
    ask_parser.add_argument("--document", required=True, type=int, help="Document id")
    ask_parser.add_argument("--question", required=True, help="Question text")

    history_parser = subparsers.add_parser("history", help="Show a user's chat history")
    history_parser.add_argument("--user", required=True, help="Owner user id")
    history_parser.add_argument(
        "--document", type=int, default=None, help="Only turns for this document id"
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Exit codes: 0 on success, 1 for usage problems, 2 when the pipeline
    rejects the request (quota reached, extraction failed, provider error).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
