"""Notes AI CLI — init, ingest, delete, query, and dev server.

Usage:
    python cli.py init                    Create notes/ dir and .env from template
    python cli.py ingest [DIR]            Index every .txt/.md file in DIR
    python cli.py delete FILENAME         Delete a file's embeddings
    python cli.py query "TEXT" [--model]  Answer a question from the notes
    python cli.py dev                     Start uvicorn with hot-reload
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger("notes-cli")


def _services():
    from services import build_services
    from settings import settings

    return build_services(settings)


def cmd_init(args):
    """Scaffold project: create notes/ dir, copy .env.example → .env."""
    root = Path(__file__).resolve().parent.parent

    notes = root / "notes"
    if not notes.exists():
        notes.mkdir()
        logger.info("[+] Created notes/ directory")
    else:
        logger.info("[=] notes/ already exists")

    env_example = root / ".env.example"
    env_file = root / ".env"
    if not env_file.exists() and env_example.exists():
        shutil.copy(env_example, env_file)
        logger.info("[+] Created .env from .env.example — add your API keys!")
    elif env_file.exists():
        logger.info("[=] .env already exists")
    else:
        logger.warning("[!] No .env.example found")

    logger.info("")
    logger.info("Next steps:")
    logger.info("  1. Edit .env with NOTES_AI_API_KEY and OPENAI_API_KEY")
    logger.info("  2. Add .txt/.md files to notes/ and run: python cli.py ingest")
    logger.info("  3. Run: python cli.py dev")


def cmd_ingest(args, services=None):
    """Index every note file through the same pipeline as POST /vectors."""
    from errors import NotesError
    from indexer import index_document
    from settings import settings

    notes_dir = Path(args.dir or settings.NOTES_DIR)
    if not notes_dir.exists():
        logger.error(f"Directory not found: {notes_dir}")
        sys.exit(1)

    files = sorted(
        p for p in notes_dir.iterdir()
        if p.suffix in (".txt", ".md") and p.is_file()
    )
    if not files:
        logger.error(f"No .txt or .md files in {notes_dir}")
        sys.exit(1)

    services = services or _services()
    logger.info(f"Indexing {len(files)} file(s) from {notes_dir}/")

    total_chunks = 0
    failed = 0
    for path in files:
        text = path.read_text(encoding="utf-8")
        try:
            embeddings = index_document(text, path.name, services)
        except NotesError as e:
            logger.error(f"  {path.name}: {e.message}")
            failed += 1
            continue
        total_chunks += len(embeddings)
        logger.info(f"  {path.name}: {len(embeddings)} chunks")

    logger.info(f"Done — {total_chunks} total chunks indexed")
    if failed:
        logger.error(f"{failed} file(s) failed")
        sys.exit(1)


def cmd_delete(args, services=None):
    """Remove every embedding registered for one filename."""
    from errors import NotesError
    from lifecycle import remove_file

    services = services or _services()
    try:
        deleted = remove_file(args.filename, services)
    except NotesError as e:
        logger.error(e.message)
        sys.exit(1)
    logger.info(f"Deleted {len(deleted)} embedding(s) for {args.filename}")
    print(json.dumps({"deleted": deleted}, indent=2))


def cmd_query(args, services=None):
    """Ask a question against the indexed notes."""
    from errors import NotesError
    from retrieval import answer_query

    services = services or _services()
    try:
        answer = answer_query(args.query_text, services, model=getattr(args, "model", None))
    except NotesError as e:
        logger.error(e.message)
        sys.exit(1)

    print(f"\n─── Sources {'─' * 53}\n")
    for i, m in enumerate(answer.matches, 1):
        print(f"  {i}. {m.id}  (similarity {m.score:.4f})")
    print(f"\n─── Answer {'─' * 54}\n")
    print(answer.response.get("content", ""))
    print()


def cmd_dev(args):
    """Start uvicorn development server with hot-reload."""
    import subprocess

    from settings import settings

    host = args.host or settings.HOST
    port = args.port or settings.PORT

    backend_dir = Path(__file__).resolve().parent
    logger.info(f"Starting dev server at http://{host}:{port}")
    subprocess.run(
        [
            sys.executable, "-m", "uvicorn",
            "main:app",
            "--host", host,
            "--port", str(port),
            "--reload",
        ],
        cwd=str(backend_dir),
        check=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notes-ai",
        description="Notes vector service — CLI tools",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")

    sub.add_parser("init", help="Initialize project structure")

    p_ingest = sub.add_parser("ingest", help="Index note files")
    p_ingest.add_argument("dir", nargs="?", help="Notes directory (default: notes/)")

    p_delete = sub.add_parser("delete", help="Delete a file's embeddings")
    p_delete.add_argument("filename", help="Filename used when the file was indexed")

    p_query = sub.add_parser("query", help="Answer a question from the notes")
    p_query.add_argument("query_text", help="Natural-language question")
    p_query.add_argument("--model", help="Completion model (default: DEFAULT_COMPLETION_MODEL)")

    p_dev = sub.add_parser("dev", help="Start development server")
    p_dev.add_argument("--host", help="Bind host")
    p_dev.add_argument("--port", type=int, help="Bind port")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        cmd_init(args)
    elif args.command == "ingest":
        cmd_ingest(args)
    elif args.command == "delete":
        cmd_delete(args)
    elif args.command == "query":
        cmd_query(args)
    elif args.command == "dev":
        cmd_dev(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
