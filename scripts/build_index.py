from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from mathref.index import MarkdownOutlineParser, MathIndex, PageAssembler, PageAssemblerConfig
from mathref.models.block import is_theorem
from mathref.storage import SQLiteIndexConfig, SQLiteIndexStore


def parse_args() -> argparse.Namespace:
    if Path(".env").exists():
        load_dotenv(".env", override=False)
    parser = argparse.ArgumentParser(description="Index equations and theorem callouts of a markdown vault.")
    parser.add_argument("corpus", type=Path, help="Markdown file or vault directory")
    parser.add_argument(
        "--pattern",
        default="**/*.md",
        help="Glob pattern for markdown discovery (default: **/*.md). Ignored when corpus is a file.",
    )
    parser.add_argument(
        "--sqlite-db",
        type=Path,
        default=None,
        help="Optional SQLite database to persist page records into",
    )
    parser.add_argument(
        "--json-out",
        type=Path,
        default=None,
        help="Optional directory receiving one JSON record per document",
    )
    parser.add_argument(
        "--exclude-example",
        action="store_true",
        help="Do not treat example callouts as theorem callouts",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def discover_documents(root: Path, pattern: str) -> List[Path]:
    return sorted([path for path in root.glob(pattern) if path.is_file()])


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    if not args.corpus.exists():
        raise FileNotFoundError(f"Corpus path not found: {args.corpus}")

    if args.corpus.is_file():
        root = args.corpus.parent
        documents = [args.corpus]
    else:
        root = args.corpus
        documents = discover_documents(args.corpus, args.pattern)
    if not documents:
        raise RuntimeError("No markdown documents found")

    parser = MarkdownOutlineParser()
    assembler = PageAssembler(PageAssemblerConfig(exclude_example=args.exclude_example))
    index = MathIndex()

    store = None
    if args.sqlite_db:
        store = SQLiteIndexStore(SQLiteIndexConfig(db_path=args.sqlite_db))
        store.initialize()
    if args.json_out:
        args.json_out.mkdir(parents=True, exist_ok=True)

    equations = 0
    theorems = 0
    try:
        for document in documents:
            path = document.relative_to(root).as_posix()
            text = document.read_text(encoding="utf-8")
            page = assembler.build(path, text, parser.parse(text))
            index.publish(page)
            equations += len(page.equation_blocks())
            theorems += sum(1 for block in page.blocks if is_theorem(block))
            if store is not None:
                store.upsert_page(page)
            if args.json_out:
                target = args.json_out / f"{path}.json"
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(json.dumps(page.to_json(), indent=2), encoding="utf-8")
    finally:
        if store is not None:
            store.close()

    print(
        "Indexing complete",
        {
            "documents": len(index),
            "equations": equations,
            "theorems": theorems,
            "sqlite_db": str(args.sqlite_db) if args.sqlite_db else None,
            "json_out": str(args.json_out) if args.json_out else None,
        },
    )


if __name__ == "__main__":
    main()
