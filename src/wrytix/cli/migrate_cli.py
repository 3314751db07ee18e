"""
Command-line tool that imports flat-file JSON data into MongoDB.

Reads one JSON file per collection from a data directory (either the current
`<collection>.json` names or the legacy camelCase names such as
`pendingUsers.json`), drops duplicates on each collection's natural key,
assigns ids to posts that lack one and inserts the rest into the configured
MongoDB database. Documents that collide with data already in MongoDB are
skipped.

    wrytix-migrate --data-dir ./data --mongodb-url mongodb://localhost:27017 --dry-run
"""

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from wrytix.config import settings
from wrytix.database import db_manager
from wrytix.database.store import (
    ADS,
    COMMENTS,
    LOGS,
    PENDING_DELETIONS,
    PENDING_USERS,
    POST_SUBMISSIONS,
    POSTS,
    USERS,
    DocumentStore,
)
from wrytix.errors import Conflict
from wrytix.managers.logging_manager import get_logger

logger = get_logger(prefix="[MigrateCLI]")

# Collection -> file names tried in order
SOURCE_FILES: Dict[str, Sequence[str]] = {
    USERS: ("users.json",),
    PENDING_USERS: ("pending_users.json", "pendingUsers.json"),
    POSTS: ("posts.json",),
    ADS: ("ads.json",),
    COMMENTS: ("comments.json",),
    POST_SUBMISSIONS: ("post_submissions.json", "postSubmissions.json"),
    LOGS: ("logs.json",),
    PENDING_DELETIONS: ("pending_deletions.json", "pendingDeletions.json"),
}

DEDUPE_KEYS: Dict[str, str] = {
    USERS: "username",
    PENDING_USERS: "username",
    POSTS: "slug",
    POST_SUBMISSIONS: "slug",
}


def load_source(data_dir: Path, collection: str) -> Optional[Any]:
    """Return the parsed JSON for a collection, or `None` when no file exists."""
    for name in SOURCE_FILES[collection]:
        path = data_dir / name
        if path.exists():
            text = path.read_text(encoding="utf-8")
            return json.loads(text) if text.strip() else []
    return None


def remove_duplicates(documents: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """Keep the first document per `key` value; documents without the key are kept."""
    seen = set()
    kept = []
    for document in documents:
        value = document.get(key)
        if value:
            if value in seen:
                continue
            seen.add(value)
        kept.append(document)
    return kept


def prepare(collection: str, data: Any) -> List[Dict[str, Any]]:
    """Normalize one collection's source data into insertable documents."""
    if collection == COMMENTS and isinstance(data, dict):
        # Legacy layout: {"<slug>": [comment, ...]}
        data = [{"slug": slug, "comments": comments} for slug, comments in data.items()]
    if not isinstance(data, list):
        raise ValueError(f"{collection}: expected a JSON array")

    documents = [dict(document) for document in data if isinstance(document, dict)]
    if collection in DEDUPE_KEYS:
        documents = remove_duplicates(documents, DEDUPE_KEYS[collection])
    if collection == POSTS:
        for document in documents:
            if not document.get("id"):
                document["id"] = uuid.uuid4().hex
    for document in documents:
        if "id" in document and document["id"] is not None:
            document["id"] = str(document["id"])
        document.pop("_id", None)
    return documents


async def migrate(
    data_dir: Path,
    store: Optional[DocumentStore],
    collections: Optional[Sequence[str]] = None,
    dry_run: bool = False,
) -> Dict[str, Dict[str, int]]:
    """
    Import every requested collection from `data_dir` into `store`.

    Returns:
        Per-collection counts: `found`, `prepared`, `inserted`, `skipped`.
    """
    report: Dict[str, Dict[str, int]] = {}
    for collection in collections or SOURCE_FILES:
        try:
            data = load_source(data_dir, collection)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Skipped %s: could not read source: %s", collection, e)
            continue
        if not data:
            logger.info("Skipped %s: no data", collection)
            continue

        documents = prepare(collection, data)
        counts = {"found": len(data), "prepared": len(documents), "inserted": 0, "skipped": 0}
        if not dry_run:
            for document in documents:
                try:
                    await store.insert_one(collection, document)
                    counts["inserted"] += 1
                except Conflict:
                    counts["skipped"] += 1
        report[collection] = counts
        logger.info(
            "%s %s: %d found, %d after dedupe, %d inserted, %d skipped",
            "Checked" if dry_run else "Migrated",
            collection,
            counts["found"],
            counts["prepared"],
            counts["inserted"],
            counts["skipped"],
        )
    return report


async def run(args: argparse.Namespace) -> Dict[str, Dict[str, int]]:
    data_dir = Path(args.data_dir)
    if args.dry_run:
        return await migrate(data_dir, None, args.collections, dry_run=True)

    settings.STORAGE_BACKEND = "mongodb"
    if args.mongodb_url:
        settings.MONGODB_URL = args.mongodb_url
    if args.database:
        settings.MONGODB_DATABASE = args.database
    if not settings.MONGODB_URL:
        raise SystemExit("A MongoDB URL is required (--mongodb-url or MONGODB_URL)")

    await db_manager.connect()
    try:
        return await migrate(data_dir, db_manager.store, args.collections)
    finally:
        await db_manager.disconnect()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import Wrytix flat-file JSON data into MongoDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--data-dir",
        default=settings.DATA_DIR,
        help=f"Directory holding the JSON files (default: {settings.DATA_DIR})",
    )
    parser.add_argument("--mongodb-url", help="MongoDB connection URL (default: MONGODB_URL setting)")
    parser.add_argument("--database", help="Target database name (default: MONGODB_DATABASE setting)")
    parser.add_argument(
        "--collections",
        nargs="+",
        choices=list(SOURCE_FILES),
        help="Collections to migrate (default: all)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Read and deduplicate the source files and report counts without writing",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    if not Path(args.data_dir).is_dir():
        print(f"Data directory not found: {args.data_dir}", file=sys.stderr)
        sys.exit(1)

    report = asyncio.run(run(args))
    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
