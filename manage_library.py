#!/usr/bin/env python3
"""
Library Management Utility

This script provides maintenance commands for the reading library:
- Create the collection indexes
- Seed books, genres, chapters and pages from a JSON file
- Recompute book like counters from the like flags
- Show collection statistics
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from reader_api.database import LibraryDatabase
from reader_api.interactions import InteractionService
from utilities.config import config
from utilities.logger import InteractionLogger, setup_logging

USAGE = """Usage: python manage_library.py [indexes|seed|recount|stats] [argument]

Commands:
  indexes          - Create collection indexes
  seed <file>      - Insert books with genres, chapters and pages from JSON
  recount [id]     - Recompute like counters (one book or all books)
  stats            - Show collection statistics

Examples:
  python manage_library.py seed library.json
  python manage_library.py recount 65f1c0ffee0000000000beef
  python manage_library.py stats"""


async def create_indexes(db_manager: LibraryDatabase):
    """Create (or confirm) the collection indexes."""
    await db_manager.create_indexes()
    print("✅ Indexes are in place")


async def seed_library(db_manager: LibraryDatabase, path: str):
    """Insert the library described by a JSON file."""
    seed_file = Path(path)
    if not seed_file.exists():
        print(f"❌ Seed file not found: {seed_file}")
        sys.exit(1)

    data = json.loads(seed_file.read_text(encoding="utf-8"))
    counts = await db_manager.seed_library(data)
    print(f"✅ Inserted {counts['books']} books, {counts['chapters']} chapters, {counts['pages']} pages")


async def recount_likes(db_manager: LibraryDatabase, book_id: Optional[str] = None):
    """Recompute like counters."""
    service = InteractionService(db_manager.database, InteractionLogger("manage_library"))

    if book_id:
        count = await service.recount(book_id)
        if count is None:
            print(f"❌ Book not found: {book_id}")
            sys.exit(1)
        print(f"✅ {book_id}: {count} likes")
        return

    results = await service.recount_all()
    print(f"✅ Recounted likes for {len(results)} books")


async def show_statistics(db_manager: LibraryDatabase):
    """Print document counts per collection."""
    stats = await db_manager.get_stats()
    print("\n" + "=" * 40)
    print("📊 LIBRARY STATISTICS")
    print("=" * 40)
    for name, count in stats.items():
        print(f"{name:>12}: {count}")


async def main():
    """Main function."""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1].lower()
    argument = sys.argv[2] if len(sys.argv) > 2 else None

    if command not in ("indexes", "seed", "recount", "stats"):
        print(f"❌ Unknown command: {command}")
        print("Available commands: indexes, seed, recount, stats")
        sys.exit(1)

    if command == "seed" and not argument:
        print("❌ Error: file required for seed command")
        print("Usage: python manage_library.py seed <file>")
        sys.exit(1)

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    db_manager = LibraryDatabase(config.mongodb_url, config.mongodb_database)
    await db_manager.connect()
    try:
        if command == "indexes":
            await create_indexes(db_manager)
        elif command == "seed":
            await seed_library(db_manager, argument)
        elif command == "recount":
            await recount_likes(db_manager, argument)
        else:
            await show_statistics(db_manager)
    finally:
        await db_manager.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
