#!/usr/bin/env python3
"""
Catalog Seed Tool - Load a JSON catalog export into the TripScout database.

Usage:
    python tools/seed_catalog.py --source data/catalog.json
    python tools/seed_catalog.py --source export.json --db /tmp/tripscout.db
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from tripscout.adapters.sqlite import CatalogRepository, seed_catalog_file

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

# Paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


async def seed(source: Path, db_path: Path) -> int:
    """
    Seed the catalog database from a JSON export.

    Args:
        source: Path to catalog JSON
        db_path: Target SQLite database

    Returns:
        Total rows written
    """
    repo = CatalogRepository(db_path)
    try:
        await repo.initialize()
        stats = await seed_catalog_file(repo, source)
        count = await repo.get_itinerary_count()
    finally:
        await repo.close()

    print("\n" + "=" * 50)
    print("SEED SUMMARY")
    print("=" * 50)
    for section, rows in stats.items():
        print(f"{section.capitalize():<16} {rows:,}")
    print(f"{'Stored trips':<16} {count:,}")
    print("=" * 50)

    return sum(stats.values())


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the TripScout catalog")
    parser.add_argument(
        "--source",
        type=Path,
        required=True,
        help="Catalog JSON export",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DATA_DIR / "tripscout.db",
        help="SQLite database path",
    )

    args = parser.parse_args()

    if not args.source.exists():
        logger.error("Catalog source not found: %s", args.source)
        return 1

    logger.info("Seeding %s from %s", args.db, args.source)
    total = asyncio.run(seed(args.source, args.db))

    return 0 if total > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
