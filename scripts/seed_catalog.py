"""
Seed the default categories, project types and an empty founder profile.

Safe to run repeatedly: values that already exist are left alone.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ecovibe.db import CATEGORIES_TABLE, PROJECT_TYPES_TABLE, DbClient, PostgresDbClient
from ecovibe.dependencies import get_db_client


logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    ("kitchen", "Kitchen"),
    ("bathroom", "Bathroom"),
    ("living", "Living Room"),
    ("office", "Home Office"),
    ("bedroom", "Bedroom"),
    ("outdoor", "Outdoor"),
)

DEFAULT_PROJECT_TYPES = (
    ("residential", "Residential"),
    ("commercial", "Commercial"),
)


def seed_options(db: DbClient, table: str, defaults: tuple[tuple[str, str], ...]) -> int:
    existing = {option.value for option in db.list_options(table)}
    inserted = 0
    for value, label in defaults:
        if value in existing:
            continue
        db.insert_option(table, value, label)
        logger.info("Inserted %s option %s", table, value)
        inserted += 1
    return inserted


def seed_founder(db: DbClient, name: str) -> bool:
    if db.get_founder() is not None:
        return False
    db.save_founder({"name": name})
    logger.info("Inserted founder profile for %s", name)
    return True


def seed(db: DbClient, founder_name: str) -> dict:
    return {
        "categories": seed_options(db, CATEGORIES_TABLE, DEFAULT_CATEGORIES),
        "project_types": seed_options(db, PROJECT_TYPES_TABLE, DEFAULT_PROJECT_TYPES),
        "founder": seed_founder(db, founder_name),
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL; defaults to the configured DATABASE_URL.",
    )
    parser.add_argument("--founder-name", default="Shabnam Rumpf")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    db = PostgresDbClient(args.database_url) if args.database_url else get_db_client()
    result = seed(db, args.founder_name)
    logger.info("Seed complete: %s", result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
