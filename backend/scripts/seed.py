#!/usr/bin/env python3
"""Populate an empty marketplace database with customers, providers, listings and slots.

Running it twice against the same database writes a second full set; nothing
is deduplicated.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

REPO_BACKEND = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_BACKEND))

from servicemarket.services.randomizer import AttributeRandomizer  # noqa: E402
from servicemarket.services.seed_store import SeedStore, default_db_path  # noqa: E402
from servicemarket.services.seeder import run_seed  # noqa: E402

logger = logging.getLogger("servicemarket.seed")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the marketplace database with synthetic data.")
    parser.add_argument("--db-path", default="", help="SQLite file to seed. Defaults to SEED_DB_PATH.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible run.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db_path = args.db_path or default_db_path()
    try:
        store = SeedStore(db_path=db_path)
        summary = run_seed(store, randomizer=AttributeRandomizer(seed=args.seed))
    except Exception:
        logger.exception("Seeding failed for %s", db_path)
        return 1

    logger.info(
        "Seeded %s: customers=%d providers=%d profiles=%d listings=%d slots=%d",
        db_path,
        summary.customers,
        summary.providers,
        summary.profiles,
        summary.listings,
        summary.slots,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
