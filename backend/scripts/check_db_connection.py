#!/usr/bin/env python3
"""Check Supabase credentials before the schema migration has run.

Exit code 0 when the endpoint answers (a missing ``User`` table counts as
success), 1 on missing configuration or any query failure.
"""
import logging
import sys
from pathlib import Path

REPO_BACKEND = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_BACKEND))

from servicemarket.services.db_probe import run_probe  # noqa: E402


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    return run_probe()


if __name__ == "__main__":
    raise SystemExit(main())
