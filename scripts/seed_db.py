"""
Seed script for the UERRA in-memory backend or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured backend: python scripts/seed_db.py --apply
  - Use another seed file: python scripts/seed_db.py --file path/to/seed.json --apply

Behavior:
  - Loads `db_seed.json` from repo root.
  - Gets the backend via `uerra.config.firebase.get_backend()`, which returns the
    in-memory backend or Firestore depending on USE_MOCK_DB.
  - Writes categories, agencies and users (in that order, so agency users
    can reference seeded agencies). Existing documents are skipped.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` and `USE_MOCK_DB=false` are set in `.env`.
Seeded users only get a profile row; their sign-in accounts are created in Firebase Authentication.
"""

import argparse
import json
import logging
import os
from typing import Dict

from uerra.config.backend import AGENCIES, BackendClient, BackendError, CATEGORIES, USERS
from uerra.config.firebase import get_backend
from uerra.core.logging_config import setup_logging

logger = logging.getLogger("uerra.seed")

SEED_ORDER = [CATEGORIES, AGENCIES, USERS]


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_to_backend(backend: BackendClient, seed: dict, apply: bool = False) -> Dict[str, int]:
    """Insert every seeded document that does not exist yet; returns counts written per collection."""
    unknown = sorted(set(seed) - set(SEED_ORDER))
    if unknown:
        logger.warning(f"Ignoring unsupported collections in seed file: {unknown}")

    written = {}
    for collection in SEED_ORDER:
        written[collection] = 0
        for doc_id, data in (seed.get(collection) or {}).items():
            logger.info(f"Preparing: {collection}/{doc_id}")
            if not apply:
                continue
            try:
                if backend.get(collection, doc_id) is not None:
                    logger.info(f"Exists, skipped: {collection}/{doc_id}")
                    continue
                backend.insert(collection, data, doc_id=doc_id)
                written[collection] += 1
                logger.info(f"Wrote: {collection}/{doc_id}")
            except BackendError as e:
                logger.error(f"Failed to write {collection}/{doc_id}: {e}")
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the backend instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed JSON file")
    args = parser.parse_args()

    setup_logging("INFO")

    if not os.path.exists(args.file):
        logger.error(f"Seed file not found: {args.file}")
        return

    seed = load_seed(args.file)
    written = write_to_backend(get_backend(), seed, apply=args.apply)

    if args.apply:
        logger.info(f"Seeding completed: {written}")
    else:
        logger.info("Dry run complete. Re-run with --apply to write to the backend.")


if __name__ == "__main__":
    main()
