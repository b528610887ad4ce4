#!/usr/bin/env python3
"""
Seed city reference data.

Loads a JSON list of cities and upserts them by slug.

Usage:
    python scripts/seed_cities.py data/cities.sample.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from seo_brain.database import count_cities, init_db, upsert_city

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "state", "slug")


def seed_cities(path: str) -> int:
    """Upsert every city in the file. Returns the number written."""
    cities = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(cities, dict):
        cities = cities.get("cities", [])

    written = 0
    for entry in cities:
        missing = [f for f in REQUIRED_FIELDS if not entry.get(f)]
        if missing:
            logger.warning(f"Skipping city without {', '.join(missing)}: {entry}")
            continue
        upsert_city(entry)
        written += 1

    logger.info(f"Seeded {written} cities ({count_cities()} total)")
    return written


def main():
    parser = argparse.ArgumentParser(description="Seed city reference data")
    parser.add_argument("cities_file", help="JSON file with a list of cities")
    args = parser.parse_args()

    load_dotenv()
    init_db()
    seed_cities(args.cities_file)


if __name__ == "__main__":
    main()
