#!/usr/bin/env python3
"""
Catalog Seeding Script
======================
Creates the tables and inserts the sample categories, products and reviews
when the catalog is empty. Optionally embeds every product that has no
cached embedding yet, so recommendations and search work on first request.

Usage:
  python scripts/seed_catalog.py
  python scripts/seed_catalog.py --backfill-embeddings   # needs OPENAI_API_KEY
"""

import argparse
import sys
from pathlib import Path

# Allow running from repo root or scripts/ dir
_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_ROOT))

from trellis.ai.embeddings import backfill_embeddings  # noqa: E402
from trellis.ai.provider import OpenAIProvider  # noqa: E402
from trellis.database import Base, SessionLocal, engine  # noqa: E402
from trellis.errors import ProviderError  # noqa: E402
from trellis.logger import get_logger  # noqa: E402
from trellis.seed import seed_catalog  # noqa: E402

logger = get_logger("scripts.seed_catalog")


def main():
    parser = argparse.ArgumentParser(description="Seed the Trellis catalog with sample data")
    parser.add_argument("--backfill-embeddings", action="store_true",
                        help="Embed products lacking a cached embedding (calls the AI provider)")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        counts = seed_catalog(db)
        print(f"Seeded {counts['categories']} categories, {counts['products']} products, "
              f"{counts['ratings']} ratings")

        if args.backfill_embeddings:
            try:
                embedded = backfill_embeddings(db, OpenAIProvider())
            except ProviderError as e:
                logger.error("seed: method=backfill_embeddings result=error error=%s", e)
                sys.exit(f"ERROR: embedding backfill failed: {e}")
            print(f"Embedded {embedded} products")
    finally:
        db.close()


if __name__ == "__main__":
    main()
