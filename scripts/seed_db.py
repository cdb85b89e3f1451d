# scripts/seed_db.py
# Create the tables and seed the sample catalog without starting the app.
# The app does the same thing on startup; this is for fresh environments
# and for wiping a demo database (--reset).
#
# Run with: python scripts/seed_db.py [--reset]

import argparse
import logging

from storefront import config
from storefront.db import ConnectionFactory, drop_db, init_db
from storefront.observability import configure_logging


def seed(reset: bool = False):
    factory = ConnectionFactory(config.DATABASE_DSN)

    if reset:
        drop_db(factory)

    seeded = init_db(factory)

    print("✅ Database ready:")
    print(f"   - {seeded} products seeded" if seeded else "   - catalog already present, nothing seeded")
    print(f"   - Database: {factory.dialect.name}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create and seed the storefront database")
    parser.add_argument("--reset", action="store_true", help="drop both tables first")
    args = parser.parse_args()

    configure_logging(config.LOG_LEVEL)
    logging.getLogger(__name__).info(f"Seeding {config.DATABASE_DSN.split('@')[-1]}")
    seed(reset=args.reset)
