#!/usr/bin/env python3
"""
Load items into the catalog.

    scanstock-seed                      # two sample items
    scanstock-seed --file items.xlsx    # every row of a CSV / Excel sheet

Existing scan codes are updated in place, and each item gets its on-hand
row (at zero) if it has none.
"""
import argparse
import os
import sys

import pandas as pd
from loguru import logger

from scanstock import database
from scanstock.catalog import service as catalog_service
from scanstock.config import settings

SAMPLE_ITEMS = [
    {"ScannedCode": "0001112223334", "Model": "Basic Tee", "Color": "Black", "Size": "M"},
    {"ScannedCode": "0001112223335", "Model": "Basic Tee", "Color": "White", "Size": "L"},
]


def read_items(path: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    if path.lower().endswith((".xlsx", ".xls")):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the inventory catalog.")
    parser.add_argument("--file", help="CSV or Excel file with one item per row")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="Database connection URL")
    args = parser.parse_args(argv)

    df = read_items(args.file) if args.file else pd.DataFrame(SAMPLE_ITEMS)

    database.init_engine(args.database_url)
    try:
        database.create_tables()
        db = database.SessionLocal()
        try:
            summary = catalog_service.import_items(db, df)
        finally:
            db.close()
    finally:
        database.dispose_engine()

    logger.info(f"Seeded {summary['imported']} item(s), skipped {summary['skipped']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
