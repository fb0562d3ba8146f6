"""Import companies from the external company-listing API into the database.

Run from the backend directory inside an active virtual environment:
    python import_companies.py [--url URL] [--start-page N] [--delay SECONDS]

Existing companies are matched by name and updated; new ones are created."""
import argparse
import logging
import sys

import httpx

from app.core.config import settings
from app.core.logging import setup_logging
from app.db.init_db import create_tables
from app.db.session import SessionLocal, engine
from app.services.company_import import REQUEST_TIMEOUT, CompanyImportError, import_companies

logger = logging.getLogger("import_companies")

def main(argv=None):
    parser = argparse.ArgumentParser(description="Import companies from the external listing API")
    parser.add_argument("--url", default=settings.import_api_url, help="Listing endpoint (default: %(default)s)")
    parser.add_argument("--start-page", type=int, default=1)
    parser.add_argument("--delay", type=float, default=settings.import_page_delay_seconds, help="Pause between pages in seconds")
    args = parser.parse_args(argv)

    setup_logging()
    if not settings.is_production:
        create_tables()
    db = SessionLocal()
    try:
        with httpx.Client(timeout=REQUEST_TIMEOUT) as client:
            total = import_companies(db, client, url=args.url, start_page=args.start_page, delay=args.delay)
    except CompanyImportError as e:
        logger.error("Error importing companies: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()
        logger.info("Database connection closed")
    print(f"Imported {total} companies")
    return 0

if __name__ == "__main__":
    sys.exit(main())
