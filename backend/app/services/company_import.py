"""Import companies from the external company-listing API.

The API answers ``GET {url}?page=N`` with::

    {"items": [{"alias", "name", "name_en", "branch_name", "modifiedLogo", ...}],
     "meta": {"page", "totalPages", "hasNextPage", ...}}

Pages are walked until ``meta.hasNextPage`` is false and every item is
upserted by company name.
"""

import logging
import time
from typing import Any, Callable, Optional

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.companies import upsert_company_by_name

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class CompanyImportError(RuntimeError):
    pass


def map_company(item: dict[str, Any]) -> dict[str, Any]:
    """API item -> Company column values."""
    return {
        "alias": item.get("alias"),
        "name": (item.get("name") or "").strip(),
        "name_en": item.get("name_en"),
        "industry": item.get("branch_name"),
        "modified_logo": item.get("modifiedLogo"),
    }


def fetch_page(client: httpx.Client, url: str, page: int) -> dict[str, Any]:
    try:
        response = client.get(url, params={"page": page})
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        raise CompanyImportError(f"Failed to fetch page {page}: {e}") from e
    except ValueError as e:
        raise CompanyImportError(f"Invalid JSON on page {page}: {e}") from e


def import_companies(
    db: Session,
    client: httpx.Client,
    url: Optional[str] = None,
    start_page: int = 1,
    delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Walk all pages and upsert each company; returns how many were saved.

    A failing record is logged and skipped; a failing page aborts the import
    with CompanyImportError.
    """
    url = url or settings.import_api_url
    delay = settings.import_page_delay_seconds if delay is None else delay
    page = start_page
    total = 0
    while True:
        logger.info("Fetching page %s...", page)
        data = fetch_page(client, url, page)
        items = data.get("items") or []
        saved = 0
        for item in items:
            values = map_company(item)
            if not values["name"]:
                logger.warning("Skipping company without name on page %s", page)
                continue
            try:
                upsert_company_by_name(db, values)
                saved += 1
            except Exception as e:
                db.rollback()
                logger.error("Error saving company %s: %s", values["name"], e)
        total += saved
        logger.info("Page %s completed. %s companies processed, %s saved so far", page, len(items), total)

        has_next = bool((data.get("meta") or {}).get("hasNextPage"))
        if not has_next:
            break
        page += 1
        if delay:
            sleep(delay)
    logger.info("Import completed! Total companies imported: %s", total)
    return total
