"""Denormalized ``Company.average_rating`` maintenance.

The value is a cache of ``AVG(reviews.rating)``. It is recomputed right after
each review write, in its own commit, so two concurrent writers may race and
the last one wins; the next review write repairs it.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.company import Company
from app.models.review import Review

logger = logging.getLogger(__name__)


def compute_average_rating(db: Session, company_id: int) -> Optional[float]:
    avg = db.query(func.avg(Review.rating)).filter(Review.company_id == company_id).scalar()
    return float(avg) if avg is not None else None


def refresh_average_rating(db: Session, company_id: int) -> Optional[float]:
    """Store the current mean rating on the company; None when it has no reviews.

    Failures are logged and swallowed: the review write that triggered the
    refresh has already been committed and must not be reported as failed.
    """
    try:
        average = compute_average_rating(db, company_id)
        db.query(Company).filter(Company.id == company_id).update(
            {Company.average_rating: average}, synchronize_session=False
        )
        db.commit()
        logger.debug("Company %s average rating -> %s", company_id, average)
        return average
    except Exception:
        logger.exception("Failed to refresh average rating for company %s", company_id)
        db.rollback()
        return None
