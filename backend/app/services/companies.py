import logging

from sqlalchemy.orm import Session

from app.models.company import Company
from app.models.review import Review

logger = logging.getLogger(__name__)


def delete_company(db: Session, company: Company) -> int:
    """Delete the company and every review referencing it; returns the review count.

    Reviews go in one bulk statement, so the rating hook does not run for them.
    """
    company_id = company.id
    removed = db.query(Review).filter(Review.company_id == company_id).delete(synchronize_session=False)
    logger.info("Reviews being removed from company %s: %s", company_id, removed)
    db.delete(company)
    db.commit()
    return removed


def upsert_company_by_name(db: Session, values: dict) -> Company:
    """Update the company with ``values['name']`` or create it."""
    company = db.query(Company).filter(Company.name == values["name"]).first()
    if company is None:
        company = Company(**values)
        db.add(company)
    else:
        for key, value in values.items():
            setattr(company, key, value)
    db.commit()
    db.refresh(company)
    return company
