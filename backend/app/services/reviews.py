"""Review writes with their post-write hooks."""

from sqlalchemy.orm import Session

from app.models.review import Review
from app.services.rating import refresh_average_rating


def create_review(db: Session, company_id: int, author_id: int, rating: int, comment: str) -> Review:
    review = Review(company_id=company_id, author_id=author_id, rating=rating, comment=comment)
    db.add(review)
    db.commit()
    db.refresh(review)
    refresh_average_rating(db, review.company_id)
    return review


def update_review(db: Session, review: Review, changes: dict) -> Review:
    for key in ("rating", "comment"):
        if key in changes and changes[key] is not None:
            setattr(review, key, changes[key])
    db.commit()
    db.refresh(review)
    refresh_average_rating(db, review.company_id)
    return review


def delete_review(db: Session, review: Review) -> None:
    company_id = review.company_id
    db.delete(review)
    db.commit()
    refresh_average_rating(db, company_id)


def reviews_for_company(db: Session, company_id: int) -> list[Review]:
    return (
        db.query(Review)
        .filter(Review.company_id == company_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


def reviews_by_company(db: Session, company_ids: list[int]) -> dict[int, list[Review]]:
    """Reviews of several companies in one query, keyed by company id."""
    grouped: dict[int, list[Review]] = {cid: [] for cid in company_ids}
    if not company_ids:
        return grouped
    rows = (
        db.query(Review)
        .filter(Review.company_id.in_(company_ids))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    for r in rows:
        grouped[r.company_id].append(r)
    return grouped
