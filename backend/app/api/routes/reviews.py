from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import ensure_owner_or_admin, get_current_user
from app.core.errors import ErrorMessages
from app.db.session import get_db
from app.models.company import Company
from app.models.review import Review
from app.models.user import User
from app.schemas.review import CompanySummary, ReviewCreate, ReviewOut, ReviewUpdate, ReviewWithCompany
from app.services import reviews as review_service

# /api/reviews
router = APIRouter()
# /api/companies/{company_id}/reviews
company_reviews_router = APIRouter()


def _get_review_or_404(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorMessages.REVIEW_NOT_FOUND.format(review_id=review_id),
        )
    return review


def _with_company(review: Review, companies: dict[int, Company]) -> ReviewWithCompany:
    company = companies.get(review.company_id)
    return ReviewWithCompany(
        **ReviewOut.model_validate(review).model_dump(),
        company=CompanySummary.model_validate(company) if company is not None else None,
    )


@router.get("")
def list_reviews(db: Session = Depends(get_db)):
    reviews = db.query(Review).order_by(Review.created_at.desc(), Review.id.desc()).all()
    company_ids = {r.company_id for r in reviews}
    companies = {}
    if company_ids:
        companies = {c.id: c for c in db.query(Company).filter(Company.id.in_(company_ids)).all()}
    data = [_with_company(r, companies) for r in reviews]
    return {"success": True, "count": len(data), "data": data}


@router.get("/{review_id}")
def get_review(review_id: int, db: Session = Depends(get_db)):
    review = _get_review_or_404(db, review_id)
    company = db.get(Company, review.company_id)
    companies = {company.id: company} if company else {}
    return {"success": True, "data": _with_company(review, companies)}


@router.put("/{review_id}")
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = _get_review_or_404(db, review_id)
    ensure_owner_or_admin(review.author_id, user, ErrorMessages.NOT_AUTHORIZED_UPDATE_REVIEW)
    review = review_service.update_review(db, review, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": ReviewOut.model_validate(review)}


@router.delete("/{review_id}")
def delete_review(review_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    review = _get_review_or_404(db, review_id)
    ensure_owner_or_admin(review.author_id, user, ErrorMessages.NOT_AUTHORIZED_DELETE_REVIEW)
    review_service.delete_review(db, review)
    return {"success": True, "data": {}}


@company_reviews_router.get("")
def list_company_reviews(company_id: int, db: Session = Depends(get_db)):
    reviews = review_service.reviews_for_company(db, company_id)
    data = [ReviewOut.model_validate(r) for r in reviews]
    return {"success": True, "count": len(data), "data": data}


@company_reviews_router.post("", status_code=status.HTTP_201_CREATED)
def create_review(
    company_id: int,
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not db.get(Company, company_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorMessages.NO_COMPANY_WITH_ID.format(company_id=company_id),
        )
    existing = db.query(Review).filter(Review.company_id == company_id, Review.author_id == user.id).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ErrorMessages.REVIEW_ALREADY_EXISTS)
    review = review_service.create_review(
        db, company_id=company_id, author_id=user.id, rating=payload.rating, comment=payload.comment
    )
    return {"success": True, "data": ReviewOut.model_validate(review)}
