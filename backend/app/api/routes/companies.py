import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import require_roles
from app.core.errors import ErrorMessages
from app.db.session import get_db
from app.models.company import Company
from app.models.review import Review
from app.schemas.company import CompanyCreate, CompanyDetail, CompanyOut, CompanyUpdate
from app.schemas.review import ReviewOut
from app.services.companies import delete_company as delete_company_cascade
from app.services.query_filter import apply_filters, apply_page, apply_sort, pagination_links, parse_list_query
from app.services.reviews import reviews_by_company, reviews_for_company

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ErrorMessages.COMPANY_NOT_FOUND)
    return company


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    q = db.query(Company).filter(Company.name == name)
    if exclude_id is not None:
        q = q.filter(Company.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ErrorMessages.COMPANY_NAME_EXISTS)


def _company_payload(company: Company, select: Optional[list[str]], reviews: Optional[list[Review]]) -> dict:
    data = CompanyOut.model_validate(company).model_dump()
    if reviews is not None:
        data["reviews"] = [ReviewOut.model_validate(r).model_dump() for r in reviews]
    if select is not None:
        keep = set(select) | {"id"}
        data = {k: v for k, v in data.items() if k in keep}
    return data


@router.get("")
def list_companies(request: Request, db: Session = Depends(get_db)):
    """Filtered, sorted and paginated company list.

    Query syntax is described in app.services.query_filter. Each company
    embeds its reviews unless ``select`` leaves ``reviews`` out.
    """
    list_query = parse_list_query(Company, request.query_params.multi_items(), extra_select=("reviews",))
    q = apply_filters(db.query(Company), Company, list_query)
    total = q.count()
    companies = apply_page(apply_sort(q, Company, list_query), list_query).all()

    reviews_map = reviews_by_company(db, [c.id for c in companies]) if list_query.selects("reviews") else None
    data = [
        _company_payload(c, list_query.select, reviews_map[c.id] if reviews_map is not None else None)
        for c in companies
    ]
    return {
        "success": True,
        "count": len(data),
        "total": total,
        "pagination": pagination_links(list_query, total),
        "data": data,
    }


@router.get("/{company_id}")
def get_company(company_id: int, db: Session = Depends(get_db)):
    company = _get_company_or_404(db, company_id)
    detail = CompanyDetail(
        **CompanyOut.model_validate(company).model_dump(),
        reviews=[ReviewOut.model_validate(r) for r in reviews_for_company(db, company.id)],
    )
    return {"success": True, "data": detail}


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_roles("admin"))])
def create_company(payload: CompanyCreate, db: Session = Depends(get_db)):
    _ensure_unique_name(db, payload.name)
    company = Company(**payload.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)
    logger.info("Company created: %s (%s)", company.name, company.id)
    return {"success": True, "data": CompanyOut.model_validate(company)}


@router.put("/{company_id}", dependencies=[Depends(require_roles("admin"))])
def update_company(company_id: int, payload: CompanyUpdate, db: Session = Depends(get_db)):
    company = _get_company_or_404(db, company_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    if "name" in changes:
        _ensure_unique_name(db, changes["name"], exclude_id=company.id)
    for key, value in changes.items():
        setattr(company, key, value)
    db.commit()
    db.refresh(company)
    return {"success": True, "data": CompanyOut.model_validate(company)}


@router.delete("/{company_id}", dependencies=[Depends(require_roles("admin"))])
def delete_company(company_id: int, db: Session = Depends(get_db)):
    company = _get_company_or_404(db, company_id)
    delete_company_cascade(db, company)
    return {"success": True, "data": {}}
