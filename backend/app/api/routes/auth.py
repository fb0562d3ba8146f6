from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.api.deps import TOKEN_COOKIE, get_current_user
from app.core.config import settings
from app.core.errors import ErrorMessages
from app.core.security import create_access_token
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import TokenResponse, UserLogin, UserOut, UserRegister
from app.services import users as user_service

router = APIRouter()


def _send_token(user: User, response: Response) -> dict:
    """Sign a token for ``user``, set it as the httpOnly cookie and return the body."""
    token = create_access_token(subject=user.id, role=user.role)
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        max_age=int(timedelta(days=settings.cookie_expire_days).total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return {"success": True, "token": token}


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, response: Response, db: Session = Depends(get_db)):
    if user_service.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ErrorMessages.EMAIL_ALREADY_EXISTS)
    user = user_service.create_user(
        db, name=payload.name, email=payload.email, password=payload.password, role=payload.role
    )
    return _send_token(user, response)


@router.post("/login", response_model=TokenResponse)
def login(payload: UserLogin, response: Response, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ErrorMessages.MISSING_CREDENTIALS)
    user = user_service.authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ErrorMessages.INVALID_CREDENTIALS)
    return _send_token(user, response)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": UserOut.model_validate(user)}
