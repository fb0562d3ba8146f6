from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash, verify_password
from app.models.user import User


def set_password(user: User, password: str) -> None:
    """The only place a password reaches the model, always hashed."""
    user.hashed_password = get_password_hash(password)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.lower().strip()).first()


def create_user(db: Session, name: str, email: str, password: str, role: str = "user") -> User:
    email = email.lower().strip()
    if email in settings.admin_emails:
        role = "admin"
    user = User(name=name, email=email, role=role)
    set_password(user, password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
