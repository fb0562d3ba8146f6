from app.models.base import Base
from app.models.user import User
from app.models.company import Company
from app.models.review import Review

__all__ = ["Base", "User", "Company", "Review"]
