import logging

from app.db.session import engine, SessionLocal
from app.models import Base, User
from app.core.config import settings
from app.services.users import set_password

logger = logging.getLogger(__name__)

def create_tables():
    Base.metadata.create_all(bind=engine)

def seed_admin():
    """Create (or promote) the configured seed admin. Idempotent; no-op without SEED_ADMIN_* settings."""
    if not settings.seed_admin_email or not settings.seed_admin_password:
        return
    email = settings.seed_admin_email.lower().strip()
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.email == email).first()
        if not admin:
            admin = User(name="Admin", email=email, role="admin")
            set_password(admin, settings.seed_admin_password)
            db.add(admin)
            logger.info("Seeded admin user %s", email)
        else:
            admin.role = "admin"
            if settings.seed_update_passwords:
                set_password(admin, settings.seed_admin_password)
        db.commit()
    finally:
        db.close()
