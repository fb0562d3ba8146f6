from contextlib import asynccontextmanager
import asyncio
import logging
import os
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from app.db.init_db import create_tables, seed_admin
from app.db.session import check_database_connection, engine
from app.services.db_monitor import wait_for_database

setup_logging()
logger = logging.getLogger(__name__)

def _run_migrations_if_needed():
    """Apply Alembic migrations automatically in production if enabled.

    Controlled by env var AUTO_APPLY_MIGRATIONS (default: true). Safe to run repeatedly.
    """
    if not settings.auto_apply_migrations:
        return
    from alembic import command
    from alembic.config import Config
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("[migrate] alembic.ini not found at %s, skipping auto-migrations", alembic_ini)
        return
    cfg = Config(str(alembic_ini))
    # Ensure script_location resolves correctly when launched from arbitrary CWD
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parents[1] / "alembic"))
    logger.info("[migrate] Applying Alembic migrations -> head ...")
    command.upgrade(cfg, "head")
    logger.info("[migrate] Migrations applied successfully")

def prepare_database():
    """Schema and seed data, once the store is reachable."""
    try:
        if settings.is_production:
            _run_migrations_if_needed()
        else:
            create_tables()
        seed_admin()
    except Exception:
        # Keep serving; can be retried manually or on next start
        logger.exception("Database preparation failed")

def _log_loop_exception(loop, context):
    logger.error("Unhandled exception in event loop: %s", context.get("message"), exc_info=context.get("exception"))

@asynccontextmanager
async def lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
    logger.info("Starting %s in %s mode", settings.app_name, settings.env)
    retry_task = None
    if await asyncio.to_thread(check_database_connection):
        logger.info("Database connected")
        await asyncio.to_thread(prepare_database)
    else:
        retry_task = asyncio.create_task(wait_for_database(prepare_database))
    yield
    if retry_task is not None:
        retry_task.cancel()
    engine.dispose()

app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(RateLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
# outermost: preflights bypass the rate limit and 429s still carry CORS headers
origins = settings.cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    # credentials cannot be combined with a wildcard origin
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)

@app.get("/", tags=["root"])
def root():
    return {"message": "Welcome to the Company Review API"}

if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
