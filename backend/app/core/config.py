from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    app_name: str = Field(default="Company Reviews API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    secret_key: str = Field(default="devsecret", alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    token_expire_days: int = Field(default=30, alias="TOKEN_EXPIRE_DAYS")
    cookie_expire_days: int = Field(default=30, alias="COOKIE_EXPIRE_DAYS")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_retry_interval_seconds: float = Field(default=5.0, alias="DB_RETRY_INTERVAL_SECONDS")
    auto_apply_migrations: bool = Field(default=True, alias="AUTO_APPLY_MIGRATIONS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    # Raw env values (strings), we parse them to lists via properties to avoid JSON decoding errors
    admin_emails_raw: Optional[str] = Field(default=None, alias="ADMIN_EMAILS")
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS", description="Comma or space separated list of allowed CORS origins")
    # /api/* rate limit, per client IP
    rate_limit_max_requests: int = Field(default=100, alias="RATE_LIMIT_MAX_REQUESTS")
    rate_limit_window_seconds: int = Field(default=15 * 60, alias="RATE_LIMIT_WINDOW_SECONDS")
    # Reverse proxies in front of the app; 0 ignores X-Forwarded-For entirely
    trusted_proxy_hops: int = Field(default=1, alias="TRUSTED_PROXY_HOPS")
    # Seed admin (dev convenience)
    seed_admin_email: Optional[str] = Field(default=None, alias="SEED_ADMIN_EMAIL")
    seed_admin_password: Optional[str] = Field(default=None, alias="SEED_ADMIN_PASSWORD")
    seed_update_passwords: bool = Field(default=False, alias="SEED_UPDATE_PASSWORDS")
    # Company import command
    import_api_url: str = Field(default="https://new-api.zangia.mn/api/company/list", alias="IMPORT_API_URL")
    import_page_delay_seconds: float = Field(default=0.5, alias="IMPORT_PAGE_DELAY_SECONDS")

    model_config = SettingsConfigDict(
        # Load env from backend/.env regardless of CWD
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    def _parse_list(self, v: Optional[str]) -> List[str]:
        if v is None:
            return []
        s = v.strip()
        if not s:
            return []
        if s.startswith("[") and s.endswith("]"):
            try:
                import json
                loaded = json.loads(s)
                if isinstance(loaded, list):
                    return [str(e).strip() for e in loaded if str(e).strip()]
            except ValueError:
                pass
        return [e.strip() for e in s.replace(" ", ",").split(",") if e.strip()]

    @property
    def is_production(self) -> bool:
        return self.env.lower() in {"prod", "production"}

    @property
    def admin_emails(self) -> List[str]:
        return [e.lower() for e in self._parse_list(self.admin_emails_raw)]

    @property
    def cors_origins(self) -> List[str]:
        items = self._parse_list(self.cors_origins_raw)
        # No explicit list -> open API, as the service is consumed by arbitrary clients
        if not items:
            return ["*"]
        return items

settings = Settings()  # type: ignore
