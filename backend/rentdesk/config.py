# backend/rentdesk/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

PROD_ENVS = ("prod", "production")


class Settings(BaseSettings):
    """Environment / .env driven; every field maps to its upper-case env var."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./rentdesk.db"
    log_level: str = "INFO"
    sql_log_level: str = "WARNING"

    # comma separated, or a JSON list
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    dev_auto_provision: bool = True
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_role: str = "X-User-Role"

    demo_login_enabled: bool = True
    demo_user_email: str = "demo@rentdesk.local"

    jwt_secret: str = "dev-change-me"
    jwt_exp_minutes: int = 60 * 24  # 1 day
    jwt_cookie_name: str = "rentdesk_jwt"
    jwt_cookie_secure: int = 0
    jwt_cookie_samesite: str = "lax"

    # ---- Lifecycle windows (days / months) ----
    expiring_soon_days: int = 30
    expiring_report_days: int = 90
    revenue_trend_months: int = 6

    list_limit_max: int = 2000

    @property
    def is_prod(self) -> bool:
        return (self.app_env or "").strip().lower() in PROD_ENVS

    def cors_origins(self) -> list[str]:
        val = self.cors_allow_origins
        if isinstance(val, str):
            return [x.strip() for x in val.split(",") if x.strip()] or ["*"]
        return list(val) or ["*"]

    def model_post_init(self, __context) -> None:
        if not self.is_prod:
            return
        if (self.auth_mode or "").strip().lower() == "dev":
            raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
        if self.demo_login_enabled:
            raise ValueError("SECURITY: demo_login_enabled=True is not allowed in prod")
        if "*" in self.cors_origins():
            raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")
        if self.jwt_secret == "dev-change-me":
            raise ValueError("SECURITY: jwt_secret must be set in prod")


settings = Settings()
