from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./rentflow.db"
    api_version: str = "2026-10.v1"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Lifecycle ----
    transition_max_attempts: int = 5
    amount_tolerance: float = 0.01

    # ---- Payments ----
    payment_webhook_secret: str = "dev-webhook-secret"

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    jwt_secret: str = "dev-change-me"
    jwt_algorithm: str = "HS256"
    jwt_exp_minutes: int = 60 * 24 * 7  # 7 days
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_role: str = "X-User-Role"
    dev_auto_provision: bool = True

    # ---- Email (ZeptoMail-compatible HTTP API) ----
    email_api_url: str = "https://api.zeptomail.in/v1.1/email"
    email_api_token: str | None = None
    email_from_address: str = "noreply@rentflow.local"
    email_from_name: str = "Rentflow"
    email_timeout_seconds: float = 20.0
    company_support_email: str = "support@rentflow.local"

    # ---- Celery ----
    celery_broker_url: str | None = None
    celery_result_backend: str | None = None
    celery_task_always_eager: bool = False

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
            if self.jwt_secret == "dev-change-me":
                raise ValueError("SECURITY: jwt_secret must be set in prod")
            if not self.payment_webhook_secret or self.payment_webhook_secret == "dev-webhook-secret":
                raise ValueError("SECURITY: payment_webhook_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
