from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Preferred for server-side writes (bypasses RLS)

    # Tokens
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    email_verification_token_expire_minutes: int = 60 * 24
    password_reset_token_expire_minutes: int = 60

    # Passwords
    password_hash_method: str = "scrypt"  # werkzeug format, e.g. "pbkdf2:sha256"
    password_min_length: int = 8

    # Mail (SMTP2GO-style HTTP API)
    mail_api_url: Optional[str] = None
    mail_api_key: Optional[str] = None
    mail_from: str = "no-reply@localhost"
    frontend_url: str = "http://localhost:3000"

    # App
    app_name: str = "rbac-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    auth_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    enable_test_routes: bool = False  # Mounts POST /test/setup outside production

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
