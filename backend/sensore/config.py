from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(...)

    # Runtime
    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")

    # Session cookie
    session_secret_key: str = Field(...)
    session_cookie_name: str = Field(default="SensoreAuth")
    session_lifetime_hours: int = Field(default=8)

    # Password hashing
    bcrypt_rounds: int = Field(default=12)

    # Demo accounts created at startup
    seed_demo_users: bool = Field(default=True)
    demo_user_password: str = Field(default="admin123")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
