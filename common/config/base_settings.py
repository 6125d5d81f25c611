"""
Environment-driven settings shared by the API and the job runner.

Values load from environment variables (and ``.env``) via pydantic-settings.
Application settings subclass BaseAppSettings and add their own fields.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


ENVIRONMENTS = ("development", "test", "staging", "production")


class BaseAppSettings(BaseSettings):
    """Database, auth and server settings."""

    # ==========================================================================
    # Database
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "rndvx"

    # ==========================================================================
    # Authentication
    # ==========================================================================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12

    # ==========================================================================
    # Server
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Comma-separated origins or "*"
    CORS_ORIGINS: str = "http://localhost:5173"
    CORS_ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    def get_cors_origins(self) -> List[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def is_test(self) -> bool:
        return self.ENVIRONMENT.lower() == "test"

    def validate_required(self) -> None:
        """
        Fail fast on configuration the server cannot run with.

        Production additionally requires a JWT secret of at least 32
        characters and an explicit CORS origin list.

        Raises:
            ValueError: Listing every problem found
        """
        errors = []

        if self.ENVIRONMENT.lower() not in ENVIRONMENTS:
            errors.append(f"ENVIRONMENT must be one of: {', '.join(ENVIRONMENTS)}")

        if not self.JWT_SECRET:
            errors.append("JWT_SECRET is required")
        elif self.is_production() and len(self.JWT_SECRET) < 32:
            errors.append("JWT_SECRET must be at least 32 characters in production")

        if self.is_production() and self.get_cors_origins() == ["*"]:
            errors.append("CORS_ORIGINS cannot be '*' in production")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
