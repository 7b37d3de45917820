from pydantic_settings import BaseSettings
from functools import lru_cache


from urllib.parse import quote_plus


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    db_server: str = "localhost"
    db_name: str = "shoplistdb"
    db_user: str = ""
    db_password: str = ""
    db_url: str = ""  # Full SQLAlchemy URL, overrides the SQL Server parts above
    db_timeout_seconds: int = 10
    create_tables: bool = True

    # Bearer credentials (issued by the auth service)
    jwt_secret: str = "change-me-in-production-0123456789abcdef"
    jwt_algorithm: str = "HS256"
    access_token_minutes: int = 60 * 24

    # HTTP
    cors_origins: list[str] = ["http://localhost:3000"]

    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """Build the SQL Server connection string with properly encoded credentials."""
        if self.db_url:
            return self.db_url

        # URL-encode password to handle special characters safely
        encoded_password = quote_plus(self.db_password)
        encoded_user = quote_plus(self.db_user)
        return (
            f"mssql+pyodbc://{encoded_user}:{encoded_password}"
            f"@{self.db_server}/{self.db_name}"
            f"?driver=ODBC+Driver+18+for+SQL+Server"
            f"&Encrypt=yes&TrustServerCertificate=no"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
