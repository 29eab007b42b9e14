"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    db_host: str = Field(
        default="localhost",
        description="MySQL host"
    )
    db_user: str = Field(
        default="bloom",
        description="MySQL user"
    )
    db_password: str = Field(
        default="",
        description="MySQL password"
    )
    db_database: str = Field(
        default="bloom",
        description="MySQL database name"
    )
    db_port: int = Field(
        default=25060,
        description="MySQL port"
    )
    db_ssl: bool = Field(
        default=True,
        description="Connect over TLS (certificates are not verified)"
    )
    db_pool_size: int = Field(
        default=10,
        description="Number of pooled database connections"
    )
    db_max_overflow: int = Field(
        default=0,
        description="Connections allowed beyond the pool size"
    )
    db_pool_timeout: float = Field(
        default=5.0,
        description="Seconds a request waits for a pooled connection"
    )
    db_call_timeout: float = Field(
        default=5.0,
        description="Seconds before a single database call is abandoned"
    )

    # Object Storage Configuration (DigitalOcean Spaces)
    do_spaces_bucket: str = Field(
        default="bloom-photos",
        description="Bucket holding uploaded images"
    )
    do_spaces_endpoint: str = Field(
        default="nyc3.digitaloceanspaces.com",
        description="Spaces endpoint host, without scheme"
    )
    do_spaces_region: str = Field(
        default="us-east-1",
        description="Region name passed to the S3 client"
    )
    do_spaces_key: str = Field(
        default="",
        description="Spaces access key"
    )
    do_spaces_secret: str = Field(
        default="",
        description="Spaces secret key"
    )
    object_store_timeout: float = Field(
        default=5.0,
        description="Seconds before a single object store call is abandoned"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of attempts for object store calls"
    )
    retry_backoff_multiplier: float = Field(
        default=0.5,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: float = Field(
        default=0.5,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: float = Field(
        default=4.0,
        description="Maximum wait time in seconds between retries"
    )

    # Uploads
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Largest accepted image payload in bytes"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    upload_rate_limit: str = Field(
        default="30/minute",
        description="Rate limit applied to image upload endpoints"
    )

    # Application Settings
    app_name: str = Field(
        default="Bloom Plant Tracker API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    @property
    def database_url(self) -> URL:
        """SQLAlchemy URL for the async MySQL driver."""
        return URL.create(
            "mysql+aiomysql",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        )

    @property
    def object_store_endpoint_url(self) -> str:
        """Endpoint URL handed to the S3 client."""
        return f"https://{self.do_spaces_endpoint}"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
