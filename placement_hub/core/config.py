"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL (identities, profiles, students)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "placement_user"
    postgres_password: str = "password"
    postgres_db: str = "placement_hub"

    # MongoDB (GridFS blob storage)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "placement_files"

    # Storage buckets
    profile_image_bucket: str = "profile-images"
    certificate_bucket: str = "certificates"
    resume_bucket: str = "resumes"
    max_upload_size_mb: int = 5

    # Public base URL used to build blob URLs
    public_base_url: str = "http://localhost:8000"

    # DeepSeek AI (OpenAI-compatible), backs the generate-resume function
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com/v1"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # App
    debug: bool = True
    log_level: str = "INFO"

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def buckets(self) -> tuple:
        return (self.profile_image_bucket, self.certificate_bucket, self.resume_bucket)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
