from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import List, Any, Literal
import os
import json


class Settings(BaseSettings):
    PROJECT_NAME: str = "TuneBridge API"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Provider APIs
    SPOTIFY_API_BASE_URL: str = "https://api.spotify.com/v1"
    YOUTUBE_API_BASE_URL: str = "https://www.googleapis.com/youtube/v3"
    PROVIDER_HTTP_TIMEOUT_SECONDS: float = 15.0

    # Transfers
    MAX_TRANSFER_TRACKS: int = 500

    # Link storage
    LINK_STORE_BACKEND: Literal["memory", "database"] = "memory"
    DATABASE_URL: str = ""
    SQLALCHEMY_ECHO: bool = False

    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(__file__), "../../../.env"),
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator('ALLOWED_ORIGINS', mode='before')
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> List[str]:
        """Parse allowed origins from JSON or a comma-delimited string."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except (json.JSONDecodeError, TypeError):
                # If not valid JSON, try splitting by comma
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('LINK_STORE_BACKEND', mode='before')
    @classmethod
    def normalize_link_store_backend(cls, v: Any) -> str:
        """Accept the backend name in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('MAX_TRANSFER_TRACKS')
    @classmethod
    def validate_max_transfer_tracks(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_TRANSFER_TRACKS must be at least 1")
        return v

    @model_validator(mode='after')
    def validate_database_url(self) -> "Settings":
        """Require a usable database URL when links are stored in the database."""
        if self.LINK_STORE_BACKEND != "database":
            return self
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL must be set when LINK_STORE_BACKEND is 'database'")
        if not self.DATABASE_URL.startswith(('postgresql://', 'postgresql+psycopg2://', 'sqlite')):
            raise ValueError("DATABASE_URL must be a PostgreSQL or SQLite URL")
        return self


settings = Settings()
