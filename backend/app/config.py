# app/config.py
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    backend_name: str = "report-viewer"
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:5173"]
    recordings_dir: str = Field(
        default="artifacts/recordings",
        description="Relative path to recorded reporting-client calls",
    )

    model_config = SettingsConfigDict(
        env_prefix="VIEWER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
