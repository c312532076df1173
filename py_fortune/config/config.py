"""Configuration management."""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env for local runs; values already in the environment win.
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    for k, v in file_env.items():
        if k not in os.environ and v is not None:
            os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(env_prefix="PY_FORTUNE_", extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Diagram generation
    max_sites: int = Field(default=50000, description="Maximum number of sites per request")
    default_width: float = Field(default=400.0, description="Default bounding box width")
    default_height: float = Field(default=400.0, description="Default bounding box height")
    relax_iterations: int = Field(default=3, description="Default Lloyd relaxation iterations")


settings = Settings()
