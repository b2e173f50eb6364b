"""
Runtime configuration for the Vocalls development kit.

Values are read from ``VOC_*`` environment variables (or a local ``.env``
file). Explicit per-call options always win over these defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VOC_",
        env_file=".env",
        extra="ignore",
    )

    # Workspace layout
    WORKSPACE_ROOT: str = "."
    PROJECTS_DIR: str = "projects"
    DIST_DIR: str = "dist"

    # Simulation defaults
    DEFAULT_ENVIRONMENT: str = "acc"
    DEFAULT_HTTP_MODE: str = "stub"
    DEFAULT_STORAGE_MODE: str = "memory"
    SANDBOX_TIMEOUT_MS: int = 5000
    SANDBOX_MEMORY_LIMIT_MB: int = 64

    LOG_LEVEL: str = "INFO"


settings = Settings()
