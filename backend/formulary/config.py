"""
Application configuration
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Formulary"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_FORMAT: str = "text"

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "formulary"

    # Redis (Celery broker, per-formula and per-repository locks)
    # A formula lock spans a repository lock plus two git calls.
    REDIS_URL: str = "redis://localhost:6379/0"
    FORMULA_LOCK_TIMEOUT: int = 3600
    REPOSITORY_LOCK_TIMEOUT: int = 900

    # Repositories
    CORE_REPOSITORY: str = "Homebrew/homebrew-core"
    MAIN_REPOSITORY: str = "Homebrew/brew"
    REPOS_DIR: str = "../repo-data/repos"

    # GitHub
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_URL: str = "https://github.com"
    RAW_BASE_URL: str = "https://raw.github.com"
    HTTP_TIMEOUT: float = 10.0
    GIT_TIMEOUT: int = 600

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
