"""
Configuration settings for Toolshelf.

This module provides the Config class with all settings.
When installed as a package, paths are relative to the user config directory
or can be overridden via environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the first .env found
for env_path in [
    Path.cwd() / ".env",  # Current working directory
    Path(__file__).parent.parent / ".env",  # Package root (when running from source)
    Path.home() / ".toolshelf" / ".env",  # User config directory
]:
    if env_path.exists():
        load_dotenv(env_path, override=True)
        break


def _get_base_dir():
    """Get base directory, preferring environment variable or user config."""
    if os.getenv("TOOLSHELF_BASE_DIR"):
        return Path(os.getenv("TOOLSHELF_BASE_DIR"))
    user_dir = Path.home() / ".toolshelf"
    if user_dir.exists():
        return user_dir
    # Fallback to package parent (for running from source)
    return Path(__file__).parent.parent


class Config:
    """Main configuration class for Toolshelf."""

    # Paths - can be overridden via TOOLSHELF_BASE_DIR env var
    BASE_DIR = _get_base_dir()
    DATA_DIR = BASE_DIR / "data"
    DB_PATH = DATA_DIR / "toolshelf.db"
    SESSION_PATH = DATA_DIR / "session.json"

    # Backend collaborator: "sqlite" (local store) or "rest" (hosted table API)
    BACKEND = os.getenv("TOOLSHELF_BACKEND", "sqlite")
    BACKEND_URL = os.getenv("TOOLSHELF_BACKEND_URL", "http://localhost:54321")
    BACKEND_API_KEY = os.getenv("TOOLSHELF_BACKEND_API_KEY")
    STATISTICS_RPC = os.getenv("TOOLSHELF_STATISTICS_RPC", "increment_counters")

    # News collaborator
    NEWS_API_URL = os.getenv("NEWS_API_URL", "https://newsapi.org/v2/everything")
    NEWS_API_KEY = os.getenv("NEWS_API_KEY")
    NEWS_QUERY = os.getenv("TOOLSHELF_NEWS_QUERY", "AI")

    REQUEST_TIMEOUT = float(os.getenv("TOOLSHELF_REQUEST_TIMEOUT", "15"))

    # List settings
    TOOLS_PER_PAGE = int(os.getenv("TOOLSHELF_TOOLS_PER_PAGE", "9"))
    ARTICLES_PER_PAGE = int(os.getenv("TOOLSHELF_ARTICLES_PER_PAGE", "5"))
    NEWS_PER_PAGE = int(os.getenv("TOOLSHELF_NEWS_PER_PAGE", "10"))
    PAGE_WINDOW = 5  # page buttons shown around the current page

    # Quiz Settings
    PASS_THRESHOLD = 70  # percent
    DIFFICULTY_LEVELS = ["Начинающий", "Средний", "Продвинутый"]

    # Table names on the backend
    TOOLS_TABLE = "ai_tools"
    ARTICLES_TABLE = "learning_articles"
    QUESTIONS_TABLE = "article_tests"
    SAVED_TABLE = "saved_tools"
    STATISTICS_TABLE = "test_statistics"
    PROGRESS_TABLE = "user_article_progress"

    @classmethod
    def ensure_dirs(cls):
        """Create all necessary directories."""
        cls.DATA_DIR.mkdir(exist_ok=True, parents=True)
