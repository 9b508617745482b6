"""
ProjectHub settings, one class per environment.

``create_app`` picks the class by name (``APP_ENV``) and instantiates it;
every value can be overridden through the environment variable of the same
name.
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

_INSTANCE_DIR = os.path.join(basedir, "instance")
_SQLITE_DEV = "sqlite:///" + os.path.join(_INSTANCE_DIR, "projecthub_dev.db")
_SQLITE_TEST = "sqlite:///:memory:"


def _database_url(default=None):
    """DATABASE_URL with the legacy ``postgres://`` scheme normalised."""
    url = os.getenv("DATABASE_URL", "")
    if not url:
        return default
    return url.replace("postgres://", "postgresql://", 1)


def _parse_seed_users(raw: str) -> list[dict]:
    """Parse "email:password,email:password" into credential dicts."""
    users = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry or ":" not in entry:
            continue
        email, password = entry.split(":", 1)
        users.append({"email": email.strip().lower(), "password": password})
    return users


class Config:
    """Defaults shared by every environment."""

    # per-process random key unless SECRET_KEY is set; sessions do not
    # survive a restart in development
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    # Flask-Limiter storage; memory:// keeps counters per process
    REDIS_URL = os.getenv("REDIS_URL", "memory://")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Auth: "hosted" (users table + JWT sessions) or "local" (credentials
    # file on disk, for running without a backend)
    AUTH_BACKEND = os.getenv("AUTH_BACKEND", "hosted")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_EXPIRES = int(os.getenv("JWT_ACCESS_EXPIRES", "3600"))
    LOCAL_AUTH_STORE_PATH = os.getenv(
        "LOCAL_AUTH_STORE_PATH", os.path.join(_INSTANCE_DIR, "local_auth.json")
    )
    LOCAL_AUTH_SEED_USERS = _parse_seed_users(
        os.getenv("LOCAL_AUTH_SEED_USERS", "demo@example.com:demo1234")
    )
    DEFAULT_WORKSPACE_NAME = os.getenv("DEFAULT_WORKSPACE_NAME", "Default")

    # Project board
    BOARD_PAGE_SIZE = int(os.getenv("BOARD_PAGE_SIZE", "12"))
    BOARD_SEARCH_DEBOUNCE_SECONDS = float(os.getenv("BOARD_SEARCH_DEBOUNCE_SECONDS", "0.3"))
    BOARD_SLOW_BUILD_MS = float(os.getenv("BOARD_SLOW_BUILD_MS", "100"))


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(_SQLITE_DEV)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    AUTH_BACKEND = "hosted"
    JWT_ACCESS_EXPIRES = 900
    BOARD_SEARCH_DEBOUNCE_SECONDS = 0.01


class ProductionConfig(Config):
    """PostgreSQL only; refuses to start without DATABASE_URL and SECRET_KEY."""

    SQLALCHEMY_DATABASE_URI = _database_url()
    # no wildcard default in production
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
        "connect_args": {"options": "-c statement_timeout=30000"},
    }

    def __init__(self):
        missing = [
            name for name, present in (
                ("DATABASE_URL", self.SQLALCHEMY_DATABASE_URI),
                ("SECRET_KEY", os.getenv("SECRET_KEY")),
            )
            if not present
        ]
        if missing:
            raise RuntimeError(f"Missing required environment for production: {', '.join(missing)}")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
