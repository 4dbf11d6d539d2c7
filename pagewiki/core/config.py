from __future__ import annotations

import os


DEFAULT_DATABASE_URL = "sqlite:///./pagewiki.db"
DEFAULT_DATABASE_TIMEOUT_S = 5.0
DEFAULT_HOME_SLUG = "home"


def admin_password() -> str:
    return os.getenv("ADMIN_PASSWORD", "")


def database_url() -> str:
    return os.getenv("DATABASE_URL", "") or DEFAULT_DATABASE_URL


def database_timeout_s() -> float:
    raw = os.getenv("DATABASE_TIMEOUT_S", "")
    try:
        value = float(raw) if raw else DEFAULT_DATABASE_TIMEOUT_S
    except ValueError:
        return DEFAULT_DATABASE_TIMEOUT_S
    return value if value > 0 else DEFAULT_DATABASE_TIMEOUT_S


def home_slug() -> str:
    return os.getenv("PAGEWIKI_HOME_SLUG", "").strip() or DEFAULT_HOME_SLUG
