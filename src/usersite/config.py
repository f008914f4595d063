# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process configuration.

Everything is read from environment variables once, at start, and carried
around as an immutable :class:`Settings` value.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_DATABASE_URI = "mongodb://localhost:27017/usersite"
DEFAULT_SESSION_MAX_AGE = 60 * 60 * 24  # 24 hours

_TRUTHY = {"1", "true", "yes", "y"}


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    database_uri: str
    db_name: str
    secret_key: str
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    cookie_name: str = "usersite_session"
    session_max_age: int = DEFAULT_SESSION_MAX_AGE
    cookie_secure: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        secret = os.getenv("SECRET_KEY") or os.getenv("USERSITE_SECRET_KEY")
        if not secret:
            raise RuntimeError("환경 변수 SECRET_KEY (또는 USERSITE_SECRET_KEY)가 없습니다.")
        port = os.getenv("PORT") or os.getenv("USERSITE_PORT") or "8000"
        return cls(
            database_uri=os.getenv("DATABASE_URI", DEFAULT_DATABASE_URI),
            db_name=os.getenv("USERSITE_DB_NAME", "usersite"),
            secret_key=secret,
            host=os.getenv("USERSITE_HOST", "0.0.0.0"),
            port=int(port),
            reload=_flag("USERSITE_RELOAD"),
            cookie_name=os.getenv("USERSITE_COOKIE_NAME", "usersite_session"),
            session_max_age=int(os.getenv("USERSITE_SESSION_MAX_AGE", str(DEFAULT_SESSION_MAX_AGE))),
            cookie_secure=_flag("USERSITE_COOKIE_SECURE"),
            log_level=os.getenv("USERSITE_LOG_LEVEL", "INFO").upper(),
        )

    def cookie_settings(self) -> dict:
        return {"httponly": True, "samesite": "lax", "secure": self.cookie_secure}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
