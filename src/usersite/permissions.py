# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional, Tuple

from fastapi import HTTPException, Request

from usersite.auth.session import SessionStore, unsign_session_id
from usersite.config import Settings
from usersite.core.models import SessionUser
from usersite.infra.user_repo import UserRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repo(request: Request) -> UserRepository:
    return request.app.state.repo


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def load_session_from_request(request: Request) -> Tuple[Optional[str], Optional[SessionUser]]:
    """Resolve the session cookie into ``(session_id, session_user)``."""
    settings = get_settings(request)
    token = request.cookies.get(settings.cookie_name, "")
    sid = unsign_session_id(token, secret=settings.secret_key, max_age=settings.session_max_age)
    if not sid:
        return None, None
    data = get_sessions(request).get(sid)
    if not data:
        return None, None
    return sid, SessionUser.from_dict(data.get("user") or {})


def current_user_optional(request: Request) -> Optional[SessionUser]:
    return getattr(request.state, "user", None)


def require_user(request: Request) -> SessionUser:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=303, headers={"Location": "/login"})
