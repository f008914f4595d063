# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Account operations, independent of the web framework.

Every function takes the repository explicitly and either returns a value or
raises a :mod:`usersite.core.errors` exception, so the HTTP layer only maps
results to responses.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from usersite.auth.passwords import hash_password, verify_password
from usersite.core.errors import InvalidInputError, UserNotFoundError, WrongPasswordError
from usersite.core.models import ProfileImage, SessionUser, User
from usersite.infra.user_repo import UserRepository

logger = logging.getLogger(__name__)


def parse_birthdate(raw: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` form value (what ``<input type=date>`` sends)."""
    s = str(raw or "").strip()
    if not s:
        raise InvalidInputError("생년월일을 입력해주세요.")
    try:
        return date.fromisoformat(s)
    except ValueError as exc:
        raise InvalidInputError("생년월일 형식이 올바르지 않습니다.") from exc


def _clean_username(raw: str) -> str:
    u = str(raw or "").strip()
    if not u:
        raise InvalidInputError("아이디를 입력해주세요.")
    return u


def signup(
    repo: UserRepository,
    *,
    username: str,
    password: str,
    birthdate: str,
    image: Optional[ProfileImage] = None,
) -> User:
    """Create an account.

    Raises ``UsernameTakenError`` (from the repository's unique index) when the
    username exists; the existing record is left untouched.
    """
    uname = _clean_username(username)
    if not password:
        raise InvalidInputError("비밀번호를 입력해주세요.")
    bd = parse_birthdate(birthdate)

    if image is not None and (not image.data or not image.content_type):
        image = None

    user = repo.insert(
        username=uname,
        password_hash=hash_password(password),
        birthdate=bd,
        profile_image=image,
    )
    logger.info("user created: %s", user.username)
    return user


def authenticate(repo: UserRepository, *, username: str, password: str) -> User:
    user = repo.find_by_username(str(username or "").strip())
    if user is None:
        raise UserNotFoundError()
    if not verify_password(user.password_hash, password):
        raise WrongPasswordError()
    return user


def session_user_for(user: User) -> SessionUser:
    return SessionUser(id=user.id, username=user.username, birthdate=user.birthdate)


def update_profile(
    repo: UserRepository,
    session_user: SessionUser,
    *,
    username: str,
    birthdate: str,
) -> User:
    """Overwrite username/birthdate of the session's own user.

    A new username that belongs to someone else is rejected with
    ``UsernameTakenError``.
    """
    uname = _clean_username(username)
    bd = parse_birthdate(birthdate)
    user = repo.update_profile(session_user.id, username=uname, birthdate=bd)
    logger.info("profile updated: %s", user.id)
    return user


def is_same_user(viewed_id: str, session_user: Optional[SessionUser]) -> bool:
    if session_user is None:
        return False
    return str(viewed_id) == str(session_user.id)
