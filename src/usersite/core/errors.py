# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed failures raised by the repository and services.

Each business failure carries the localized message shown to the end user and
the HTTP status the web layer answers with. Anything that is not a
``UserSiteError`` is treated as unexpected and becomes a generic 500.
"""

from __future__ import annotations


class UserSiteError(Exception):
    status_code = 500
    default_message = "요청을 처리하는 중 오류가 발생했습니다."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(UserSiteError):
    status_code = 400
    default_message = "입력값이 올바르지 않습니다."


class UsernameTakenError(UserSiteError):
    status_code = 409
    default_message = "이미 사용중인 아이디입니다."


class UserNotFoundError(UserSiteError):
    status_code = 404
    default_message = "사용자를 찾을 수 없습니다."


class WrongPasswordError(UserSiteError):
    status_code = 401
    default_message = "비밀번호가 일치하지 않습니다."


class SessionError(UserSiteError):
    default_message = "로그아웃에 문제 발생"
