# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side sessions referenced by a signed cookie.

The cookie only carries an opaque session id signed with the process secret;
the session payload itself lives in a :class:`SessionStore`.
"""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from usersite.config import DEFAULT_SESSION_MAX_AGE
from usersite.core.errors import SessionError

SESSION_SALT = "usersite.session.v1"


class SessionStore(Protocol):
    def create(self, data: dict) -> str: ...

    def get(self, sid: str) -> Optional[dict]: ...

    def set(self, sid: str, data: dict) -> None: ...

    def destroy(self, sid: str) -> None: ...


@dataclass
class _Entry:
    data: dict
    expires_at: float


class MemorySessionStore:
    """Process-attached session store.

    An entry lives ``max_age`` seconds after its last write; reads do not
    extend it. Every write first frees whatever has expired.
    """

    def __init__(self, max_age: int = DEFAULT_SESSION_MAX_AGE, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_age = int(max_age)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def _expiry(self) -> float:
        return self._clock() + self.max_age

    def _drop_expired_locked(self, now: float) -> int:
        dead = [sid for sid, e in self._entries.items() if e.expires_at <= now]
        for sid in dead:
            del self._entries[sid]
        return len(dead)

    def create(self, data: dict) -> str:
        sid = secrets.token_urlsafe(32)
        with self._lock:
            self._drop_expired_locked(self._clock())
            self._entries[sid] = _Entry(data=dict(data), expires_at=self._expiry())
        return sid

    def get(self, sid: str) -> Optional[dict]:
        if not sid:
            return None
        with self._lock:
            entry = self._entries.get(sid)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[sid]
                return None
            return dict(entry.data)

    def set(self, sid: str, data: dict) -> None:
        with self._lock:
            self._drop_expired_locked(self._clock())
            self._entries[sid] = _Entry(data=dict(data), expires_at=self._expiry())

    def destroy(self, sid: str) -> None:
        with self._lock:
            self._entries.pop(sid, None)

    def purge_expired(self) -> int:
        with self._lock:
            return self._drop_expired_locked(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def end_session(store: SessionStore, sid: str) -> None:
    """Destroy ``sid``; any store failure surfaces as ``SessionError``."""
    try:
        store.destroy(sid)
    except Exception as exc:
        raise SessionError() from exc


def _serializer(secret: str) -> URLSafeTimedSerializer:
    if not secret:
        raise RuntimeError("세션 서명용 SECRET_KEY가 설정되지 않았습니다.")
    return URLSafeTimedSerializer(secret_key=secret, salt=SESSION_SALT)


def sign_session_id(sid: str, *, secret: str) -> str:
    return _serializer(secret).dumps({"sid": sid})


def unsign_session_id(token: str, *, secret: str, max_age: int = DEFAULT_SESSION_MAX_AGE) -> Optional[str]:
    """Return the session id inside ``token``, or None if tampered or too old."""
    if not token:
        return None
    try:
        data = _serializer(secret).loads(token, max_age=max_age)
    except (BadSignature, BadTimeSignature):
        return None
    sid = str((data or {}).get("sid") or "").strip() if isinstance(data, dict) else ""
    return sid or None
