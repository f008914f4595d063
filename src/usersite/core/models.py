# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ProfileImage:
    data: bytes
    content_type: str


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password_hash: str
    birthdate: Optional[date]
    profile_image: Optional[ProfileImage] = None

    @property
    def has_image(self) -> bool:
        return self.profile_image is not None


@dataclass(frozen=True)
class SessionUser:
    """Snapshot of the user taken at login; not refreshed by profile edits."""

    id: str
    username: str
    birthdate: Optional[date]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "birthdate": self.birthdate.isoformat() if self.birthdate else "",
        }

    @classmethod
    def from_dict(cls, data: dict) -> Optional["SessionUser"]:
        uid = str((data or {}).get("id") or "").strip()
        if not uid:
            return None
        raw_bd = str(data.get("birthdate") or "").strip()
        try:
            bd = date.fromisoformat(raw_bd) if raw_bd else None
        except ValueError:
            bd = None
        return cls(id=uid, username=str(data.get("username") or ""), birthdate=bd)
