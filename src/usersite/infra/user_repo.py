# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""MongoDB-backed storage for user documents.

Document shape (one per user in the ``users`` collection)::

    {
        "_id": ObjectId,
        "username": str,              # unique index
        "password": str,              # argon2 hash
        "birthdate": datetime,        # UTC midnight, BSON has no date type
        "profileImage": {"data": Binary, "contentType": str},   # optional
    }
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from bson import Binary, ObjectId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from usersite.core.errors import UsernameTakenError, UserNotFoundError
from usersite.core.models import ProfileImage, User

logger = logging.getLogger(__name__)

COLLECTION_NAME = "users"


def _to_object_id(user_id: str) -> Optional[ObjectId]:
    s = str(user_id or "").strip()
    if not ObjectId.is_valid(s):
        return None
    return ObjectId(s)


def _date_to_bson(d: Optional[date]) -> Optional[datetime]:
    if d is None:
        return None
    return datetime.combine(d, time.min)


def _date_from_bson(v: Any) -> Optional[date]:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    return None


def _image_from_doc(raw: Any) -> Optional[ProfileImage]:
    if not isinstance(raw, dict):
        return None
    data = raw.get("data")
    ctype = str(raw.get("contentType") or "").strip()
    # Both halves or nothing.
    if data is None or not ctype:
        return None
    return ProfileImage(data=bytes(data), content_type=ctype)


def user_from_doc(doc: Dict[str, Any]) -> User:
    return User(
        id=str(doc["_id"]),
        username=str(doc.get("username") or ""),
        password_hash=str(doc.get("password") or ""),
        birthdate=_date_from_bson(doc.get("birthdate")),
        profile_image=_image_from_doc(doc.get("profileImage")),
    )


class UserRepository:
    """Find/save operations over the ``users`` collection."""

    def __init__(self, collection: Collection) -> None:
        self._col = collection

    @classmethod
    def from_uri(cls, uri: str, *, db_name: str = "usersite") -> "UserRepository":
        client: MongoClient = MongoClient(uri)
        # URI path wins over db_name
        db = client.get_default_database(default=db_name)
        logger.info("database configured: %s", db.name)
        return cls(db[COLLECTION_NAME])

    def ensure_indexes(self) -> None:
        self._col.create_index([("username", ASCENDING)], unique=True, name="username_unique")

    def find_all(self) -> List[User]:
        return [user_from_doc(d) for d in self._col.find()]

    def find_by_id(self, user_id: str) -> Optional[User]:
        oid = _to_object_id(user_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return user_from_doc(doc) if doc else None

    def find_by_username(self, username: str) -> Optional[User]:
        doc = self._col.find_one({"username": username})
        return user_from_doc(doc) if doc else None

    def insert(
        self,
        *,
        username: str,
        password_hash: str,
        birthdate: Optional[date],
        profile_image: Optional[ProfileImage] = None,
    ) -> User:
        """Insert a new user; the unique index rejects an existing username."""
        if not password_hash:
            raise ValueError("password_hash가 비어 있습니다.")
        doc: Dict[str, Any] = {
            "username": username,
            "password": password_hash,
            "birthdate": _date_to_bson(birthdate),
        }
        if profile_image is not None:
            doc["profileImage"] = {
                "data": Binary(profile_image.data),
                "contentType": profile_image.content_type,
            }
        try:
            res = self._col.insert_one(doc)
        except DuplicateKeyError as exc:
            raise UsernameTakenError() from exc
        doc["_id"] = res.inserted_id
        return user_from_doc(doc)

    def update_profile(self, user_id: str, *, username: str, birthdate: Optional[date]) -> User:
        oid = _to_object_id(user_id)
        if oid is None:
            raise UserNotFoundError()
        try:
            doc = self._col.find_one_and_update(
                {"_id": oid},
                {"$set": {"username": username, "birthdate": _date_to_bson(birthdate)}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise UsernameTakenError() from exc
        if doc is None:
            raise UserNotFoundError()
        return user_from_doc(doc)

    def get_profile_image(self, user_id: str) -> Optional[ProfileImage]:
        oid = _to_object_id(user_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid}, {"profileImage": 1})
        if not doc:
            return None
        return _image_from_doc(doc.get("profileImage"))

    def count(self) -> int:
        return self._col.count_documents({})
