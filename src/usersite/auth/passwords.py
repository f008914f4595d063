# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

# Work factor is fixed for every stored hash.
TIME_COST = 3
MEMORY_COST_KIB = 64 * 1024
PARALLELISM = 4

_PH = PasswordHasher(time_cost=TIME_COST, memory_cost=MEMORY_COST_KIB, parallelism=PARALLELISM)


def hash_password(plain: str) -> str:
    """Return a salted argon2 hash of ``plain``."""
    if not plain:
        raise ValueError("비밀번호가 비어 있습니다.")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return _PH.verify(hash_value, plain)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError):
        # Stored value is not a hash we produced.
        return False
