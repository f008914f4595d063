import pytest

from usersite.auth.passwords import hash_password, verify_password


def test_hash_is_salted_and_verifies():
    h1 = hash_password("p@ss1234")
    h2 = hash_password("p@ss1234")
    assert h1 != h2
    assert h1.startswith("$argon2")
    assert verify_password(h1, "p@ss1234")
    assert verify_password(h2, "p@ss1234")


def test_verify_rejects():
    h = hash_password("right")
    assert not verify_password(h, "wrong")
    assert not verify_password(h, "")
    assert not verify_password("", "right")
    assert not verify_password("not-a-hash", "right")


def test_empty_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("")
