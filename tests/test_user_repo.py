from datetime import date

import pytest

from usersite.core.errors import UsernameTakenError, UserNotFoundError
from usersite.core.models import ProfileImage


def _insert(repo, username="alice", image=None):
    return repo.insert(
        username=username,
        password_hash="$argon2id$fake",
        birthdate=date(2000, 1, 1),
        profile_image=image,
    )


def test_insert_generates_id_and_reads_back(repo):
    img = ProfileImage(data=b"\x89PNG...", content_type="image/png")
    user = _insert(repo, image=img)
    assert user.id

    found = repo.find_by_id(user.id)
    assert found == user
    assert found.profile_image == img
    assert repo.find_by_username("alice") == user


def test_unique_username_index(repo):
    _insert(repo)
    with pytest.raises(UsernameTakenError):
        _insert(repo)
    assert repo.count() == 1


def test_insert_requires_password_hash(repo):
    with pytest.raises(ValueError):
        repo.insert(username="alice", password_hash="", birthdate=None)


def test_find_by_id_with_malformed_id(repo):
    assert repo.find_by_id("nope") is None
    assert repo.find_by_id("") is None
    assert repo.get_profile_image("nope") is None


def test_find_all(repo):
    _insert(repo, "a")
    _insert(repo, "b")
    assert sorted(u.username for u in repo.find_all()) == ["a", "b"]


def test_update_profile(repo):
    user = _insert(repo)
    other = _insert(repo, "bob")
    updated = repo.update_profile(user.id, username="alice2", birthdate=date(1999, 9, 9))
    assert updated.username == "alice2"
    assert updated.birthdate == date(1999, 9, 9)

    with pytest.raises(UsernameTakenError):
        repo.update_profile(user.id, username="bob", birthdate=date(1999, 9, 9))
    assert repo.find_by_id(other.id).username == "bob"

    with pytest.raises(UserNotFoundError):
        repo.update_profile("000000000000000000000000", username="x", birthdate=None)


def test_half_stored_image_is_ignored(repo):
    user = _insert(repo)
    repo._col.update_one({"username": "alice"}, {"$set": {"profileImage": {"data": b"x"}}})
    assert repo.get_profile_image(user.id) is None
