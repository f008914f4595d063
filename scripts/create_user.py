#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from usersite.config import Settings, configure_logging
from usersite.core.errors import UserSiteError
from usersite.infra.user_repo import UserRepository
from usersite.services.user_service import signup


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    repo = UserRepository.from_uri(settings.database_uri, db_name=settings.db_name)
    repo.ensure_indexes()

    username = input("Username: ").strip()
    birthdate = input("Birthdate [YYYY-MM-DD]: ").strip()

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("비밀번호가 일치하지 않습니다.")

    try:
        user = signup(repo, username=username, password=pw1, birthdate=birthdate)
    except UserSiteError as exc:
        raise SystemExit(exc.message)
    print(f"OK -> {user.username} ({user.id})")


if __name__ == "__main__":
    main()
