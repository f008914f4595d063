# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from usersite.auth.session import MemorySessionStore, SessionStore, end_session, sign_session_id
from usersite.config import Settings
from usersite.core.errors import SessionError, UserNotFoundError, UserSiteError
from usersite.core.models import ProfileImage, SessionUser
from usersite.infra.user_repo import UserRepository
from usersite.permissions import (
    current_user_optional,
    get_repo,
    get_sessions,
    get_settings,
    load_session_from_request,
    require_user,
)
from usersite.services import user_service

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

SIGNUP_OK = "회원가입이 완료되었습니다!"
SIGNUP_FAILED = "회원가입 중 오류가 발생했습니다."


def _render(request: Request, template_name: str, ctx: Optional[dict] = None, *, status_code: int = 200):
    """TemplateResponse wrapper injecting the session user."""
    base_ctx = {"logged_in_user": current_user_optional(request)}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _server_error(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=500)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


async def _read_upload(upload: Optional[UploadFile]) -> Optional[ProfileImage]:
    """Buffer an optional upload in memory. Browsers send an empty part when no file is picked."""
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    if not data:
        return None
    return ProfileImage(data=data, content_type=upload.content_type or "application/octet-stream")


def create_app(
    settings: Optional[Settings] = None,
    *,
    repo: Optional[UserRepository] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    """Build the web app around explicitly supplied collaborators."""
    settings = settings or Settings.from_env()
    if repo is None:
        repo = UserRepository.from_uri(settings.database_uri, db_name=settings.db_name)
    if sessions is None:
        sessions = MemorySessionStore(max_age=settings.session_max_age)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.repo.ensure_indexes()
        yield

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.repo = repo
    app.state.sessions = sessions

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.middleware("http")
    async def _session_middleware(request: Request, call_next):
        sid, user = load_session_from_request(request)
        request.state.session_id = sid
        request.state.user = user
        return await call_next(request)

    # ------------------ Routes ------------------

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request, repo: UserRepository = Depends(get_repo)):
        try:
            users = repo.find_all()
        except Exception:
            logger.exception("유저 정보 가져오기 오류")
            return _server_error("유저 정보를 가져오는데 오류가 생겼습니다.")
        return _render(request, "home.html", {"users": users})

    @app.get("/signup", response_class=HTMLResponse)
    def signup_get(request: Request):
        return _render(request, "signup.html")

    @app.post("/signup", response_class=HTMLResponse)
    async def signup_post(
        request: Request,
        username: str = Form(""),
        password: str = Form(""),
        birthdate: str = Form(""),
        profileImage: UploadFile | None = File(None),
        repo: UserRepository = Depends(get_repo),
    ):
        try:
            image = await _read_upload(profileImage)
            user_service.signup(
                repo,
                username=username,
                password=password,
                birthdate=birthdate,
                image=image,
            )
        except UserSiteError as exc:
            return _render(
                request,
                "signup.html",
                {"error_message": exc.message, "username": username, "birthdate": birthdate},
                status_code=exc.status_code,
            )
        except Exception:
            logger.exception("회원가입 오류")
            return _render(request, "signup.html", {"error_message": SIGNUP_FAILED}, status_code=500)
        return _render(request, "signup.html", {"success_message": SIGNUP_OK})

    @app.get("/login", response_class=HTMLResponse)
    def login_get(request: Request):
        u = current_user_optional(request)
        if u:
            return _redirect(f"/profile/{u.id}")
        return _render(request, "login.html")

    @app.post("/login")
    def login_post(
        request: Request,
        username: str = Form(""),
        password: str = Form(""),
        repo: UserRepository = Depends(get_repo),
        sessions: SessionStore = Depends(get_sessions),
        settings: Settings = Depends(get_settings),
    ):
        try:
            user = user_service.authenticate(repo, username=username, password=password)
        except UserSiteError as exc:
            return _render(
                request,
                "login.html",
                {"error_message": exc.message, "username": username},
                status_code=401,
            )
        except Exception:
            logger.exception("로그인 오류")
            return _server_error("로그인 중 오류가 발생했습니다.")

        # Drop any session this browser already had before issuing a new id.
        old_sid = getattr(request.state, "session_id", None)
        if old_sid:
            sessions.destroy(old_sid)
        sid = sessions.create({"user": user_service.session_user_for(user).to_dict()})
        logger.info("login: %s", user.username)

        resp = _redirect(f"/profile/{user.id}")
        resp.set_cookie(
            settings.cookie_name,
            sign_session_id(sid, secret=settings.secret_key),
            max_age=settings.session_max_age,
            **settings.cookie_settings(),
        )
        return resp

    @app.get("/profile", response_class=HTMLResponse)
    def my_profile(request: Request, repo: UserRepository = Depends(get_repo)):
        me = current_user_optional(request)
        if not me:
            return _redirect("/login")
        try:
            user = repo.find_by_id(me.id)
        except Exception:
            logger.exception("프로필 페이지 오류")
            return _server_error("프로필 페이지 로딩 중 오류가 발생했습니다.")
        if user is None:
            return PlainTextResponse(UserNotFoundError.default_message, status_code=404)
        return _render(request, "profile.html", {"user": user, "is_same_user": True})

    @app.post("/logout")
    def logout_post(
        request: Request,
        sessions: SessionStore = Depends(get_sessions),
        settings: Settings = Depends(get_settings),
    ):
        sid = getattr(request.state, "session_id", None)
        if not sid:
            return _redirect("/")
        try:
            end_session(sessions, sid)
        except SessionError as exc:
            logger.exception("세션 제거 오류")
            return _server_error(exc.message)
        logger.info("logout: %s", getattr(request.state.user, "username", ""))
        resp = _redirect("/")
        resp.delete_cookie(settings.cookie_name)
        return resp

    @app.get("/profile-image/{user_id}")
    def profile_image(user_id: str, repo: UserRepository = Depends(get_repo)):
        try:
            image = repo.get_profile_image(user_id)
        except Exception:
            logger.exception("이미지 불러오기 오류")
            return _server_error("이미지 불러오기에 오류가 발생했습니다.")
        if image is None:
            return PlainTextResponse("이미지를 찾을 수 없습니다.", status_code=404)
        return Response(content=image.data, media_type=image.content_type)

    @app.get("/profile/{user_id}", response_class=HTMLResponse)
    def profile(request: Request, user_id: str, repo: UserRepository = Depends(get_repo)):
        try:
            user = repo.find_by_id(user_id)
        except Exception:
            logger.exception("프로필 페이지 오류")
            return _server_error("프로필 페이지 로딩 중 오류가 발생했습니다.")
        if user is None:
            return PlainTextResponse("유저를 찾을 수 없습니다.", status_code=404)
        same = user_service.is_same_user(user.id, current_user_optional(request))
        return _render(request, "profile.html", {"user": user, "is_same_user": same})

    @app.get("/edit-profile", response_class=HTMLResponse)
    def edit_profile_get(
        request: Request,
        me: SessionUser = Depends(require_user),
        repo: UserRepository = Depends(get_repo),
    ):
        try:
            user = repo.find_by_id(me.id)
        except Exception:
            logger.exception("프로필 수정 페이지 오류")
            return _server_error("프로필 수정 중 오류 발생")
        if user is None:
            return PlainTextResponse(UserNotFoundError.default_message, status_code=404)
        return _render(request, "edit_profile.html", {"user": user})

    @app.post("/update-profile")
    def update_profile_post(
        request: Request,
        username: str = Form(""),
        birthdate: str = Form(""),
        me: SessionUser = Depends(require_user),
        repo: UserRepository = Depends(get_repo),
    ):
        try:
            user_service.update_profile(repo, me, username=username, birthdate=birthdate)
        except UserNotFoundError as exc:
            return PlainTextResponse(exc.message, status_code=404)
        except UserSiteError as exc:
            error = exc
        except Exception:
            logger.exception("프로필 수정 오류")
            return _server_error("프로필 수정 중 오류 발생")
        else:
            return _redirect(f"/profile/{me.id}")

        try:
            current = repo.find_by_id(me.id)
        except Exception:
            logger.exception("프로필 수정 오류")
            return _server_error("프로필 수정 중 오류 발생")
        return _render(
            request,
            "edit_profile.html",
            {"user": current, "error_message": error.message, "username": username, "birthdate": birthdate},
            status_code=error.status_code,
        )

    @app.get("/cgv", response_class=HTMLResponse)
    def cgv(request: Request):
        return _render(request, "cgv.html")

    return app
