# taskboard/client/auth.py
from __future__ import annotations

import logging
from typing import Optional

from taskboard.client.remote import RemoteServiceError, RemoteTaskService
from taskboard.schemas.auth import AuthTokenModel, SessionResponse, SessionUser, SignUpResponse
from taskboard.services.board import pick_display_name

logger = logging.getLogger(__name__)


class LoginRequired(Exception):
    """세션 없음 → 로그인 화면으로 보내야 함 (에러 상태 아님)."""

    def __init__(self, login_path: str = "/login") -> None:
        self.login_path = login_path
        super().__init__(f"login required: {login_path}")


class AuthClient:
    """토큰은 RemoteTaskService 에 보관해서 task 호출과 공유한다."""

    def __init__(self, remote: RemoteTaskService) -> None:
        self.remote = remote

    async def get_session(self) -> Optional[SessionUser]:
        if not self.remote.token:
            return None
        r = await self.remote.request("get_session", "GET", "/auth/session")
        return SessionResponse.model_validate(r.json()).user

    async def sign_up(self, email: str, password: str, nickname: Optional[str] = None) -> SessionUser:
        r = await self.remote.request(
            "sign_up",
            "POST",
            "/auth/signup",
            json={"email": email, "password": password, "nickname": nickname},
        )
        # 가입해도 세션은 없다 → sign_in 필요
        return SignUpResponse.model_validate(r.json()).user

    async def sign_in(self, email: str, password: str) -> SessionUser:
        r = await self.remote.request(
            "sign_in",
            "POST",
            "/auth/token",
            data={"username": email, "password": password},
        )
        auth = AuthTokenModel.model_validate(r.json())
        self.remote.token = auth.access_token
        logger.info("signed in | user_id=%s", auth.user.user_id)
        return auth.user

    async def sign_out(self) -> None:
        try:
            await self.remote.request("sign_out", "POST", "/auth/logout")
        finally:
            self.remote.token = None


async def resolve_display_name(user: SessionUser, remote: RemoteTaskService) -> str:
    """닉네임 메타데이터가 없을 때만 프로필을 1회 조회. 실패해도 기본 이름."""
    profile_nickname = None
    if not user.nickname:
        try:
            profile = await remote.get_profile(user.user_id)
        except RemoteServiceError as e:
            logger.warning("profile lookup failed | %s", e)
            profile = None
        profile_nickname = profile.nickname if profile else None
    return pick_display_name(user.nickname, profile_nickname, user.email)
