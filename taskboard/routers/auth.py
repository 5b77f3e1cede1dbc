from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from taskboard.core.config import settings
from taskboard.core.jwt import create_access_token
from taskboard.core.security import hash_password, verify_password
from taskboard.db.session import get_session
from taskboard.dependencies.auth import get_optional_user
from taskboard.models.profile import Profile
from taskboard.models.user import User
from taskboard.schemas.auth import (
    AuthTokenModel,
    SessionResponse,
    SessionUser,
    SignUpRequest,
    SignUpResponse,
)

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])

# ──────────────────────────────────────────────────────────────────────────────
# 내부 헬퍼
# ──────────────────────────────────────────────────────────────────────────────
def _session_user(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, email=user.email, nickname=user.nickname)


def _set_access_cookie_if_enabled(response: Response, jwt_token: str) -> None:
    """
    Access Token을 쿠키로도 내려야 하는 환경(웹)에서만 사용.
    기본값은 False이며, 보안상 AT는 메모리 보관 권장.
    """
    if response is not None and settings.AUTH_SET_COOKIE_ON_POST:
        response.set_cookie(
            key="access_token",
            value=jwt_token,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
            max_age=settings.cookie_max_age,
            path="/",
        )


def _create_profile(db: Session, user: User) -> None:
    """프로필 행 생성 실패는 무시 (닉네임은 메타데이터에 이미 있음)."""
    try:
        db.add(Profile(id=user.user_id, nickname=user.nickname, email=user.email))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("profile creation failed | user_id=%s", user.user_id)


# ──────────────────────────────────────────────────────────────────────────────
# 가입 / 로그인 / 세션 / 로그아웃
# ──────────────────────────────────────────────────────────────────────────────
@auth_router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
def sign_up(body: SignUpRequest, db: Session = Depends(get_session)):
    if db.exec(select(User).where(User.email == body.email)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="이미 가입된 이메일입니다")

    nickname = (body.nickname or "").strip() or None
    user = User(email=body.email, password_hash=hash_password(body.password), nickname=nickname)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="이미 가입된 이메일입니다")
    db.refresh(user)
    logger.info("user signed up | user_id=%s", user.user_id)

    _create_profile(db, user)

    # 가입 직후 세션은 주지 않는다 → 로그인 화면으로
    return SignUpResponse(user=_session_user(user))


@auth_router.post("/token", response_model=AuthTokenModel)
def login_for_access_token(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_session),
):
    email = form_data.username.strip().lower()
    user = db.exec(select(User).where(User.email == email)).first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="잘못된 사용자 이름 또는 비밀번호",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user.user_id)
    _set_access_cookie_if_enabled(response, access_token)
    return AuthTokenModel(
        access_token=access_token,
        expires_in=settings.cookie_max_age,
        user=_session_user(user),
    )


@auth_router.get("/session", response_model=SessionResponse)
def get_session_user(user: Optional[User] = Depends(get_optional_user)):
    """세션이 없으면 user=null (에러 아님)."""
    return SessionResponse(user=_session_user(user) if user else None)


@auth_router.post("/logout")
def logout(response: Response):
    response.delete_cookie("access_token", path="/")
    return {"ok": True}
