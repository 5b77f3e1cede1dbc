# taskboard/schemas/auth.py
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


class SignUpRequest(BaseModel):
    email: str
    password: str
    nickname: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email")
        return v

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("password must be at least 6 characters")
        return v


class SessionUser(BaseModel):
    user_id: UUID
    email: str
    nickname: Optional[str] = None


class SignUpResponse(BaseModel):
    user: SessionUser
    session: None = None  # 가입 직후엔 세션 없음 → 로그인 필요


class AuthTokenModel(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUser


class SessionResponse(BaseModel):
    user: Optional[SessionUser] = None


class ProfileRead(BaseModel):
    id: UUID
    nickname: Optional[str] = None
    email: str
