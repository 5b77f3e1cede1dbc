from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from taskboard.core.jwt import user_id_from_token
from taskboard.db.session import get_session
from taskboard.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


# ✅ 헤더 또는 쿠키에서 토큰을 가져와 사용자 조회 (없으면 None)
def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_session),
) -> Optional[User]:
    jwt_token = token or request.cookies.get("access_token")
    user_id = user_id_from_token(jwt_token)
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="유효하지 않은 인증 정보입니다.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
