from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from taskboard.db.session import get_session
from taskboard.dependencies.auth import get_optional_user
from taskboard.models.profile import Profile
from taskboard.models.user import User
from taskboard.routers.task import list_user_tasks
from taskboard.schemas.task import TaskRead
from taskboard.services.board import columns, open_count, pick_display_name

router = APIRouter(tags=["Dashboard"])

LOGIN_PATH = "/login"


@router.get("/login")
def login_entry():
    return {"detail": "login required", "token_url": "/auth/token", "signup_url": "/auth/signup"}


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
):
    # 세션 없으면 에러가 아니라 로그인 화면으로
    if user is None:
        return RedirectResponse(url=LOGIN_PATH, status_code=303)

    profile_nickname = None
    if not user.nickname:
        profile = db.get(Profile, user.user_id)
        profile_nickname = profile.nickname if profile else None

    tasks = [TaskRead.model_validate(t) for t in list_user_tasks(db, user.user_id)]
    return {
        "display_name": pick_display_name(user.nickname, profile_nickname, user.email),
        "email": user.email,
        "open_count": open_count(tasks),
        "columns": {
            status.value: [t.model_dump(mode="json") for t in col]
            for status, col in columns(tasks).items()
        },
    }
