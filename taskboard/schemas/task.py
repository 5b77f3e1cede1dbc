# taskboard/schemas/task.py
from enum import Enum
from typing import Optional
from uuid import UUID
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from taskboard.models.task import TaskStatus


def _require_title(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("title must not be blank")
    return v


# ── 생성 요청 ─────────────────────────────────────────────
class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        return _require_title(v)


# ── 부분 수정 요청 ───────────────────────────────────────
class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _require_title(v)


# ── 조회 응답 ────────────────────────────────────────────
class TaskRead(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ── 실시간 피드 ──────────────────────────────────────────
class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """DELETE 의 row 는 삭제 직전 행."""
    kind: ChangeKind
    row: TaskRead
