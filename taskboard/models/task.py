# taskboard/models/task.py
from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text
from sqlmodel import SQLModel, Field


class TaskStatus(str, Enum):
    """칸반 컬럼. 값이 곧 wire 식별자."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: object) -> Optional["TaskStatus"]:
        try:
            return cls(value)
        except ValueError:
            return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Task(SQLModel, table=True):
    __tablename__ = "task"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in-progress', 'completed')",
            name="ck_task_status",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user.user_id", index=True)
    title: str
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        sa_column=Column(String(20), nullable=False, default=TaskStatus.PENDING.value),
    )
    # tz-aware 만 허용
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
