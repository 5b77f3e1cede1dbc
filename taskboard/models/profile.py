from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from taskboard.models.task import utc_now


class Profile(SQLModel, table=True):
    id: UUID = Field(foreign_key="user.user_id", primary_key=True)
    nickname: Optional[str] = None
    email: str
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
