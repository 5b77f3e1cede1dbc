# taskboard/client/commands.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from taskboard.client.remote import RemoteServiceError, RemoteTaskService
from taskboard.client.store import LocalTaskStore
from taskboard.models.task import TaskStatus
from taskboard.schemas.task import TaskRead

logger = logging.getLogger(__name__)

_EDITABLE = ("title", "description", "status")


@dataclass
class TaskDraft:
    """새 task 입력 폼 상태."""
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING


class TaskCommands:
    """add / edit / delete. 원격 실패는 로그만 남기고 로컬 상태는 그대로 둔다."""

    def __init__(self, store: LocalTaskStore, remote: RemoteTaskService) -> None:
        self.store = store
        self.remote = remote
        self.draft = TaskDraft()
        self.editing: Optional[TaskRead] = None

    # ── add ────────────────────────────────────────────────
    async def add(self, draft: Optional[TaskDraft] = None) -> Optional[TaskRead]:
        if draft is not None:
            self.draft = draft
        if not self.draft.title.strip():
            return None

        try:
            row = await self.remote.insert_task(
                title=self.draft.title,
                description=self.draft.description,
                status=self.draft.status,
            )
        except RemoteServiceError as e:
            logger.error("Error adding task: %s", e)
            return None

        self.store.apply_insert(row)
        self.draft = TaskDraft()
        return row

    # ── edit ───────────────────────────────────────────────
    def begin_edit(self, task_id: UUID) -> bool:
        task = self.store.get(task_id)
        if task is None:
            return False
        self.editing = task
        return True

    def change_edit(self, **fields: Any) -> None:
        if self.editing is None:
            raise RuntimeError("no task is being edited")
        unknown = set(fields) - set(_EDITABLE)
        if unknown:
            raise ValueError(f"not editable: {sorted(unknown)}")
        if "status" in fields:
            fields["status"] = TaskStatus(fields["status"])
        self.editing = self.editing.model_copy(update=fields)

    def cancel_edit(self) -> None:
        self.editing = None

    async def submit_edit(self) -> bool:
        edited = self.editing
        if edited is None or not edited.title.strip():
            return False

        try:
            await self.remote.update_task(
                edited.id,
                title=edited.title,
                description=edited.description,
                status=edited.status,
            )
        except RemoteServiceError as e:
            logger.error("Error updating task: %s", e)
            return False

        self.store.apply_update(edited)
        self.editing = None
        return True

    # ── delete ─────────────────────────────────────────────
    async def delete(self, task_id: UUID) -> bool:
        try:
            await self.remote.delete_task(task_id)
        except RemoteServiceError as e:
            logger.error("Error deleting task: %s", e)
            return False
        self.store.apply_delete(task_id)
        if self.editing is not None and self.editing.id == task_id:
            self.editing = None
        return True
