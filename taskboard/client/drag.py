# taskboard/client/drag.py
"""
칸반 드래그 → 상태 변경 1회.

드래그 자체는 로컬 상태를 낙관적으로 바꾸지 않는다. store 는
  (a) 실시간 피드의 UPDATE 이벤트, 또는
  (b) 상태 변경 호출의 성공 응답
중 먼저 오는 쪽으로 갱신되고, 나중 것은 같은 행으로 덮어쓰기만 한다.
호출이 실패하면 store 가 그대로이므로 카드는 원래 컬럼으로 돌아간다.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional, Set
from uuid import UUID

from taskboard.client.remote import RemoteServiceError, RemoteTaskService
from taskboard.client.store import LocalTaskStore
from taskboard.models.task import TaskStatus
from taskboard.schemas.task import TaskRead

logger = logging.getLogger(__name__)


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESOLVING = "resolving"


class DragReconciler:
    def __init__(self, store: LocalTaskStore, remote: RemoteTaskService) -> None:
        self.store = store
        self.remote = remote
        self.phase = DragPhase.IDLE
        self.dragged: Optional[TaskRead] = None  # 떠 있는 카드 스냅샷
        self._inflight: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._inflight)

    def start(self, task_id: UUID) -> bool:
        """IDLE → DRAGGING. 모르는 id 면 그대로 IDLE."""
        task = self.store.get(task_id)
        if task is None:
            logger.warning("drag start: unknown task_id=%s", task_id)
            self._reset()
            return False
        self.dragged = task
        self.phase = DragPhase.DRAGGING
        return True

    def cancel(self) -> None:
        self._reset()

    def end(self, over: Optional[str]) -> Optional[asyncio.Task]:
        """
        드롭 처리. 원격 호출이 필요할 때만 백그라운드 task 를 만들어 돌려준다.
        호출 완료는 기다리지 않는다 (실행 중인 이벤트 루프 안에서 불러야 함).
        """
        if self.phase is not DragPhase.DRAGGING or self.dragged is None:
            return None

        dragged = self.dragged
        if over is None:
            self._reset()
            return None

        new_status = TaskStatus.parse(over)
        if new_status is None:
            logger.warning("drag end: invalid drop target %r", over)
            self._reset()
            return None

        # 드래그 중 피드로 바뀌었을 수 있으니 store 의 현재 값과 비교
        current = self.store.get(dragged.id)
        if current is None or new_status == current.status:
            self._reset()
            return None

        self.phase = DragPhase.RESOLVING
        job = asyncio.create_task(self._push_status(dragged.id, new_status))
        self._inflight.add(job)
        job.add_done_callback(self._inflight.discard)
        self._reset()
        return job

    async def _push_status(self, task_id: UUID, new_status: TaskStatus) -> Optional[TaskRead]:
        try:
            row = await self.remote.update_task(task_id, status=new_status)
        except RemoteServiceError as e:
            logger.error("status update failed | task_id=%s status=%s | %s", task_id, new_status.value, e)
            return None
        # 피드가 먼저 왔으면 같은 값으로 덮어쓰기
        self.store.apply_update(row)
        return row

    async def drain(self) -> None:
        """진행 중인 상태 변경 호출을 모두 기다린다."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def _reset(self) -> None:
        self.phase = DragPhase.IDLE
        self.dragged = None
