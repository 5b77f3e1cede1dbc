# taskboard/client/store.py
"""
현재 세션 사용자의 task 를 메모리에 들고 있는 단일 진실 공급원.

변경 진입점은 load / apply_insert / apply_update / apply_delete 네 개뿐이다.
같은 id 가 두 번 들어와도(직접 응답 + 실시간 피드) 중복되지 않는다.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from taskboard.models.task import TaskStatus
from taskboard.schemas.task import TaskRead
from taskboard.services import board

logger = logging.getLogger(__name__)


class LocalTaskStore:
    def __init__(self, user_id: UUID, on_change: Optional[Callable[[], None]] = None) -> None:
        self.user_id = user_id
        self.on_change = on_change
        self._tasks: List[TaskRead] = []

    # ── 읽기 ──────────────────────────────────────────────
    @property
    def tasks(self) -> Tuple[TaskRead, ...]:
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return self._index(task_id) is not None

    def get(self, task_id: UUID) -> Optional[TaskRead]:
        i = self._index(task_id)
        return None if i is None else self._tasks[i]

    def column(self, status: TaskStatus) -> List[TaskRead]:
        return board.column_view(self._tasks, status)

    def columns(self) -> Dict[TaskStatus, List[TaskRead]]:
        return board.columns(self._tasks)

    def open_count(self) -> int:
        return board.open_count(self._tasks)

    # ── 쓰기 ──────────────────────────────────────────────
    def load(self, tasks: Iterable[TaskRead]) -> None:
        """전체 교체. 순서는 받은 그대로 (최신 생성순)."""
        seen = set()
        loaded: List[TaskRead] = []
        for task in tasks:
            if not self._owned(task) or task.id in seen:
                continue
            seen.add(task.id)
            loaded.append(task)
        self._tasks = loaded
        self._changed()

    def apply_insert(self, task: TaskRead) -> bool:
        if not self._owned(task):
            return False
        i = self._index(task.id)
        if i is not None:
            # 같은 id 두 번째 도착 → 교체만
            self._tasks[i] = task
        else:
            self._tasks.insert(0, task)
        self._changed()
        return True

    def apply_update(self, task: TaskRead) -> bool:
        if not self._owned(task):
            return False
        i = self._index(task.id)
        if i is None:
            logger.warning("apply_update: unknown task_id=%s (ignored)", task.id)
            return False
        self._tasks[i] = task
        self._changed()
        return True

    def apply_delete(self, task_id: UUID) -> bool:
        i = self._index(task_id)
        if i is None:
            logger.debug("apply_delete: unknown task_id=%s (ignored)", task_id)
            return False
        del self._tasks[i]
        self._changed()
        return True

    # ── 내부 ──────────────────────────────────────────────
    def _index(self, task_id: object) -> Optional[int]:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _owned(self, task: TaskRead) -> bool:
        if task.user_id != self.user_id:
            logger.warning("foreign task ignored | task_id=%s owner=%s", task.id, task.user_id)
            return False
        return True

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
