# taskboard/services/task_feed.py
"""
사용자별 task 변경 피드 (in-process pub/sub).

라우터는 threadpool 에서 커밋 후 publish() 하고, 구독자는 자기 이벤트 루프의
asyncio.Queue 로 ChangeEvent 를 받는다. 루프 간 전달은 call_soon_threadsafe.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import contextmanager, suppress
from typing import Dict, Iterator, List, Optional
from uuid import UUID

from taskboard.core.config import settings
from taskboard.models.task import Task
from taskboard.schemas.task import ChangeEvent, ChangeKind, TaskRead

logger = logging.getLogger(__name__)


class FeedSubscription:
    def __init__(self, user_id: UUID, loop: asyncio.AbstractEventLoop, maxsize: int) -> None:
        self.user_id = user_id
        self.loop = loop
        self.queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)

    def _deliver(self, event: ChangeEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            # ring-buffer: oldest drop
            with suppress(asyncio.QueueEmpty):
                self.queue.get_nowait()
            self.queue.put_nowait(event)
            logger.warning("feed queue overflow; dropped oldest | user_id=%s", self.user_id)

    async def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """timeout 이 지나면 None."""
        if timeout is None:
            return await self.queue.get()
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class TaskFeedHub:
    def __init__(self, maxsize: int = 100) -> None:
        self.maxsize = maxsize
        self._subs: Dict[UUID, List[FeedSubscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: UUID) -> FeedSubscription:
        """실행 중인 이벤트 루프 안에서 호출해야 한다."""
        sub = FeedSubscription(user_id, asyncio.get_running_loop(), self.maxsize)
        with self._lock:
            self._subs.setdefault(user_id, []).append(sub)
        logger.info("feed subscribe | user_id=%s", user_id)
        return sub

    def unsubscribe(self, sub: FeedSubscription) -> None:
        with self._lock:
            subs = self._subs.get(sub.user_id, [])
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._subs.pop(sub.user_id, None)
        logger.info("feed unsubscribe | user_id=%s", sub.user_id)

    @contextmanager
    def subscription(self, user_id: UUID) -> Iterator[FeedSubscription]:
        sub = self.subscribe(user_id)
        try:
            yield sub
        finally:
            self.unsubscribe(sub)

    def subscriber_count(self, user_id: UUID) -> int:
        with self._lock:
            return len(self._subs.get(user_id, []))

    def publish(self, kind: ChangeKind, row: Task | TaskRead) -> int:
        """커밋이 끝난 행에 대해서만 호출. 전달한 구독자 수를 돌려준다."""
        event = ChangeEvent(kind=kind, row=TaskRead.model_validate(row))
        with self._lock:
            targets = list(self._subs.get(event.row.user_id, []))

        delivered = 0
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub._deliver, event)
                delivered += 1
            except RuntimeError:
                # 루프가 이미 닫힘 → 정리
                logger.warning("feed subscriber loop closed; dropping | user_id=%s", sub.user_id)
                self.unsubscribe(sub)
        logger.debug("feed publish | kind=%s task_id=%s delivered=%d", kind.value, event.row.id, delivered)
        return delivered


feed_hub = TaskFeedHub(maxsize=settings.FEED_SEND_BUFFER)
