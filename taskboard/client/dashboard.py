# taskboard/client/dashboard.py
"""
대시보드 뷰 상태 컨테이너.

뷰 최상단에 흩어져 있던 세션/task 상태를 여기 하나로 모은다. 렌더러는
columns() / open_count / display_name 을 읽고, 사용자 의도는
commands(add/edit/delete) 와 drag(start/end) 로만 흘려 보낸다.
"""
from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

from taskboard.client.auth import AuthClient, LoginRequired, resolve_display_name
from taskboard.client.commands import TaskCommands
from taskboard.client.drag import DragReconciler
from taskboard.client.feed import FeedChannel, LiveFeedConsumer, WebSocketChannel
from taskboard.client.remote import RemoteServiceError, RemoteTaskService
from taskboard.client.store import LocalTaskStore
from taskboard.models.task import TaskStatus
from taskboard.schemas.auth import SessionUser
from taskboard.schemas.task import TaskRead
from taskboard.services.board import DEFAULT_DISPLAY_NAME

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[RemoteTaskService], Awaitable[FeedChannel]]


async def open_websocket_channel(remote: RemoteTaskService) -> FeedChannel:
    return await WebSocketChannel.open(remote.base_url, remote.token or "")


class Dashboard:
    def __init__(
        self,
        auth: AuthClient,
        remote: RemoteTaskService,
        channel_factory: ChannelFactory = open_websocket_channel,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.auth = auth
        self.remote = remote
        self.channel_factory = channel_factory
        self.on_change = on_change

        self.user: Optional[SessionUser] = None
        self.display_name: str = DEFAULT_DISPLAY_NAME
        self.store: Optional[LocalTaskStore] = None
        self.commands: Optional[TaskCommands] = None
        self.drag: Optional[DragReconciler] = None
        self.feed: Optional[LiveFeedConsumer] = None

    @asynccontextmanager
    async def open(self) -> AsyncIterator["Dashboard"]:
        """
        세션 확인 → 초기 조회 → 표시 이름 → 피드 구독.
        세션이 없거나 확인에 실패하면 LoginRequired. 블록을 벗어나면 드래그 호출을 기다리고 구독을 해제한다.
        """
        try:
            user = await self.auth.get_session()
        except RemoteServiceError as e:
            logger.error("Error checking session: %s", e)
            raise LoginRequired() from e
        if user is None:
            raise LoginRequired()

        self.user = user
        self.store = LocalTaskStore(user.user_id, on_change=self.on_change)
        self.commands = TaskCommands(self.store, self.remote)
        self.drag = DragReconciler(self.store, self.remote)

        try:
            self.store.load(await self.remote.list_tasks())
        except RemoteServiceError as e:
            logger.error("Error fetching tasks: %s", e)

        self.display_name = await resolve_display_name(user, self.remote)

        async with AsyncExitStack() as stack:
            try:
                channel = await self.channel_factory(self.remote)
            except RemoteServiceError as e:
                # 피드 없이도 직접 응답으로 갱신은 된다
                logger.error("live feed unavailable: %s", e)
            else:
                self.feed = await stack.enter_async_context(LiveFeedConsumer(self.store, channel))
            try:
                yield self
            finally:
                await self.drag.drain()
                self.feed = None

    # ── 렌더러용 읽기 ──────────────────────────────────────
    def columns(self) -> Dict[TaskStatus, List[TaskRead]]:
        if self.store is None:
            return {s: [] for s in TaskStatus}
        return self.store.columns()

    @property
    def open_count(self) -> int:
        return 0 if self.store is None else self.store.open_count()

    async def sign_out(self) -> None:
        try:
            await self.auth.sign_out()
        except RemoteServiceError as e:
            logger.error("Error signing out: %s", e)
