# taskboard/client/feed.py
"""
실시간 피드 소비자.

`async with LiveFeedConsumer(store, channel):` 동안만 구독하고,
블록을 벗어나면 수신 루프를 취소하고 채널을 반드시 닫는다.
"""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress
from typing import Optional, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException
from pydantic import ValidationError

from taskboard.client.remote import RemoteServiceError
from taskboard.client.store import LocalTaskStore
from taskboard.schemas.task import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

CONTROL_TYPES = frozenset({"subscribed", "ping", "pong"})


class FeedChannel(Protocol):
    async def receive(self) -> Optional[dict]:
        """다음 메시지. 채널이 닫혔으면 None."""
        ...

    async def close(self) -> None:
        ...


def parse_change(message: object) -> Optional[ChangeEvent]:
    """
    경계에서 검증. 제어 프레임은 None, 깨진 메시지는 ValueError.
    """
    if not isinstance(message, dict):
        raise ValueError(f"feed message must be an object, got {type(message).__name__}")
    typ = message.get("type", "change")
    if typ in CONTROL_TYPES:
        return None
    if typ != "change":
        raise ValueError(f"unknown feed message type: {typ!r}")
    try:
        return ChangeEvent.model_validate({"kind": message.get("kind"), "row": message.get("row")})
    except ValidationError as e:
        raise ValueError(f"bad change event: {e.error_count()} error(s)") from e


def apply_change(store: LocalTaskStore, event: ChangeEvent) -> bool:
    if event.kind is ChangeKind.INSERT:
        return store.apply_insert(event.row)
    if event.kind is ChangeKind.UPDATE:
        return store.apply_update(event.row)
    return store.apply_delete(event.row.id)


class LiveFeedConsumer:
    def __init__(self, store: LocalTaskStore, channel: FeedChannel) -> None:
        self.store = store
        self.channel = channel
        self.applied = 0
        self._task: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "LiveFeedConsumer":
        self._task = asyncio.create_task(self._run())
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self) -> None:
        try:
            if self._task is not None:
                self._task.cancel()
                with suppress(asyncio.CancelledError):
                    await self._task
        finally:
            self._task = None
            await self.channel.close()

    async def _run(self) -> None:
        while True:
            try:
                message = await self.channel.receive()
            except Exception:
                # 수신 실패 → 피드만 종료
                logger.exception("feed receive failed")
                return
            if message is None:
                logger.info("feed channel closed")
                return
            try:
                event = parse_change(message)
            except ValueError as e:
                logger.warning("feed message dropped | %s", e)
                continue
            if event is None:
                continue
            logger.debug("feed event | kind=%s task_id=%s", event.kind.value, event.row.id)
            apply_change(self.store, event)
            self.applied += 1


class WebSocketChannel:
    """/ws/tasks 에 붙는 FeedChannel 구현 (websockets)."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._ws = None

    @staticmethod
    def feed_url(base_url: str, token: str) -> str:
        base = base_url.rstrip("/")
        if base.startswith("https://"):
            base = "wss://" + base[len("https://"):]
        elif base.startswith("http://"):
            base = "ws://" + base[len("http://"):]
        return f"{base}/ws/tasks?access_token={token}"

    @classmethod
    async def open(cls, base_url: str, token: str) -> "WebSocketChannel":
        channel = cls(cls.feed_url(base_url, token))
        try:
            channel._ws = await websockets.connect(channel.url)
        except (OSError, WebSocketException) as e:
            raise RemoteServiceError("subscribe", str(e) or type(e).__name__) from e
        return channel

    async def receive(self) -> Optional[dict]:
        """다음 메시지. 서버 ping 에는 여기서 pong 으로 답한다."""
        if self._ws is None:
            return None
        try:
            raw = await self._ws.recv()
        except ConnectionClosed:
            return None
        try:
            message = json.loads(raw)
        except ValueError:
            return {"type": "invalid", "raw": str(raw)[:80]}
        if isinstance(message, dict) and message.get("type") == "ping":
            try:
                await self._ws.send(json.dumps({"type": "pong"}))
            except ConnectionClosed:
                return None
        return message

    async def close(self) -> None:
        if self._ws is not None:
            with suppress(Exception):
                await self._ws.close()
            self._ws = None
