# taskboard/routers/task_ws.py
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from taskboard.core.config import settings
from taskboard.core.jwt import user_id_from_token
from taskboard.db.session import session_scope
from taskboard.models.user import User
from taskboard.services.task_feed import feed_hub

logger = logging.getLogger(__name__)
router = APIRouter()
ws_router = router
__all__ = ["ws_router", "router"]

# 메시지 타입 상수
MSG_SUBSCRIBED = "subscribed"
MSG_CHANGE = "change"
MSG_PING = "ping"
MSG_PONG = "pong"


def _is_ping(text: str) -> bool:
    t = (text or "").strip()
    if t.lower() == MSG_PING:
        return True
    if t.startswith("{"):
        try:
            obj = json.loads(t)
        except ValueError:
            return False
        return isinstance(obj, dict) and obj.get("type") == MSG_PING
    return False


@router.websocket("/ws/tasks")
async def ws_tasks(websocket: WebSocket):
    qp = websocket.query_params
    token = qp.get("access_token") or qp.get("token")
    user_id = user_id_from_token(token)

    if user_id is not None:
        with session_scope() as db:
            if db.get(User, user_id) is None:
                user_id = None
    if user_id is None:
        logger.warning("WS tasks rejected: no valid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # 서브프로토콜 수락(있으면)
    subproto = websocket.headers.get("sec-websocket-protocol")
    await websocket.accept(subprotocol=subproto if subproto else None)

    send_lock = asyncio.Lock()

    async def send(data: dict) -> None:
        payload = jsonable_encoder(data)
        async with send_lock:
            await websocket.send_json(payload)

    with feed_hub.subscription(user_id) as sub:

        async def sender():
            try:
                while True:
                    event = await sub.get(timeout=settings.FEED_HEARTBEAT_SEC)
                    if event is None:
                        await send({"type": MSG_PING})
                        continue
                    await send({
                        "type": MSG_CHANGE,
                        "kind": event.kind.value,
                        "row": event.row.model_dump(mode="json"),
                    })
            except WebSocketDisconnect:
                pass
            except Exception as e:
                logger.warning("WS tasks sender loop error | %s", e)

        await send({"type": MSG_SUBSCRIBED, "user_id": str(user_id)})
        send_task = asyncio.create_task(sender())

        try:
            while True:
                message = await websocket.receive()
                if message.get("type") == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is not None and _is_ping(text):
                    await send({"type": MSG_PONG})
        except WebSocketDisconnect:
            pass
        except Exception:
            logger.exception("WS tasks fatal error")
        finally:
            send_task.cancel()
            await asyncio.gather(send_task, return_exceptions=True)
            with suppress(Exception):
                await websocket.close()
