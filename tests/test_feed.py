import json
from uuid import uuid4

import pytest

from taskboard.client import feed as feed_module
from taskboard.client.dashboard import open_websocket_channel
from taskboard.client.feed import LiveFeedConsumer, WebSocketChannel, parse_change
from taskboard.client.remote import RemoteServiceError, RemoteTaskService
from taskboard.client.store import LocalTaskStore
from taskboard.models.task import TaskStatus
from taskboard.schemas.task import ChangeKind

from .fakes import FakeChannel, FakeWebSocket, make_task, settle


def test_parse_change_validates_tagged_event():
    row = make_task(uuid4(), "x")
    event = parse_change({"type": "change", "kind": "UPDATE", "row": row.model_dump(mode="json")})

    assert event.kind is ChangeKind.UPDATE
    assert event.row.id == row.id


@pytest.mark.parametrize("message", [{"type": "subscribed"}, {"type": "ping"}, {"type": "pong"}])
def test_parse_change_ignores_control_frames(message):
    assert parse_change(message) is None


@pytest.mark.parametrize(
    "message",
    [
        "not a dict",
        {"type": "change", "kind": "UPSERT", "row": {}},
        {"type": "change", "kind": "INSERT", "row": {"id": "nope"}},
        {"type": "mystery"},
    ],
)
def test_parse_change_rejects_malformed_messages(message):
    with pytest.raises(ValueError):
        parse_change(message)


def test_row_with_unknown_status_is_rejected():
    row = make_task(uuid4()).model_dump(mode="json")
    row["status"] = "archived"
    with pytest.raises(ValueError):
        parse_change({"type": "change", "kind": "INSERT", "row": row})


@pytest.mark.asyncio
async def test_consumer_routes_insert_update_delete_to_store():
    uid = uuid4()
    store = LocalTaskStore(uid)
    channel = FakeChannel()
    a = make_task(uid, "a")

    async with LiveFeedConsumer(store, channel) as feed:
        channel.push({"type": "subscribed"})
        channel.push_change("INSERT", a)
        channel.push_change("INSERT", a)
        await settle()
        assert [t.id for t in store.tasks] == [a.id]

        channel.push_change("UPDATE", a.model_copy(update={"status": TaskStatus.IN_PROGRESS}))
        await settle()
        assert store.get(a.id).status is TaskStatus.IN_PROGRESS

        channel.push_change("DELETE", a)
        await settle()
        assert len(store) == 0
        assert feed.applied == 4


@pytest.mark.asyncio
async def test_consumer_skips_bad_messages_and_keeps_running(caplog):
    uid = uuid4()
    store = LocalTaskStore(uid)
    channel = FakeChannel()
    good = make_task(uid, "good")

    async with LiveFeedConsumer(store, channel) as feed:
        channel.push({"type": "change", "kind": "INSERT", "row": {"bogus": True}})
        channel.push_change("INSERT", good)
        await settle()
        assert feed.running
        assert good.id in store

    assert "feed message dropped" in caplog.text


@pytest.mark.asyncio
async def test_exit_stops_loop_and_closes_channel():
    store = LocalTaskStore(uuid4())
    channel = FakeChannel()

    async with LiveFeedConsumer(store, channel) as feed:
        await settle()
        assert feed.running

    assert channel.closed
    assert not feed.running


@pytest.mark.asyncio
async def test_closed_channel_ends_loop_quietly():
    store = LocalTaskStore(uuid4())
    channel = FakeChannel()

    async with LiveFeedConsumer(store, channel) as feed:
        channel.end()
        await settle()
        assert not feed.running


def test_feed_url_switches_scheme():
    assert WebSocketChannel.feed_url("http://api.local:8000/", "t") == "ws://api.local:8000/ws/tasks?access_token=t"
    assert WebSocketChannel.feed_url("https://api.example.com", "t").startswith("wss://api.example.com/ws/tasks")


class BrokenChannel:
    def __init__(self) -> None:
        self.closed = False

    async def receive(self):
        raise RuntimeError("transport blew up")

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_receive_error_ends_feed_without_breaking_exit(caplog):
    channel = BrokenChannel()

    async with LiveFeedConsumer(LocalTaskStore(uuid4()), channel) as feed:
        await settle()
        assert not feed.running

    assert channel.closed
    assert "feed receive failed" in caplog.text


@pytest.mark.asyncio
async def test_websocket_channel_answers_server_ping():
    row = make_task(uuid4(), "live")
    change = {"type": "change", "kind": "INSERT", "row": row.model_dump(mode="json")}
    ws = FakeWebSocket(json.dumps({"type": "ping"}), json.dumps(change), "not json")
    channel = WebSocketChannel("ws://test/ws/tasks?access_token=t")
    channel._ws = ws

    assert await channel.receive() == {"type": "ping"}
    assert [json.loads(s) for s in ws.sent] == [{"type": "pong"}]

    assert await channel.receive() == change
    assert (await channel.receive())["type"] == "invalid"
    assert len(ws.sent) == 1

    # 연결 종료 → None
    assert await channel.receive() is None

    await channel.close()
    assert ws.closed
    assert await channel.receive() is None


@pytest.mark.asyncio
async def test_websocket_channel_feeds_consumer_end_to_end():
    uid = uuid4()
    store = LocalTaskStore(uid)
    row = make_task(uid, "over the wire")
    ws = FakeWebSocket(
        json.dumps({"type": "subscribed", "user_id": str(uid)}),
        json.dumps({"type": "ping"}),
        json.dumps({"type": "change", "kind": "INSERT", "row": row.model_dump(mode="json")}),
    )
    channel = WebSocketChannel("ws://test/ws/tasks?access_token=t")
    channel._ws = ws

    async with LiveFeedConsumer(store, channel) as feed:
        await settle()
        assert not feed.running  # 프레임 소진 후 연결 종료
        assert feed.applied == 1

    assert row.id in store
    assert ws.closed


@pytest.mark.asyncio
async def test_default_channel_factory_connects_with_remote_token(monkeypatch):
    opened = []
    ws = FakeWebSocket()

    async def fake_connect(url):
        opened.append(url)
        return ws

    monkeypatch.setattr(feed_module.websockets, "connect", fake_connect)
    remote = RemoteTaskService("https://api.example.com/", "tok")
    try:
        channel = await open_websocket_channel(remote)
    finally:
        await remote.aclose()

    assert opened == ["wss://api.example.com/ws/tasks?access_token=tok"]
    assert channel._ws is ws


@pytest.mark.asyncio
async def test_connect_failure_becomes_remote_service_error(monkeypatch):
    async def refuse(url):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(feed_module.websockets, "connect", refuse)

    with pytest.raises(RemoteServiceError) as exc:
        await WebSocketChannel.open("http://127.0.0.1:9", "tok")
    assert exc.value.operation == "subscribe"
