from uuid import uuid4

import pytest

from taskboard.client.auth import LoginRequired, resolve_display_name
from taskboard.client.dashboard import Dashboard
from taskboard.client.remote import RemoteServiceError
from taskboard.models.task import TaskStatus
from taskboard.schemas.auth import ProfileRead, SessionUser

from .fakes import FakeAuth, FakeChannel, FakeRemote, make_task, settle


def _user(nickname=None, email="kim@example.com"):
    return SessionUser(user_id=uuid4(), email=email, nickname=nickname)


@pytest.mark.asyncio
async def test_no_session_requires_login_without_fetching():
    remote = FakeRemote(uuid4())
    dashboard = Dashboard(FakeAuth(None), remote, channel_factory=None)

    with pytest.raises(LoginRequired):
        async with dashboard.open():
            pass

    assert remote.calls == []


@pytest.mark.asyncio
async def test_session_check_failure_sends_to_login(caplog):
    remote = FakeRemote(uuid4())
    auth = FakeAuth(None, error=RemoteServiceError("get_session", "connection refused"))
    dashboard = Dashboard(auth, remote, channel_factory=None)

    with pytest.raises(LoginRequired):
        async with dashboard.open():
            pass

    assert remote.calls == []
    assert "Error checking session" in caplog.text


@pytest.mark.asyncio
async def test_open_loads_tasks_newest_first_and_subscribes():
    user = _user(nickname="Kim")
    remote = FakeRemote(user.user_id)
    older = make_task(user.user_id, "older", minutes=1)
    newer = make_task(user.user_id, "newer", TaskStatus.COMPLETED, minutes=2)
    remote.seed(older, newer)
    channel = FakeChannel()

    async def factory(_remote):
        return channel

    dashboard = Dashboard(FakeAuth(user), remote, channel_factory=factory)
    async with dashboard.open() as board:
        assert [t.title for t in board.store.tasks] == ["newer", "older"]
        assert board.display_name == "Kim"
        assert board.open_count == 1
        assert [t.title for t in board.columns()[TaskStatus.COMPLETED]] == ["newer"]

        channel.push_change("INSERT", make_task(user.user_id, "live", minutes=3))
        await settle()
        assert board.store.tasks[0].title == "live"

    assert channel.closed


@pytest.mark.asyncio
async def test_board_works_without_live_feed():
    user = _user(nickname="Kim")
    remote = FakeRemote(user.user_id)
    task = make_task(user.user_id, "t")
    remote.seed(task)

    async def broken_factory(_remote):
        raise RemoteServiceError("subscribe", "connection refused")

    dashboard = Dashboard(FakeAuth(user), remote, channel_factory=broken_factory)
    async with dashboard.open() as board:
        assert board.feed is None
        board.drag.start(task.id)
        board.drag.end("completed")
    # 블록 종료 시 drain → 직접 응답으로 반영
    assert board.store.get(task.id).status is TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_initial_fetch_failure_leaves_empty_board():
    user = _user(nickname="Kim")
    remote = FakeRemote(user.user_id)
    remote.fail.add("list_tasks")

    async def factory(_remote):
        return FakeChannel()

    async with Dashboard(FakeAuth(user), remote, channel_factory=factory).open() as board:
        assert len(board.store) == 0
        assert all(col == [] for col in board.columns().values())


@pytest.mark.asyncio
async def test_display_name_uses_metadata_before_profile():
    user = _user(nickname="meta")
    remote = FakeRemote(user.user_id)

    assert await resolve_display_name(user, remote) == "meta"
    assert remote.count("get_profile") == 0


@pytest.mark.asyncio
async def test_display_name_falls_back_to_profile_lookup():
    user = _user(nickname=None)
    remote = FakeRemote(user.user_id)
    remote.profile = ProfileRead(id=user.user_id, nickname="from-profile", email=user.email)

    assert await resolve_display_name(user, remote) == "from-profile"
    assert remote.count("get_profile") == 1


@pytest.mark.asyncio
async def test_display_name_default_when_nothing_found():
    user = _user(nickname=None, email="lee@example.com")
    remote = FakeRemote(user.user_id)
    remote.fail.add("get_profile")

    assert await resolve_display_name(user, remote) == "lee"


@pytest.mark.asyncio
async def test_sign_out_delegates_to_auth():
    auth = FakeAuth(_user())
    dashboard = Dashboard(auth, FakeRemote(uuid4()), channel_factory=None)

    await dashboard.sign_out()

    assert auth.signed_out
