import os
import sys
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

tmp_dir = tempfile.mkdtemp()
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tmp_dir, 'test.db')}"
os.environ["ENV"] = "dev"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("FEED_HEARTBEAT_SEC", "5")

from fastapi.testclient import TestClient  # noqa: E402

from taskboard.main import app  # noqa: E402
from taskboard.db.session import create_all_tables  # noqa: E402

create_all_tables()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def sign_up_and_login(client: TestClient, email: str | None = None, password: str = "secret123", nickname: str | None = "tester"):
    """가입 → 로그인. (headers, token, user dict) 반환."""
    email = email or f"{uuid4().hex[:10]}@example.com"
    r = client.post("/auth/signup", json={"email": email, "password": password, "nickname": nickname})
    assert r.status_code == 201, r.text
    r = client.post("/auth/token", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    body = r.json()
    token = body["access_token"]
    return {"Authorization": f"Bearer {token}"}, token, body["user"]


@pytest.fixture()
def auth(client):
    return sign_up_and_login(client)
