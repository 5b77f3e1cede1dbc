# taskboard/client/remote.py
"""
백엔드 REST 호출 래퍼 (httpx.AsyncClient).

모든 실패(네트워크/비 2xx)는 RemoteServiceError 로 통일한다.
호출부는 이걸 잡아서 로그만 남기고 로컬 상태는 건드리지 않는다.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional
from uuid import UUID

import httpx

from taskboard.core.config import settings
from taskboard.models.task import TaskStatus
from taskboard.schemas.auth import ProfileRead
from taskboard.schemas.task import TaskCreate, TaskRead, TaskUpdate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class RemoteServiceError(Exception):
    def __init__(self, operation: str, detail: str, status_code: Optional[int] = None) -> None:
        self.operation = operation
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{operation} failed ({status_code}): {detail}")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)[:200]


class RemoteTaskService:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = (base_url or settings.TASKBOARD_API_URL).rstrip("/")
        self.token = token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "RemoteTaskService":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def request(self, operation: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise RemoteServiceError(operation, str(e) or type(e).__name__) from e
        if response.status_code >= 400:
            raise RemoteServiceError(operation, _error_detail(response), response.status_code)
        return response

    # ── tasks ──────────────────────────────────────────────
    async def list_tasks(self) -> List[TaskRead]:
        """본인 task 전체, 최신 생성순."""
        r = await self.request("list_tasks", "GET", "/tasks/")
        return [TaskRead.model_validate(row) for row in r.json()]

    async def insert_task(
        self,
        title: str,
        description: Optional[str] = None,
        status: TaskStatus = TaskStatus.PENDING,
    ) -> TaskRead:
        body = TaskCreate(title=title, description=description, status=status)
        r = await self.request("insert_task", "POST", "/tasks/", json=body.model_dump(mode="json"))
        return TaskRead.model_validate(r.json())

    async def update_task(self, task_id: UUID, **fields: Any) -> TaskRead:
        body = TaskUpdate(**fields).model_dump(mode="json", exclude_unset=True)
        r = await self.request("update_task", "PATCH", f"/tasks/{task_id}", json=body)
        return TaskRead.model_validate(r.json())

    async def delete_task(self, task_id: UUID) -> None:
        await self.request("delete_task", "DELETE", f"/tasks/{task_id}")

    # ── profiles ───────────────────────────────────────────
    async def get_profile(self, user_id: UUID) -> Optional[ProfileRead]:
        try:
            r = await self.request("get_profile", "GET", f"/profiles/{user_id}")
        except RemoteServiceError as e:
            if e.status_code == 404:
                return None
            raise
        return ProfileRead.model_validate(r.json())
