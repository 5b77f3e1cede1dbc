# taskboard/services/board.py
"""칸반 보드 파생 뷰. 컬럼별 컬렉션은 따로 저장하지 않고 매번 계산한다."""
from typing import Dict, Iterable, List, Optional, Protocol, TypeVar

from taskboard.models.task import TaskStatus


class _HasStatus(Protocol):
    status: str


T = TypeVar("T", bound=_HasStatus)

DEFAULT_DISPLAY_NAME = "User"


def column_view(tasks: Iterable[T], status: TaskStatus) -> List[T]:
    """원래 순서를 유지한 status 부분열."""
    return [t for t in tasks if t.status == status]


def columns(tasks: Iterable[T]) -> Dict[TaskStatus, List[T]]:
    out: Dict[TaskStatus, List[T]] = {s: [] for s in TaskStatus}
    for t in tasks:
        status = TaskStatus.parse(t.status)
        if status is not None:
            out[status].append(t)
    return out


def open_count(tasks: Iterable[T]) -> int:
    return sum(1 for t in tasks if t.status != TaskStatus.COMPLETED)


def pick_display_name(
    nickname: Optional[str],
    profile_nickname: Optional[str],
    email: Optional[str],
) -> str:
    """메타데이터 닉네임 → 프로필 닉네임 → 이메일 앞부분 → 기본값."""
    for candidate in (nickname, profile_nickname):
        if candidate and candidate.strip():
            return candidate.strip()
    if email and email.split("@", 1)[0]:
        return email.split("@", 1)[0]
    return DEFAULT_DISPLAY_NAME
