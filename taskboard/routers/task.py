import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from uuid import UUID

from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.db.session import get_session
from taskboard.dependencies.auth import get_current_user  # JWT 인증 기반 유저 추출
from taskboard.schemas.task import ChangeKind, TaskCreate, TaskRead, TaskUpdate
from taskboard.services.task_feed import feed_hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _owned_task(db: Session, task_id: UUID, user: User) -> Task:
    task = db.get(Task, task_id)
    if not task or task.user_id != user.user_id:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def list_user_tasks(db: Session, user_id: UUID) -> list[Task]:
    """최신 생성순 (created_at desc)."""
    stmt = (
        select(Task)
        .where(Task.user_id == user_id)
        .order_by(Task.created_at.desc())
    )
    return list(db.exec(stmt).all())


@router.get("/", response_model=list[TaskRead])
def get_all_tasks(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return list_user_tasks(db, user.user_id)


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    task = Task(
        user_id=user.user_id,
        title=payload.title,
        description=payload.description,
        status=payload.status.value,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("task created | task_id=%s user_id=%s", task.id, user.user_id)
    feed_hub.publish(ChangeKind.INSERT, task)
    return task


@router.get("/{task_id}", response_model=TaskRead)
def get_task(
    task_id: UUID,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return _owned_task(db, task_id, user)


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: UUID,
    updated: TaskUpdate,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    task = _owned_task(db, task_id, user)

    # 보낸 필드만 반영 (description 은 None 으로 비울 수 있음)
    fields = updated.model_dump(exclude_unset=True)
    if fields.get("title") is None:
        fields.pop("title", None)
    if fields.get("status") is None:
        fields.pop("status", None)
    else:
        fields["status"] = fields["status"].value
    for key, value in fields.items():
        setattr(task, key, value)

    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("task updated | task_id=%s fields=%s", task.id, sorted(fields))
    feed_hub.publish(ChangeKind.UPDATE, task)
    return task


@router.delete("/{task_id}")
def delete_task(
    task_id: UUID,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    task = _owned_task(db, task_id, user)
    old_row = TaskRead.model_validate(task)
    db.delete(task)
    db.commit()
    logger.info("task deleted | task_id=%s", task_id)
    feed_hub.publish(ChangeKind.DELETE, old_row)
    return {"ok": True}
