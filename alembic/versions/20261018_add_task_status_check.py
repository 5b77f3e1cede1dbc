from alembic import op

revision = "20261018_add_task_status_check"
down_revision = "20261018_create_task_tables"  # 위 파일 ID

CHECK_NAME = "ck_task_status"


def upgrade():
    op.create_check_constraint(
        CHECK_NAME,
        "task",
        # 세 컬럼 외 값 금지 → 컬럼 없는 task 없음
        "status IN ('pending', 'in-progress', 'completed')",
    )


def downgrade():
    op.drop_constraint(CHECK_NAME, "task", type_="check")
