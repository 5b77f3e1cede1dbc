from alembic import op
import sqlalchemy as sa

revision = "20261018_create_task_tables"
down_revision = None


def upgrade():
    op.create_table(
        "user",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("nickname", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "profile",
        sa.Column("id", sa.Uuid(), sa.ForeignKey("user.user_id"), primary_key=True),
        sa.Column("nickname", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "task",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user.user_id"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_task_user_id", "task", ["user_id"])
    op.create_index("ix_task_created_at", "task", ["created_at"])


def downgrade():
    op.drop_index("ix_task_created_at", table_name="task")
    op.drop_index("ix_task_user_id", table_name="task")
    op.drop_table("task")
    op.drop_table("profile")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
