"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


role_enum = sa.Enum("buyer", "worker", "admin", name="role_enum", native_enum=False, create_constraint=True)
task_status_enum = sa.Enum(
    "open",
    "closed",
    "cancelled",
    name="task_status_enum",
    native_enum=False,
    create_constraint=True,
)
submission_status_enum = sa.Enum(
    "pending",
    "approved",
    "rejected",
    name="submission_status_enum",
    native_enum=False,
    create_constraint=True,
)
entry_type_enum = sa.Enum(
    "initial_balance",
    "escrow_fund",
    "escrow_release",
    "escrow_refund",
    "withdrawal",
    "purchase",
    name="entry_type_enum",
    native_enum=False,
    create_constraint=True,
)


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("profile_pic", sa.String(length=2048), nullable=True),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("coins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        *_timestamp_columns(),
        sa.CheckConstraint("coins >= 0", name="ck_accounts_coins_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_accounts_role", "accounts", ["role"], unique=False)

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("buyer_id", sa.Integer(), nullable=False),
        sa.Column("buyer_email", sa.String(length=320), nullable=False),
        sa.Column("buyer_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("task_title", sa.String(length=200), nullable=False),
        sa.Column("task_detail", sa.Text(), nullable=False, server_default=""),
        sa.Column("completion_date", sa.String(length=64), nullable=True),
        sa.Column("submission_info", sa.Text(), nullable=True),
        sa.Column("task_image_url", sa.String(length=2048), nullable=True),
        sa.Column("required_workers", sa.Integer(), nullable=False),
        sa.Column("payable_amount", sa.Integer(), nullable=False),
        sa.Column("total_payable", sa.Integer(), nullable=False),
        sa.Column("escrow_balance", sa.Integer(), nullable=False),
        sa.Column("approved_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", task_status_enum, nullable=False, server_default="open"),
        *_timestamp_columns(),
        sa.CheckConstraint("required_workers > 0", name="ck_tasks_required_workers_positive"),
        sa.CheckConstraint("payable_amount > 0", name="ck_tasks_payable_amount_positive"),
        sa.CheckConstraint("escrow_balance >= 0", name="ck_tasks_escrow_balance_non_negative"),
        sa.CheckConstraint("escrow_balance <= total_payable", name="ck_tasks_escrow_within_total"),
        sa.ForeignKeyConstraint(["buyer_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_buyer_email", "tasks", ["buyer_email"], unique=False)
    op.create_index("ix_tasks_status", "tasks", ["status"], unique=False)

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("task_title", sa.String(length=200), nullable=False),
        sa.Column("buyer_email", sa.String(length=320), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("worker_email", sa.String(length=320), nullable=False),
        sa.Column("worker_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("proof", sa.Text(), nullable=False),
        sa.Column("status", submission_status_enum, nullable=False, server_default="pending"),
        sa.Column("payout_amount", sa.Integer(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["worker_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_submissions_task_id", "submissions", ["task_id"], unique=False)
    op.create_index("ix_submissions_worker_email", "submissions", ["worker_email"], unique=False)
    op.create_index("ix_submissions_status", "submissions", ["status"], unique=False)

    op.create_table(
        "withdraw_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("worker_email", sa.String(length=320), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("method", sa.String(length=64), nullable=False),
        *_timestamp_columns(),
        sa.CheckConstraint("amount > 0", name="ck_withdraw_requests_amount_positive"),
        sa.ForeignKeyConstraint(["worker_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_withdraw_requests_worker_id", "withdraw_requests", ["worker_id"], unique=False)

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=True),
        sa.Column("task_id", sa.Integer(), nullable=True),
        sa.Column("submission_id", sa.Integer(), nullable=True),
        sa.Column("withdraw_request_id", sa.Integer(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("entry_type", entry_type_enum, nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ledger_entries_account_id", "ledger_entries", ["account_id"], unique=False)
    op.create_index("ix_ledger_entries_task_id", "ledger_entries", ["task_id"], unique=False)
    op.create_index("ix_ledger_entries_submission_id", "ledger_entries", ["submission_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_ledger_entries_submission_id", table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_task_id", table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_account_id", table_name="ledger_entries")
    op.drop_table("ledger_entries")

    op.drop_index("ix_withdraw_requests_worker_id", table_name="withdraw_requests")
    op.drop_table("withdraw_requests")

    op.drop_index("ix_submissions_status", table_name="submissions")
    op.drop_index("ix_submissions_worker_email", table_name="submissions")
    op.drop_index("ix_submissions_task_id", table_name="submissions")
    op.drop_table("submissions")

    op.drop_index("ix_tasks_status", table_name="tasks")
    op.drop_index("ix_tasks_buyer_email", table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("ix_accounts_role", table_name="accounts")
    op.drop_table("accounts")
