from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column

from taskmarket.db.models.enums import SubmissionStatus, TaskStatus, enum_values
from taskmarket.db.models.mixins import TimestampMixin
from taskmarket.db.session import Base


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    buyer_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False)
    buyer_email: Mapped[str] = mapped_column(String(320), nullable=False)
    buyer_name: Mapped[str] = mapped_column(String(120), nullable=False, server_default="")

    task_title: Mapped[str] = mapped_column(String(200), nullable=False)
    task_detail: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    completion_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    submission_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    task_image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    required_workers: Mapped[int] = mapped_column(Integer, nullable=False)
    payable_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    total_payable: Mapped[int] = mapped_column(Integer, nullable=False)
    escrow_balance: Mapped[int] = mapped_column(Integer, nullable=False)
    approved_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    status: Mapped[TaskStatus] = mapped_column(
        SqlEnum(TaskStatus, name="task_status_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
        server_default=TaskStatus.OPEN.value,
    )

    __table_args__ = (
        CheckConstraint("required_workers > 0", name="ck_tasks_required_workers_positive"),
        CheckConstraint("payable_amount > 0", name="ck_tasks_payable_amount_positive"),
        CheckConstraint("escrow_balance >= 0", name="ck_tasks_escrow_balance_non_negative"),
        CheckConstraint("escrow_balance <= total_payable", name="ck_tasks_escrow_within_total"),
        Index("ix_tasks_buyer_email", "buyer_email"),
        Index("ix_tasks_status", "status"),
    )


class Submission(TimestampMixin, Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    # Plain reference: a removed task leaves its submissions behind.
    task_id: Mapped[int] = mapped_column(Integer, nullable=False)
    task_title: Mapped[str] = mapped_column(String(200), nullable=False)
    buyer_email: Mapped[str] = mapped_column(String(320), nullable=False)
    worker_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False)
    worker_email: Mapped[str] = mapped_column(String(320), nullable=False)
    worker_name: Mapped[str] = mapped_column(String(120), nullable=False, server_default="")
    proof: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[SubmissionStatus] = mapped_column(
        SqlEnum(SubmissionStatus, name="submission_status_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
        server_default=SubmissionStatus.PENDING.value,
    )
    payout_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_submissions_task_id", "task_id"),
        Index("ix_submissions_worker_email", "worker_email"),
        Index("ix_submissions_status", "status"),
    )
