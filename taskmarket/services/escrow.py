"""Task Escrow: funding a task from its buyer, paying workers out of it, refunds."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from taskmarket.db.models.accounting import MAX_COINS
from taskmarket.db.models.enums import EntryType, Role, SubmissionStatus, TaskStatus
from taskmarket.db.models.tasks import Submission, Task
from taskmarket.db.session import atomic, expire_cached
from taskmarket.services import accounts
from taskmarket.services.errors import (
    EscrowExhausted,
    ImmutableField,
    InvalidAmount,
    NotCancellable,
    TaskNotFound,
)

logger = logging.getLogger(__name__)

EDITABLE_TASK_FIELDS = frozenset(
    {"task_title", "task_detail", "completion_date", "submission_info", "task_image_url"}
)
LEDGER_TASK_FIELDS = frozenset(
    {
        "required_workers",
        "payable_amount",
        "total_payable",
        "escrow_balance",
        "approved_count",
        "status",
        "buyer_id",
        "buyer_email",
        "buyer_name",
    }
)


def get_task(db: Session, task_id: int, *, for_update: bool = False) -> Task:
    query = select(Task).where(Task.id == task_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    task = db.scalar(query)
    if task is None:
        raise TaskNotFound("Task not found", task_id=task_id)
    return task


def fund_task(
    db: Session,
    *,
    buyer_email: str,
    required_workers: int,
    payable_amount: int,
    metadata: dict[str, Any],
) -> Task:
    """Create a task and move ``required_workers * payable_amount`` coins into its escrow.

    The insert and the debit commit together; on ``InsufficientFunds`` no task
    row survives and the buyer's balance is unchanged.
    """

    if required_workers <= 0:
        raise InvalidAmount("required_workers must be a positive integer")
    if payable_amount <= 0:
        raise InvalidAmount("payable_amount must be a positive integer")

    unknown = set(metadata) - EDITABLE_TASK_FIELDS
    if unknown:
        raise ImmutableField("Unknown task fields", fields=sorted(unknown))

    total_payable = required_workers * payable_amount
    if total_payable > MAX_COINS:
        raise InvalidAmount(
            "Task total exceeds the maximum coin balance",
            total_payable=total_payable,
            maximum=MAX_COINS,
        )

    with atomic(db):
        buyer = accounts.authorize(db, buyer_email, Role.BUYER)

        task = Task(
            buyer_id=buyer.id,
            buyer_email=buyer.email,
            buyer_name=buyer.name,
            required_workers=required_workers,
            payable_amount=payable_amount,
            total_payable=total_payable,
            escrow_balance=total_payable,
            approved_count=0,
            status=TaskStatus.OPEN,
            **metadata,
        )
        db.add(task)
        db.flush()

        accounts.debit(
            db,
            buyer.id,
            total_payable,
            entry_type=EntryType.ESCROW_FUND,
            task_id=task.id,
            details={"required_workers": required_workers, "payable_amount": payable_amount},
            message="Not enough coins. Please purchase more.",
        )

    logger.info(
        "task funded",
        extra={"task_id": task.id, "buyer_id": task.buyer_id, "total_payable": total_payable},
    )
    return task


def release(
    db: Session,
    task_id: int,
    worker_id: int,
    amount: int,
    *,
    submission_id: int | None = None,
) -> Task:
    """Move ``amount`` from a task's escrow to a worker inside the caller's transaction."""

    if amount <= 0:
        raise InvalidAmount("Amount must be a positive integer")

    result = db.execute(
        update(Task)
        .where(Task.id == task_id, Task.escrow_balance >= amount)
        .values(escrow_balance=Task.escrow_balance - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        remaining = db.scalar(select(Task.escrow_balance).where(Task.id == task_id))
        if remaining is None:
            raise TaskNotFound("Task not found", task_id=task_id)
        raise EscrowExhausted(
            "Task escrow cannot cover this payout",
            task_id=task_id,
            remaining=remaining,
            required=amount,
        )

    expire_cached(db, Task, task_id, "escrow_balance")
    accounts.credit(
        db,
        worker_id,
        amount,
        entry_type=EntryType.ESCROW_RELEASE,
        task_id=task_id,
        submission_id=submission_id,
    )
    return get_task(db, task_id)


def _reject_pending(db: Session, task_id: int) -> int:
    pending = db.scalars(
        select(Submission)
        .where(Submission.task_id == task_id, Submission.status == SubmissionStatus.PENDING)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).all()
    decided_at = datetime.now(UTC)
    for submission in pending:
        submission.status = SubmissionStatus.REJECTED
        submission.decided_at = decided_at
    db.flush()
    return len(pending)


def _cancel(db: Session, task_id: int) -> tuple[Task, int, int]:
    task = get_task(db, task_id, for_update=True)
    if task.status == TaskStatus.CANCELLED:
        raise NotCancellable("Task is already cancelled", task_id=task_id)
    if task.approved_count > 0:
        raise NotCancellable("Task has approved submissions", task_id=task_id)

    refund = task.escrow_balance
    result = db.execute(
        update(Task)
        .where(Task.id == task_id, Task.approved_count == 0, Task.escrow_balance == refund)
        .values(escrow_balance=0, status=TaskStatus.CANCELLED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotCancellable("Task changed while cancelling", task_id=task_id)
    expire_cached(db, Task, task_id, "escrow_balance", "status")

    accounts.credit(db, task.buyer_id, refund, entry_type=EntryType.ESCROW_REFUND, task_id=task_id)
    rejected = _reject_pending(db, task_id)
    return task, refund, rejected


def cancel(db: Session, task_id: int) -> int:
    """Refund the remaining escrow to the buyer and reject pending submissions.

    Only allowed before any approval.
    """

    with atomic(db):
        task, refund, rejected = _cancel(db, task_id)

    logger.info(
        "task cancelled",
        extra={"task_id": task_id, "buyer_id": task.buyer_id, "refund": refund, "rejected_submissions": rejected},
    )
    return refund


def remove_task(db: Session, task_id: int) -> int:
    """Cancel a task unless it already is, then delete the row.

    A task that was cancelled earlier has nothing left to refund.
    """

    with atomic(db):
        task = get_task(db, task_id, for_update=True)
        if task.status == TaskStatus.CANCELLED:
            refund, rejected = 0, 0
        else:
            task, refund, rejected = _cancel(db, task_id)
        db.delete(task)

    logger.info(
        "task removed",
        extra={"task_id": task_id, "refund": refund, "rejected_submissions": rejected},
    )
    return refund


def edit_metadata(db: Session, task_id: int, fields: dict[str, Any]) -> Task:
    """Update descriptive fields; ledger fields may only be echoed back unchanged."""

    with atomic(db):
        task = get_task(db, task_id, for_update=True)

        changed_ledger_fields = sorted(
            name for name in set(fields) & LEDGER_TASK_FIELDS if fields[name] != getattr(task, name)
        )
        if changed_ledger_fields:
            raise ImmutableField(
                "Escrow fields cannot be edited after funding",
                fields=changed_ledger_fields,
            )

        unknown = set(fields) - EDITABLE_TASK_FIELDS - LEDGER_TASK_FIELDS
        if unknown:
            raise ImmutableField("Unknown task fields", fields=sorted(unknown))

        for name in EDITABLE_TASK_FIELDS & set(fields):
            setattr(task, name, fields[name])
        db.flush()

    return task


def list_buyer_tasks(db: Session, buyer_email: str) -> list[Task]:
    return list(
        db.scalars(
            select(Task)
            .where(Task.buyer_email == buyer_email)
            .order_by(Task.created_at.desc(), Task.id.desc())
        ).all()
    )


def list_tasks(db: Session) -> list[Task]:
    return list(db.scalars(select(Task).order_by(Task.created_at.desc(), Task.id.desc())).all())
