"""Submission state machine: pending -> approved | rejected, paid exactly once."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from taskmarket.db.models.enums import Role, SubmissionStatus, TaskStatus
from taskmarket.db.models.tasks import Submission, Task
from taskmarket.db.session import atomic, expire_cached
from taskmarket.services import accounts, escrow
from taskmarket.services.errors import (
    AlreadyProcessed,
    InvalidDecision,
    SubmissionNotFound,
    TaskClosed,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({SubmissionStatus.APPROVED, SubmissionStatus.REJECTED})


def get_submission(db: Session, submission_id: int) -> Submission:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise SubmissionNotFound("Submission not found", submission_id=submission_id)
    return submission


def submit(
    db: Session,
    *,
    task_id: int,
    worker_email: str,
    worker_name: str,
    proof: str,
) -> Submission:
    with atomic(db):
        task = escrow.get_task(db, task_id)
        if task.status != TaskStatus.OPEN:
            raise TaskClosed("Task is no longer accepting submissions", task_id=task_id, status=task.status.value)

        worker = accounts.authorize(db, worker_email, Role.WORKER)

        submission = Submission(
            task_id=task.id,
            task_title=task.task_title,
            buyer_email=task.buyer_email,
            worker_id=worker.id,
            worker_email=worker.email,
            worker_name=worker_name or worker.name,
            proof=proof,
            status=SubmissionStatus.PENDING,
        )
        db.add(submission)
        db.flush()

    logger.info("submission created", extra={"submission_id": submission.id, "task_id": task_id})
    return submission


def decide(db: Session, submission_id: int, decision: SubmissionStatus | str) -> Submission:
    """Move a pending submission to a terminal state, paying the worker on approval.

    The status flip is a compare-and-swap on ``status = 'pending'``, so a replayed
    or concurrent decision sees ``AlreadyProcessed``. An approval whose payout
    fails rolls the flip back with it.
    """

    try:
        decision = SubmissionStatus(decision)
    except ValueError as exc:
        raise InvalidDecision("Status must be approved or rejected", status=str(decision)) from exc
    if decision not in TERMINAL_STATUSES:
        raise InvalidDecision("Status must be approved or rejected", status=decision.value)

    with atomic(db):
        decided_at = datetime.now(UTC)
        result = db.execute(
            update(Submission)
            .where(Submission.id == submission_id, Submission.status == SubmissionStatus.PENDING)
            .values(status=decision, decided_at=decided_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            expire_cached(db, Submission, submission_id, "status")
            current = get_submission(db, submission_id)
            raise AlreadyProcessed(
                "Submission already processed",
                submission_id=submission_id,
                status=current.status.value,
            )
        expire_cached(db, Submission, submission_id, "status", "decided_at")
        submission = get_submission(db, submission_id)

        if decision == SubmissionStatus.APPROVED:
            _pay_out(db, submission)

    logger.info(
        "submission decided",
        extra={
            "submission_id": submission_id,
            "task_id": submission.task_id,
            "status": decision.value,
            "payout_amount": submission.payout_amount,
        },
    )
    return submission


def _pay_out(db: Session, submission: Submission) -> None:
    task = escrow.get_task(db, submission.task_id, for_update=True)
    if task.status == TaskStatus.CANCELLED:
        raise TaskClosed("Task was cancelled", task_id=task.id, status=task.status.value)
    escrow.release(
        db,
        task.id,
        submission.worker_id,
        task.payable_amount,
        submission_id=submission.id,
    )

    db.execute(
        update(Task)
        .where(Task.id == task.id)
        .values(approved_count=Task.approved_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(task)
    if task.approved_count >= task.required_workers and task.status == TaskStatus.OPEN:
        task.status = TaskStatus.CLOSED

    submission.payout_amount = task.payable_amount
    db.flush()


def list_worker_submissions(db: Session, worker_email: str) -> list[Submission]:
    return list(
        db.scalars(
            select(Submission)
            .where(Submission.worker_email == worker_email)
            .order_by(Submission.created_at.desc(), Submission.id.desc())
        ).all()
    )


def list_task_submissions(db: Session, task_id: int) -> list[Submission]:
    return list(
        db.scalars(
            select(Submission)
            .where(Submission.task_id == task_id)
            .order_by(Submission.created_at.desc(), Submission.id.desc())
        ).all()
    )


def list_submissions(db: Session) -> list[Submission]:
    return list(db.scalars(select(Submission).order_by(Submission.created_at.desc(), Submission.id.desc())).all())
