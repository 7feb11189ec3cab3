from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskmarket.db.models import LedgerEntry, Submission
from taskmarket.db.models.enums import EntryType, Role, SubmissionStatus, TaskStatus
from taskmarket.services import accounts, escrow, submissions
from taskmarket.services.errors import (
    AlreadyProcessed,
    EscrowExhausted,
    InvalidDecision,
    SubmissionNotFound,
    TaskClosed,
    TaskNotFound,
    Unauthorized,
)


@pytest.fixture
def funded_task(db_session: Session, create_account):
    buyer = create_account(email="buyer@test.local", role=Role.BUYER)
    task = escrow.fund_task(
        db_session,
        buyer_email=buyer.email,
        required_workers=2,
        payable_amount=20,
        metadata={"task_title": "Transcribe audio"},
    )
    return buyer, task


def _submit(db: Session, task_id: int, worker_email: str) -> Submission:
    return submissions.submit(
        db,
        task_id=task_id,
        worker_email=worker_email,
        worker_name="",
        proof="https://proof.example/1",
    )


def test_approval_pays_worker_from_escrow(db_session: Session, create_account, funded_task) -> None:
    buyer, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)
    submission = _submit(db_session, task.id, worker.email)

    assert submission.status == SubmissionStatus.PENDING
    assert submission.task_title == "Transcribe audio"
    assert submission.buyer_email == buyer.email
    assert submission.worker_name == "worker"

    decided = submissions.decide(db_session, submission.id, SubmissionStatus.APPROVED)

    assert decided.status == SubmissionStatus.APPROVED
    assert decided.payout_amount == 20
    assert decided.decided_at is not None
    assert accounts.get_balance(db_session, worker.id) == 30
    task = escrow.get_task(db_session, task.id)
    assert task.escrow_balance == 20
    assert task.approved_count == 1
    assert task.status == TaskStatus.OPEN

    release = db_session.scalar(select(LedgerEntry).where(LedgerEntry.entry_type == EntryType.ESCROW_RELEASE))
    assert release.account_id == worker.id
    assert release.submission_id == submission.id
    assert release.amount == 20


def test_second_decision_is_already_processed(db_session: Session, create_account, funded_task) -> None:
    _, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)
    submission = _submit(db_session, task.id, worker.email)
    submissions.decide(db_session, submission.id, "approved")

    for decision in ("approved", "rejected"):
        with pytest.raises(AlreadyProcessed) as exc_info:
            submissions.decide(db_session, submission.id, decision)
        assert exc_info.value.context["status"] == "approved"

    assert accounts.get_balance(db_session, worker.id) == 30
    assert escrow.get_task(db_session, task.id).escrow_balance == 20


def test_rejection_moves_no_coins(db_session: Session, create_account, funded_task) -> None:
    buyer, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)
    submission = _submit(db_session, task.id, worker.email)

    decided = submissions.decide(db_session, submission.id, "rejected")

    assert decided.status == SubmissionStatus.REJECTED
    assert decided.payout_amount is None
    assert accounts.get_balance(db_session, worker.id) == 10
    assert accounts.get_balance(db_session, buyer.id) == 10
    assert escrow.get_task(db_session, task.id).escrow_balance == 40


@pytest.mark.parametrize("decision", ["pending", "maybe"])
def test_decision_must_be_terminal(db_session: Session, create_account, funded_task, decision: str) -> None:
    _, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)
    submission = _submit(db_session, task.id, worker.email)

    with pytest.raises(InvalidDecision):
        submissions.decide(db_session, submission.id, decision)

    assert submissions.get_submission(db_session, submission.id).status == SubmissionStatus.PENDING


def test_decide_unknown_submission_is_not_found(db_session: Session) -> None:
    with pytest.raises(SubmissionNotFound):
        submissions.decide(db_session, 777, "approved")


def test_task_closes_when_required_workers_are_paid(db_session: Session, create_account, funded_task) -> None:
    _, task = funded_task
    workers = [create_account(email=f"worker{i}@test.local", role=Role.WORKER) for i in range(3)]
    pending = [_submit(db_session, task.id, worker.email) for worker in workers]

    submissions.decide(db_session, pending[0].id, "approved")
    submissions.decide(db_session, pending[1].id, "approved")

    task = escrow.get_task(db_session, task.id)
    assert task.status == TaskStatus.CLOSED
    assert task.approved_count == 2
    assert task.escrow_balance == 0

    with pytest.raises(TaskClosed):
        _submit(db_session, task.id, workers[2].email)


def test_overpay_backstop_leaves_submission_pending(db_session: Session, create_account, funded_task) -> None:
    _, task = funded_task
    workers = [create_account(email=f"worker{i}@test.local", role=Role.WORKER) for i in range(3)]
    pending = [_submit(db_session, task.id, worker.email) for worker in workers]
    submissions.decide(db_session, pending[0].id, "approved")
    submissions.decide(db_session, pending[1].id, "approved")

    with pytest.raises(EscrowExhausted):
        submissions.decide(db_session, pending[2].id, "approved")

    assert submissions.get_submission(db_session, pending[2].id).status == SubmissionStatus.PENDING
    assert accounts.get_balance(db_session, workers[2].id) == 10
    assert escrow.get_task(db_session, task.id).approved_count == 2


def test_submit_to_cancelled_task_is_refused(db_session: Session, create_account, funded_task) -> None:
    _, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)
    escrow.cancel(db_session, task.id)

    with pytest.raises(TaskClosed):
        _submit(db_session, task.id, worker.email)


def test_decision_after_cancel_is_already_processed(db_session: Session, create_account, funded_task) -> None:
    buyer, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)
    submission = _submit(db_session, task.id, worker.email)
    escrow.cancel(db_session, task.id)

    with pytest.raises(AlreadyProcessed) as exc_info:
        submissions.decide(db_session, submission.id, "approved")

    assert exc_info.value.context["status"] == "rejected"
    assert accounts.get_balance(db_session, worker.id) == 10
    assert accounts.get_balance(db_session, buyer.id) == 50
    assert db_session.scalar(select(LedgerEntry).where(LedgerEntry.entry_type == EntryType.ESCROW_RELEASE)) is None


def test_submit_requires_worker_and_existing_task(db_session: Session, create_account, funded_task) -> None:
    buyer, task = funded_task
    worker = create_account(email="worker@test.local", role=Role.WORKER)

    with pytest.raises(Unauthorized):
        _submit(db_session, task.id, buyer.email)
    with pytest.raises(TaskNotFound):
        _submit(db_session, task.id + 100, worker.email)

    assert submissions.list_submissions(db_session) == []


def test_submission_listings(db_session: Session, create_account, funded_task) -> None:
    _, task = funded_task
    alice = create_account(email="alice@test.local", role=Role.WORKER)
    bob = create_account(email="bob@test.local", role=Role.WORKER)
    first = _submit(db_session, task.id, alice.email)
    second = _submit(db_session, task.id, bob.email)
    third = _submit(db_session, task.id, alice.email)

    assert [item.id for item in submissions.list_worker_submissions(db_session, alice.email)] == [third.id, first.id]
    assert [item.id for item in submissions.list_task_submissions(db_session, task.id)] == [
        third.id,
        second.id,
        first.id,
    ]
    assert len(submissions.list_submissions(db_session)) == 3
