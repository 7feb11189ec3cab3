from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskmarket.db.models import Account, LedgerEntry
from taskmarket.db.models.enums import Role
from taskmarket.services import escrow, submissions, withdrawals
from taskmarket.services.errors import EscrowExhausted, InsufficientFunds
from taskmarket.services.finance import get_finance_summary


def _assert_conserved(db: Session) -> None:
    summary = get_finance_summary(db)
    assert summary.circulating == summary.expected_circulating

    for account in db.scalars(select(Account)).all():
        journaled = db.scalar(
            select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(LedgerEntry.account_id == account.id)
        )
        assert journaled == account.coins


def test_coins_are_conserved_across_a_task_lifecycle(db_session: Session, create_account) -> None:
    buyer = create_account(email="buyer@test.local", role=Role.BUYER)
    workers = [create_account(email=f"worker{i}@test.local", role=Role.WORKER) for i in range(3)]
    _assert_conserved(db_session)

    withdrawals.purchase_coins(db_session, buyer_email=buyer.email, coins=30)
    task = escrow.fund_task(
        db_session,
        buyer_email=buyer.email,
        required_workers=2,
        payable_amount=25,
        metadata={"task_title": "Review translations"},
    )
    spare = escrow.fund_task(
        db_session,
        buyer_email=buyer.email,
        required_workers=1,
        payable_amount=10,
        metadata={"task_title": "Spare task"},
    )
    _assert_conserved(db_session)

    pending = [
        submissions.submit(
            db_session,
            task_id=task.id,
            worker_email=worker.email,
            worker_name=worker.name,
            proof="done",
        )
        for worker in workers
    ]
    submissions.decide(db_session, pending[0].id, "approved")
    submissions.decide(db_session, pending[1].id, "rejected")
    submissions.decide(db_session, pending[2].id, "approved")
    _assert_conserved(db_session)

    escrow.cancel(db_session, spare.id)
    withdrawals.request_withdrawal(db_session, worker_email=workers[0].email, amount=35, method="bkash")
    _assert_conserved(db_session)

    try:
        withdrawals.request_withdrawal(db_session, worker_email=workers[1].email, amount=11, method="bkash")
    except InsufficientFunds:
        pass
    _assert_conserved(db_session)

    summary = get_finance_summary(db_session)
    assert summary.total_issued == 50 + 3 * 10
    assert summary.total_purchased == 30
    assert summary.total_withdrawn == 35
    assert summary.pending_withdrawals == 35
    assert summary.total_escrow == 0
    assert summary.total_balance == 50 + 30 + 30 - 35
    assert summary.total_accounts == 4


def test_failed_approval_does_not_break_conservation(db_session: Session, create_account) -> None:
    buyer = create_account(email="buyer@test.local", role=Role.BUYER)
    workers = [create_account(email=f"worker{i}@test.local", role=Role.WORKER) for i in range(2)]
    task = escrow.fund_task(
        db_session,
        buyer_email=buyer.email,
        required_workers=1,
        payable_amount=30,
        metadata={"task_title": "Single slot"},
    )
    pending = [
        submissions.submit(db_session, task_id=task.id, worker_email=worker.email, worker_name="", proof="p")
        for worker in workers
    ]
    submissions.decide(db_session, pending[0].id, "approved")

    try:
        submissions.decide(db_session, pending[1].id, "approved")
    except EscrowExhausted:
        pass

    _assert_conserved(db_session)
    assert get_finance_summary(db_session).total_escrow == 0
