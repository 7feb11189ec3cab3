"""Withdrawal queue and coin purchases; both act on balances directly, never on escrow."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskmarket.db.models.enums import EntryType, Role
from taskmarket.db.models.withdrawals import WithdrawRequest
from taskmarket.db.session import atomic
from taskmarket.services import accounts
from taskmarket.services.errors import InvalidAmount, WithdrawRequestNotFound

logger = logging.getLogger(__name__)


def request_withdrawal(db: Session, *, worker_email: str, amount: int, method: str) -> WithdrawRequest:
    """Debit the worker now and queue the request for off-system settlement."""

    if amount <= 0:
        raise InvalidAmount("Amount must be a positive integer")

    with atomic(db):
        worker = accounts.authorize(db, worker_email, Role.WORKER)

        request = WithdrawRequest(
            worker_id=worker.id,
            worker_email=worker.email,
            amount=amount,
            method=method,
        )
        db.add(request)
        db.flush()

        accounts.debit(
            db,
            worker.id,
            amount,
            entry_type=EntryType.WITHDRAWAL,
            withdraw_request_id=request.id,
            details={"method": method},
            message="Not enough coins to withdraw",
        )

    logger.info(
        "withdrawal requested",
        extra={"withdraw_request_id": request.id, "worker_id": request.worker_id, "amount": amount},
    )
    return request


def settle(db: Session, request_id: int) -> None:
    with atomic(db):
        request = db.get(WithdrawRequest, request_id)
        if request is None:
            raise WithdrawRequestNotFound("Withdraw request not found", withdraw_request_id=request_id)
        db.delete(request)

    logger.info("withdrawal settled", extra={"withdraw_request_id": request_id})


def purchase_coins(db: Session, *, buyer_email: str, coins: int) -> int:
    if coins <= 0:
        raise InvalidAmount("Coins must be a positive integer")

    with atomic(db):
        buyer = accounts.authorize(db, buyer_email, Role.BUYER)
        balance = accounts.credit(db, buyer.id, coins, entry_type=EntryType.PURCHASE)

    return balance


def list_withdraw_requests(db: Session) -> list[WithdrawRequest]:
    return list(
        db.scalars(
            select(WithdrawRequest).order_by(WithdrawRequest.created_at.desc(), WithdrawRequest.id.desc())
        ).all()
    )
