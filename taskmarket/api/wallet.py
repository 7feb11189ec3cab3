from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskmarket.api.dependencies.auth import get_db
from taskmarket.api.errors import observe_ledger_outcome
from taskmarket.db.models.accounting import LedgerEntry
from taskmarket.schemas.common import MAX_ROW_ID
from taskmarket.schemas.wallet import (
    BalanceResponse,
    LedgerEntryResponse,
    LedgerPageResponse,
    PurchaseRequest,
    PurchaseResponse,
    WithdrawCreatedResponse,
    WithdrawCreateRequest,
    WithdrawRequestResponse,
)
from taskmarket.services import accounts, withdrawals

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


@router.post("/withdraw", response_model=WithdrawCreatedResponse, status_code=status.HTTP_201_CREATED)
def withdraw(payload: WithdrawCreateRequest, request: Request, db: Session = Depends(get_db)) -> WithdrawCreatedResponse:
    withdraw_request = withdrawals.request_withdrawal(
        db,
        worker_email=payload.email,
        amount=payload.amount,
        method=payload.method,
    )
    observe_ledger_outcome(request, "ok")
    return WithdrawCreatedResponse(
        message="Withdrawal request submitted",
        withdraw_request=WithdrawRequestResponse.model_validate(withdraw_request),
        coins=accounts.get_balance(db, withdraw_request.worker_id),
    )


@router.post("/purchase", response_model=PurchaseResponse)
def purchase(payload: PurchaseRequest, request: Request, db: Session = Depends(get_db)) -> PurchaseResponse:
    balance = withdrawals.purchase_coins(db, buyer_email=payload.email, coins=payload.coins)
    observe_ledger_outcome(request, "ok")
    return PurchaseResponse(message="Coins added successfully", coins=balance)


@router.get("/balance", response_model=BalanceResponse)
def balance(email: str = Query(min_length=1), db: Session = Depends(get_db)) -> BalanceResponse:
    account = accounts.get_account_by_email(db, email)
    return BalanceResponse(email=account.email, role=account.role.value, coins=accounts.get_balance(db, account.id))


@router.get("/ledger", response_model=LedgerPageResponse)
def ledger(
    email: str = Query(min_length=1),
    page: int = Query(default=1, ge=1, le=MAX_ROW_ID),
    page_size: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
) -> LedgerPageResponse:
    account = accounts.get_account_by_email(db, email)

    total = int(db.scalar(select(func.count()).select_from(LedgerEntry).where(LedgerEntry.account_id == account.id)) or 0)
    offset = (page - 1) * page_size
    entries = db.scalars(
        select(LedgerEntry)
        .where(LedgerEntry.account_id == account.id)
        .order_by(LedgerEntry.id.desc())
        .offset(offset)
        .limit(page_size)
    ).all()

    return LedgerPageResponse(
        page=page,
        page_size=page_size,
        total=total,
        items=[LedgerEntryResponse.model_validate(entry) for entry in entries],
    )
