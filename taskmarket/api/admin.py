from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from taskmarket.api.dependencies.auth import get_db, require_roles
from taskmarket.api.dependencies.params import RowId
from taskmarket.api.errors import observe_ledger_outcome
from taskmarket.db.models.enums import Role
from taskmarket.schemas.admin import AdminFinanceSummaryResponse
from taskmarket.schemas.common import MessageResponse
from taskmarket.schemas.submissions import SubmissionResponse
from taskmarket.schemas.wallet import WithdrawRequestResponse
from taskmarket.services import submissions, withdrawals
from taskmarket.services.finance import get_finance_summary

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_roles(Role.ADMIN))])


@router.get("/withdraw-requests", response_model=list[WithdrawRequestResponse])
def list_withdraw_requests(db: Session = Depends(get_db)) -> list[WithdrawRequestResponse]:
    return [WithdrawRequestResponse.model_validate(item) for item in withdrawals.list_withdraw_requests(db)]


@router.delete("/withdraw-requests/{request_id}", response_model=MessageResponse)
def settle_withdraw_request(request_id: RowId, request: Request, db: Session = Depends(get_db)) -> MessageResponse:
    withdrawals.settle(db, request_id)
    observe_ledger_outcome(request, "ok")
    return MessageResponse(message="Withdraw request settled")


@router.get("/all-submissions", response_model=list[SubmissionResponse])
def all_submissions(db: Session = Depends(get_db)) -> list[SubmissionResponse]:
    return [SubmissionResponse.model_validate(item) for item in submissions.list_submissions(db)]


@router.get("/finance/summary", response_model=AdminFinanceSummaryResponse)
def finance_summary(db: Session = Depends(get_db)) -> AdminFinanceSummaryResponse:
    summary = get_finance_summary(db)
    return AdminFinanceSummaryResponse(
        total_accounts=summary.total_accounts,
        total_ledger_entries=summary.total_ledger_entries,
        total_balance=summary.total_balance,
        total_escrow=summary.total_escrow,
        pending_withdrawals=summary.pending_withdrawals,
        total_issued=summary.total_issued,
        total_purchased=summary.total_purchased,
        total_withdrawn=summary.total_withdrawn,
        circulating=summary.circulating,
        expected_circulating=summary.expected_circulating,
    )
