from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskmarket.db.models.accounting import Account, LedgerEntry
from taskmarket.db.models.enums import EntryType
from taskmarket.db.models.tasks import Task
from taskmarket.db.models.withdrawals import WithdrawRequest


@dataclass(frozen=True)
class FinanceSummary:
    total_accounts: int
    total_ledger_entries: int
    total_balance: int
    total_escrow: int
    pending_withdrawals: int
    total_issued: int
    total_purchased: int
    total_withdrawn: int

    @property
    def circulating(self) -> int:
        """Coins held in balances or escrow; only issuance, purchases and withdrawals move it."""

        return self.total_balance + self.total_escrow

    @property
    def expected_circulating(self) -> int:
        return self.total_issued + self.total_purchased - self.total_withdrawn


def _sum_entries(db: Session, entry_type: EntryType) -> int:
    return int(
        db.scalar(
            select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(LedgerEntry.entry_type == entry_type)
        )
        or 0
    )


def get_finance_summary(db: Session) -> FinanceSummary:
    total_accounts = int(db.scalar(select(func.count()).select_from(Account)) or 0)
    total_ledger_entries = int(db.scalar(select(func.count()).select_from(LedgerEntry)) or 0)
    total_balance = int(db.scalar(select(func.coalesce(func.sum(Account.coins), 0))) or 0)
    total_escrow = int(db.scalar(select(func.coalesce(func.sum(Task.escrow_balance), 0))) or 0)
    pending_withdrawals = int(db.scalar(select(func.coalesce(func.sum(WithdrawRequest.amount), 0))) or 0)

    return FinanceSummary(
        total_accounts=total_accounts,
        total_ledger_entries=total_ledger_entries,
        total_balance=total_balance,
        total_escrow=total_escrow,
        pending_withdrawals=pending_withdrawals,
        total_issued=_sum_entries(db, EntryType.INITIAL_BALANCE),
        total_purchased=_sum_entries(db, EntryType.PURCHASE),
        total_withdrawn=-_sum_entries(db, EntryType.WITHDRAWAL),
    )
