from pydantic import BaseModel


class AdminFinanceSummaryResponse(BaseModel):
    total_accounts: int
    total_ledger_entries: int
    total_balance: int
    total_escrow: int
    pending_withdrawals: int
    total_issued: int
    total_purchased: int
    total_withdrawn: int
    circulating: int
    expected_circulating: int
