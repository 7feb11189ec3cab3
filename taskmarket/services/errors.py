"""Typed outcomes raised by the ledger services.

Every ledger failure is recoverable by the caller. Each class carries the HTTP
status the API layer answers with; ``context`` is merged into the JSON body.
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    status_code = 400
    code = "LEDGER_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class Unauthorized(LedgerError):
    status_code = 403
    code = "UNAUTHORIZED"


class InsufficientFunds(LedgerError):
    code = "INSUFFICIENT_FUNDS"


class InvalidAmount(LedgerError):
    code = "INVALID_AMOUNT"


class InvalidDecision(LedgerError):
    code = "INVALID_DECISION"


class ImmutableField(LedgerError):
    code = "IMMUTABLE_FIELD"


class AlreadyProcessed(LedgerError):
    code = "ALREADY_PROCESSED"


class EscrowExhausted(LedgerError):
    status_code = 409
    code = "ESCROW_EXHAUSTED"


class NotCancellable(LedgerError):
    status_code = 409
    code = "NOT_CANCELLABLE"


class TaskClosed(LedgerError):
    status_code = 409
    code = "TASK_CLOSED"


class NotFound(LedgerError):
    status_code = 404
    code = "NOT_FOUND"


class AccountNotFound(NotFound):
    code = "ACCOUNT_NOT_FOUND"


class TaskNotFound(NotFound):
    code = "TASK_NOT_FOUND"


class SubmissionNotFound(NotFound):
    code = "SUBMISSION_NOT_FOUND"


class WithdrawRequestNotFound(NotFound):
    code = "WITHDRAW_REQUEST_NOT_FOUND"
