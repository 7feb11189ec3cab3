"""ORM models for the task market ledger."""

from taskmarket.db.models.accounting import Account, LedgerEntry
from taskmarket.db.models.enums import EntryType, Role, SubmissionStatus, TaskStatus
from taskmarket.db.models.tasks import Submission, Task
from taskmarket.db.models.withdrawals import WithdrawRequest

__all__ = [
    "Account",
    "EntryType",
    "LedgerEntry",
    "Role",
    "Submission",
    "SubmissionStatus",
    "Task",
    "TaskStatus",
    "WithdrawRequest",
]
