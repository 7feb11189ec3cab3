from enum import Enum


class Role(str, Enum):
    BUYER = "buyer"
    WORKER = "worker"
    ADMIN = "admin"


class TaskStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EntryType(str, Enum):
    INITIAL_BALANCE = "initial_balance"
    ESCROW_FUND = "escrow_fund"
    ESCROW_RELEASE = "escrow_release"
    ESCROW_REFUND = "escrow_refund"
    WITHDRAWAL = "withdrawal"
    PURCHASE = "purchase"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values rather than member names."""

    return [member.value for member in enum_cls]
