"""Account Store: balances, roles and the ledger journal.

``debit`` and ``credit`` are single conditional UPDATE statements, so a
balance is never read and then written back. They join the caller's
transaction; the compound operations in the escrow, submission and
withdrawal services commit them through ``atomic``.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from taskmarket.core.config import get_settings
from taskmarket.core.security import hash_password, password_needs_rehash, verify_password
from taskmarket.db.models.accounting import MAX_COINS, Account, LedgerEntry
from taskmarket.db.models.enums import EntryType, Role
from taskmarket.db.session import expire_cached
from taskmarket.services.errors import AccountNotFound, InsufficientFunds, InvalidAmount, Unauthorized

logger = logging.getLogger(__name__)


def record_entry(
    db: Session,
    *,
    account_id: int | None,
    amount: int,
    entry_type: EntryType,
    task_id: int | None = None,
    submission_id: int | None = None,
    withdraw_request_id: int | None = None,
    details: dict[str, Any] | None = None,
) -> LedgerEntry:
    entry = LedgerEntry(
        account_id=account_id,
        amount=amount,
        entry_type=entry_type,
        task_id=task_id,
        submission_id=submission_id,
        withdraw_request_id=withdraw_request_id,
        details=details,
    )
    db.add(entry)
    return entry


def get_account_by_email(db: Session, email: str) -> Account:
    account = db.scalar(select(Account).where(Account.email == email))
    if account is None:
        raise AccountNotFound("Account not found", email=email)
    return account


def require_role(account: Account, *roles: Role) -> Account:
    if account.role not in roles or not account.is_active:
        raise Unauthorized("Unauthorized action")
    return account


def _check_amount(amount: int) -> None:
    if amount <= 0:
        raise InvalidAmount("Amount must be a positive integer")
    if amount > MAX_COINS:
        raise InvalidAmount("Amount exceeds the maximum coin balance", maximum=MAX_COINS)


def get_balance(db: Session, account_id: int) -> int:
    balance = db.scalar(select(Account.coins).where(Account.id == account_id))
    if balance is None:
        raise AccountNotFound("Account not found", account_id=account_id)
    return int(balance)


def debit(
    db: Session,
    account_id: int,
    amount: int,
    *,
    entry_type: EntryType,
    task_id: int | None = None,
    submission_id: int | None = None,
    withdraw_request_id: int | None = None,
    details: dict[str, Any] | None = None,
    message: str = "Not enough coins",
) -> int:
    """Take ``amount`` coins from an account, or fail leaving the balance untouched.

    ``message`` is what the caller wants a refused debit to say.
    """

    _check_amount(amount)

    result = db.execute(
        update(Account)
        .where(Account.id == account_id, Account.coins >= amount)
        .values(coins=Account.coins - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        balance = get_balance(db, account_id)
        raise InsufficientFunds(
            message,
            balance=balance,
            required=amount,
        )

    expire_cached(db, Account, account_id, "coins")
    new_balance = get_balance(db, account_id)
    record_entry(
        db,
        account_id=account_id,
        amount=-amount,
        entry_type=entry_type,
        task_id=task_id,
        submission_id=submission_id,
        withdraw_request_id=withdraw_request_id,
        details=details,
    )
    logger.info(
        "account debited",
        extra={
            "account_id": account_id,
            "amount": amount,
            "entry_type": entry_type.value,
            "balance_after": new_balance,
        },
    )
    return new_balance


def credit(
    db: Session,
    account_id: int,
    amount: int,
    *,
    entry_type: EntryType,
    task_id: int | None = None,
    submission_id: int | None = None,
    withdraw_request_id: int | None = None,
    details: dict[str, Any] | None = None,
) -> int:
    if amount == 0:
        return get_balance(db, account_id)
    _check_amount(amount)

    result = db.execute(
        update(Account)
        .where(Account.id == account_id, Account.coins <= MAX_COINS - amount)
        .values(coins=Account.coins + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        balance = get_balance(db, account_id)
        raise InvalidAmount(
            "Balance would exceed the maximum coin balance",
            balance=balance,
            maximum=MAX_COINS,
        )

    expire_cached(db, Account, account_id, "coins")
    new_balance = get_balance(db, account_id)
    record_entry(
        db,
        account_id=account_id,
        amount=amount,
        entry_type=entry_type,
        task_id=task_id,
        submission_id=submission_id,
        withdraw_request_id=withdraw_request_id,
        details=details,
    )
    logger.info(
        "account credited",
        extra={
            "account_id": account_id,
            "amount": amount,
            "entry_type": entry_type.value,
            "balance_after": new_balance,
        },
    )
    return new_balance


def starting_coins(role: Role) -> int:
    settings = get_settings()
    if role == Role.WORKER:
        return settings.worker_starting_coins
    if role == Role.BUYER:
        return settings.buyer_starting_coins
    return 0


def open_account(
    db: Session,
    *,
    email: str,
    name: str,
    password: str,
    role: Role,
    profile_pic: str | None = None,
) -> Account:
    """Create an account and journal its role-dependent starting balance."""

    account = Account(
        email=email,
        name=name,
        profile_pic=profile_pic,
        role=role,
        coins=0,
        is_active=True,
        password_hash=hash_password(password),
    )
    db.add(account)
    db.flush()

    credit(
        db,
        account.id,
        starting_coins(role),
        entry_type=EntryType.INITIAL_BALANCE,
        details={"role": role.value},
    )
    return account


def authorize(db: Session, email: str, *roles: Role) -> Account:
    """Resolve the caller's account and check its role; an unknown email is unauthorized too."""

    try:
        account = get_account_by_email(db, email)
    except AccountNotFound as exc:
        raise Unauthorized("Unauthorized action") from exc
    return require_role(account, *roles)


def authenticate(db: Session, email: str, password: str) -> Account | None:
    """Check credentials for the login route; ``None`` for any mismatch."""

    account = db.scalar(select(Account).where(Account.email == email))
    if account is None or account.password_hash is None or not account.is_active:
        return None
    if not verify_password(password, account.password_hash):
        return None

    if password_needs_rehash(account.password_hash):
        account.password_hash = hash_password(password)
        db.commit()
    return account
