from __future__ import annotations

from typing import Any

from sqlalchemy import CheckConstraint, Index, Integer, JSON, String, true
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column

from taskmarket.db.models.enums import EntryType, Role, enum_values
from taskmarket.db.models.mixins import TimestampMixin
from taskmarket.db.session import Base

# Largest value the INTEGER coin columns hold on Postgres (int4).
MAX_COINS = 2_147_483_647


class Account(TimestampMixin, Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False, server_default="")
    profile_pic: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    role: Mapped[Role] = mapped_column(
        SqlEnum(Role, name="role_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    # Mutated only through taskmarket.services.accounts.debit/credit.
    coins: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    is_active: Mapped[bool] = mapped_column(nullable=False, server_default=true())
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_accounts_coins_non_negative"),
        Index("ix_accounts_role", "role"),
    )


class LedgerEntry(TimestampMixin, Base):
    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    task_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    submission_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    withdraw_request_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    entry_type: Mapped[EntryType] = mapped_column(
        SqlEnum(EntryType, name="entry_type_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("ix_ledger_entries_account_id", "account_id"),
        Index("ix_ledger_entries_task_id", "task_id"),
        Index("ix_ledger_entries_submission_id", "submission_id"),
    )
