from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskmarket.db.models.mixins import TimestampMixin
from taskmarket.db.session import Base


class WithdrawRequest(TimestampMixin, Base):
    __tablename__ = "withdraw_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    worker_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False)
    worker_email: Mapped[str] = mapped_column(String(320), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_withdraw_requests_amount_positive"),
        Index("ix_withdraw_requests_worker_id", "worker_id"),
    )
