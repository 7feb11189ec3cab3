from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskmarket.db.models.accounting import MAX_COINS
from taskmarket.db.models.enums import EntryType
from taskmarket.schemas.common import StrictBaseModel


class WithdrawCreateRequest(StrictBaseModel):
    email: str = Field(min_length=3, max_length=320)
    amount: int = Field(gt=0, le=MAX_COINS)
    method: str = Field(min_length=1, max_length=64)


class WithdrawRequestResponse(BaseModel):
    id: int
    worker_id: int
    worker_email: str
    amount: int
    method: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WithdrawCreatedResponse(BaseModel):
    message: str
    withdraw_request: WithdrawRequestResponse
    coins: int


class PurchaseRequest(StrictBaseModel):
    email: str = Field(min_length=3, max_length=320)
    coins: int = Field(gt=0, le=MAX_COINS)


class PurchaseResponse(BaseModel):
    message: str
    coins: int


class BalanceResponse(BaseModel):
    email: str
    role: str
    coins: int


class LedgerEntryResponse(BaseModel):
    id: int
    amount: int
    entry_type: EntryType
    task_id: int | None = None
    submission_id: int | None = None
    withdraw_request_id: int | None = None
    details: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerPageResponse(BaseModel):
    page: int
    page_size: int
    total: int
    items: list[LedgerEntryResponse]
