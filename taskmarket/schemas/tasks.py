from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taskmarket.db.models.accounting import MAX_COINS
from taskmarket.db.models.enums import TaskStatus
from taskmarket.schemas.common import StrictBaseModel

MAX_URL_CHARS = 2_048


class TaskCreateRequest(StrictBaseModel):
    buyer_email: str = Field(min_length=3, max_length=320)
    task_title: str = Field(min_length=1, max_length=200)
    task_detail: str = ""
    required_workers: int = Field(gt=0, le=MAX_COINS)
    payable_amount: int = Field(gt=0, le=MAX_COINS)
    completion_date: str | None = Field(default=None, max_length=64)
    submission_info: str | None = None
    task_image_url: str | None = Field(default=None, max_length=MAX_URL_CHARS)


class TaskUpdateRequest(StrictBaseModel):
    """Descriptive fields are applied; ledger fields are accepted only when unchanged."""

    task_title: str | None = Field(default=None, min_length=1, max_length=200)
    task_detail: str | None = None
    completion_date: str | None = Field(default=None, max_length=64)
    submission_info: str | None = None
    task_image_url: str | None = Field(default=None, max_length=MAX_URL_CHARS)

    required_workers: int | None = None
    payable_amount: int | None = None
    total_payable: int | None = None
    escrow_balance: int | None = None
    approved_count: int | None = None
    status: TaskStatus | None = None
    buyer_email: str | None = None
    buyer_name: str | None = None

    @model_validator(mode="after")
    def validate_required_fields(self) -> TaskUpdateRequest:
        for name in ("task_title", "task_detail"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self


class TaskResponse(BaseModel):
    id: int
    buyer_id: int
    buyer_email: str
    buyer_name: str
    task_title: str
    task_detail: str
    completion_date: str | None = None
    submission_info: str | None = None
    task_image_url: str | None = None
    required_workers: int
    payable_amount: int
    total_payable: int
    escrow_balance: int
    approved_count: int
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskCreatedResponse(BaseModel):
    message: str
    task: TaskResponse


class TaskUpdatedResponse(BaseModel):
    message: str
    task: TaskResponse


class TaskDeletedResponse(BaseModel):
    message: str
    refund: int
