from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from taskmarket.db.models.enums import SubmissionStatus
from taskmarket.schemas.common import MAX_ROW_ID, StrictBaseModel

MAX_PROOF_CHARS = 20_000


class SubmissionCreateRequest(StrictBaseModel):
    task_id: int = Field(gt=0, le=MAX_ROW_ID)
    worker_email: str = Field(min_length=3, max_length=320)
    worker_name: str = Field(default="", max_length=120)
    proof: str = Field(min_length=1, max_length=MAX_PROOF_CHARS)


class SubmissionStatusRequest(StrictBaseModel):
    status: Literal["approved", "rejected"]


class SubmissionResponse(BaseModel):
    id: int
    task_id: int
    task_title: str
    buyer_email: str
    worker_id: int
    worker_email: str
    worker_name: str
    proof: str
    status: SubmissionStatus
    payout_amount: int | None = None
    decided_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionCreatedResponse(BaseModel):
    message: str
    submission: SubmissionResponse


class SubmissionDecisionResponse(BaseModel):
    message: str
    submission: SubmissionResponse
