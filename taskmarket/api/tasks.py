from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from taskmarket.api.dependencies.auth import get_db
from taskmarket.api.dependencies.params import RowId
from taskmarket.api.errors import observe_ledger_outcome
from taskmarket.core.config import get_settings
from taskmarket.schemas.submissions import (
    SubmissionCreatedResponse,
    SubmissionCreateRequest,
    SubmissionDecisionResponse,
    SubmissionResponse,
    SubmissionStatusRequest,
)
from taskmarket.schemas.tasks import (
    TaskCreatedResponse,
    TaskCreateRequest,
    TaskDeletedResponse,
    TaskResponse,
    TaskUpdatedResponse,
    TaskUpdateRequest,
)
from taskmarket.services import escrow, submissions
from taskmarket.services.errors import InsufficientFunds

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("/add", response_model=TaskCreatedResponse, status_code=status.HTTP_201_CREATED)
def add_task(payload: TaskCreateRequest, request: Request, db: Session = Depends(get_db)) -> TaskCreatedResponse:
    metadata = payload.model_dump(include=set(escrow.EDITABLE_TASK_FIELDS))
    try:
        task = escrow.fund_task(
            db,
            buyer_email=payload.buyer_email,
            required_workers=payload.required_workers,
            payable_amount=payload.payable_amount,
            metadata=metadata,
        )
    except InsufficientFunds as exc:
        exc.context["redirect"] = get_settings().payments_redirect
        raise

    observe_ledger_outcome(request, "ok")
    return TaskCreatedResponse(message="Task created successfully", task=TaskResponse.model_validate(task))


@router.get("/my", response_model=list[TaskResponse])
def my_tasks(email: str = Query(min_length=1), db: Session = Depends(get_db)) -> list[TaskResponse]:
    return [TaskResponse.model_validate(task) for task in escrow.list_buyer_tasks(db, email)]


@router.get("/available", response_model=list[TaskResponse])
def available_tasks(db: Session = Depends(get_db)) -> list[TaskResponse]:
    return [TaskResponse.model_validate(task) for task in escrow.list_tasks(db)]


@router.put("/{task_id}", response_model=TaskUpdatedResponse)
def update_task(task_id: RowId, payload: TaskUpdateRequest, db: Session = Depends(get_db)) -> TaskUpdatedResponse:
    task = escrow.edit_metadata(db, task_id, payload.model_dump(exclude_unset=True))
    return TaskUpdatedResponse(message="Task updated successfully", task=TaskResponse.model_validate(task))


@router.delete("/{task_id}", response_model=TaskDeletedResponse)
def delete_task(task_id: RowId, request: Request, db: Session = Depends(get_db)) -> TaskDeletedResponse:
    refund = escrow.remove_task(db, task_id)
    observe_ledger_outcome(request, "ok")
    return TaskDeletedResponse(message="Task deleted successfully", refund=refund)


@router.post("/submissions", response_model=SubmissionCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_submission(payload: SubmissionCreateRequest, db: Session = Depends(get_db)) -> SubmissionCreatedResponse:
    submission = submissions.submit(
        db,
        task_id=payload.task_id,
        worker_email=payload.worker_email,
        worker_name=payload.worker_name,
        proof=payload.proof,
    )
    return SubmissionCreatedResponse(
        message="Submission successful",
        submission=SubmissionResponse.model_validate(submission),
    )


@router.get("/submissions/worker/{email}", response_model=list[SubmissionResponse])
def worker_submissions(email: str, db: Session = Depends(get_db)) -> list[SubmissionResponse]:
    return [SubmissionResponse.model_validate(item) for item in submissions.list_worker_submissions(db, email)]


@router.get("/submissions/task/{task_id}", response_model=list[SubmissionResponse])
def task_submissions(task_id: RowId, db: Session = Depends(get_db)) -> list[SubmissionResponse]:
    return [SubmissionResponse.model_validate(item) for item in submissions.list_task_submissions(db, task_id)]


@router.put("/submissions/{submission_id}/status", response_model=SubmissionDecisionResponse)
def decide_submission(
    submission_id: RowId,
    payload: SubmissionStatusRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> SubmissionDecisionResponse:
    submission = submissions.decide(db, submission_id, payload.status)
    observe_ledger_outcome(request, "ok")
    return SubmissionDecisionResponse(
        message=f"Submission {submission.status.value}",
        submission=SubmissionResponse.model_validate(submission),
    )
