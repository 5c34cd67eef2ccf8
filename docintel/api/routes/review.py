"""Review task endpoints."""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from docintel.api.errors import ERROR_RESPONSES, http_error
from docintel.core.exceptions import AppError
from docintel.dependencies import SessionDep, get_user_id, get_workflow_service
from docintel.models.office import ReviewTaskStatus
from docintel.models.request.office import AssignReviewRequest, TransitionReviewRequest
from docintel.models.response.office import ReviewEventResponse, ReviewHistoryResponse, ReviewTaskResponse
from docintel.repositories.review_repository import MAX_TASK_PAGE
from docintel.services.office.workflow import ReviewEventLog, ReviewWorkflowService

router = APIRouter()

WorkflowDep = Annotated[ReviewWorkflowService, Depends(get_workflow_service)]
UserDep = Annotated[str, Depends(get_user_id)]


@router.get(
    "/tasks",
    response_model=List[ReviewTaskResponse],
    summary="List review tasks",
    operation_id="list_review_tasks",
)
async def list_tasks(
    user_id: UserDep,
    workflow: WorkflowDep,
    task_status: Annotated[Optional[ReviewTaskStatus], Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=MAX_TASK_PAGE)] = 50,
) -> List[ReviewTaskResponse]:
    tasks = await workflow.list_tasks(user_id, task_status, limit)
    return [ReviewTaskResponse.model_validate(t) for t in tasks]


@router.post(
    "/assign",
    response_model=ReviewTaskResponse,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    summary="Assign a document for review",
    description="Create or update the document's review task and mark it assigned.",
    operation_id="assign_review",
)
async def assign_review(
    request: AssignReviewRequest,
    user_id: UserDep,
    workflow: WorkflowDep,
    db_session: SessionDep,
) -> ReviewTaskResponse:
    try:
        task = await workflow.upsert_task(
            document_id=request.document_id,
            user_id=user_id,
            assigned_to=request.assigned_to,
            due_at=request.due_at,
            status=ReviewTaskStatus.ASSIGNED,
            notes=request.notes,
        )
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return ReviewTaskResponse.model_validate(task)


@router.post(
    "/tasks/{task_id}/transition",
    response_model=ReviewTaskResponse,
    responses=ERROR_RESPONSES,
    summary="Move a review task to a new status",
    description="Updates the task, appends a review event and emits the matching audit entry and event.",
    operation_id="transition_review_task",
)
async def transition_task(
    task_id: UUID,
    request: TransitionReviewRequest,
    user_id: UserDep,
    workflow: WorkflowDep,
    db_session: SessionDep,
) -> ReviewTaskResponse:
    try:
        task = await workflow.transition(task_id, user_id, request.status, note=request.note, payload=request.payload)
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return ReviewTaskResponse.model_validate(task)


@router.get(
    "/tasks/{task_id}/events",
    response_model=ReviewHistoryResponse,
    responses={404: ERROR_RESPONSES[404]},
    summary="Review event history",
    operation_id="get_review_history",
)
async def task_history(task_id: UUID, user_id: UserDep, workflow: WorkflowDep) -> ReviewHistoryResponse:
    try:
        events = await workflow.task_history(task_id, user_id)
    except AppError as e:
        raise http_error(e)
    return ReviewHistoryResponse(
        task_id=task_id,
        current_status=ReviewEventLog.from_events(events).current_status().value,
        events=[ReviewEventResponse.model_validate(event) for event in events],
    )
