"""SLA rule and evaluation endpoints."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends

from docintel.api.errors import ERROR_RESPONSES, http_error
from docintel.core.exceptions import AppError
from docintel.dependencies import SessionDep, get_sla_evaluator, get_user_id
from docintel.models.request.office import SlaRuleRequest
from docintel.models.response.office import SlaEvaluationResponse, SlaRuleResponse
from docintel.services.office.sla import SlaEvaluator

router = APIRouter()

EvaluatorDep = Annotated[SlaEvaluator, Depends(get_sla_evaluator)]
UserDep = Annotated[str, Depends(get_user_id)]


@router.get(
    "/rules",
    response_model=List[SlaRuleResponse],
    summary="List SLA rules",
    operation_id="list_sla_rules",
)
async def list_rules(user_id: UserDep, evaluator: EvaluatorDep) -> List[SlaRuleResponse]:
    rules = await evaluator.list_rules(user_id)
    return [SlaRuleResponse.model_validate(rule) for rule in rules]


@router.put(
    "/rules",
    response_model=SlaRuleResponse,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    summary="Create or replace the SLA rule for a document type",
    operation_id="upsert_sla_rule",
)
async def upsert_rule(
    request: SlaRuleRequest,
    user_id: UserDep,
    evaluator: EvaluatorDep,
    db_session: SessionDep,
) -> SlaRuleResponse:
    try:
        rule = await evaluator.upsert_rule(
            user_id,
            request.doc_type,
            request.warning_minutes,
            request.breach_minutes,
            request.enabled,
        )
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return SlaRuleResponse.model_validate(rule)


@router.get(
    "/evaluations/{document_id}",
    response_model=List[SlaEvaluationResponse],
    summary="SLA evaluation history for a document",
    operation_id="list_sla_evaluations",
)
async def list_evaluations(
    document_id: UUID,
    user_id: UserDep,
    evaluator: EvaluatorDep,
) -> List[SlaEvaluationResponse]:
    evaluations = await evaluator.history(document_id, user_id)
    return [SlaEvaluationResponse.model_validate(e) for e in evaluations]
