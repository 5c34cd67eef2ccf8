"""Office document processing endpoint."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from docintel.api.errors import ERROR_RESPONSES, http_error
from docintel.core.exceptions import AppError
from docintel.dependencies import get_config_resolver, get_orchestrator, get_user_id
from docintel.models.office import OfficeProcessingOutcome
from docintel.models.request.office import ProcessDocumentRequest
from docintel.services.extraction.config_resolver import ExtractionConfigResolver
from docintel.services.office.orchestrator import OfficeDocumentOrchestrator
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/{document_id}/process",
    status_code=status.HTTP_200_OK,
    response_model=OfficeProcessingOutcome,
    responses=ERROR_RESPONSES,
    summary="Process an office document",
    description="Classify the document, pick its schema, extract and validate fields, "
    "decide auto-approval and update the review task and SLA state.",
    operation_id="process_office_document",
)
async def process_document(
    document_id: UUID,
    request: ProcessDocumentRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    resolver: Annotated[ExtractionConfigResolver, Depends(get_config_resolver)],
    orchestrator: Annotated[OfficeDocumentOrchestrator, Depends(get_orchestrator)],
) -> OfficeProcessingOutcome:
    """Process one document synchronously.

    Args:
        document_id: Document to process
        request: Filename and extracted text
        user_id: Caller identity
        resolver: Resolves the caller's thresholds
        orchestrator: Runs the processing sequence

    Returns:
        OfficeProcessingOutcome: Every decision made for the document

    Raises:
        HTTPException: If the run fails
    """
    LOGGER.info(
        "Received office processing request",
        extra={"document_id": str(document_id), "user_id": user_id, "filename": request.filename},
    )
    try:
        config = await resolver.resolve_office(user_id)
        return await orchestrator.execute(
            document_id=document_id,
            user_id=user_id,
            filename=request.filename,
            raw_text=request.raw_text,
            config=config,
        )
    except AppError as e:
        LOGGER.error(
            "Office processing failed",
            exc_info=True,
            extra={"document_id": str(document_id), "error": e.message},
        )
        raise http_error(e, detail=str(document_id))
