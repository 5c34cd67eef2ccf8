"""Row extraction endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from docintel.api.errors import ERROR_RESPONSES
from docintel.dependencies import get_extraction_router, get_user_id
from docintel.models.extraction import ExtractionResult
from docintel.models.request.extraction import ExtractRowsRequest
from docintel.services.extraction.router import ExtractionRouter
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/extract",
    status_code=status.HTTP_200_OK,
    response_model=ExtractionResult,
    responses={400: ERROR_RESPONSES[400]},
    summary="Extract line items from table text",
    description="Route the content to the chosen model with the caller's own key or a managed key. "
    "Failures come back as an unsuccessful result with a category and suggestions.",
    operation_id="extract_rows",
)
async def extract_rows(
    request: ExtractRowsRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    extraction_router: Annotated[ExtractionRouter, Depends(get_extraction_router)],
) -> ExtractionResult:
    """Run one extraction.

    Args:
        request: Content, filename and optional model override
        user_id: Caller identity
        extraction_router: Router that resolves the model and key

    Returns:
        ExtractionResult: Rows on success, categorized error otherwise
    """
    LOGGER.info(
        "Received extraction request",
        extra={"user_id": user_id, "filename": request.filename, "model": request.model_id},
    )
    result = await extraction_router.extract(
        request.to_extraction_request(),
        user_id=user_id,
        model_id=request.model_id,
        document_id=request.document_id,
    )
    # Keep the provider's raw body out of API responses
    return result.model_copy(update={"raw_response": None})
