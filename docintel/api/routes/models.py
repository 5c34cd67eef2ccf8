"""Model catalog endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends

from docintel.dependencies import get_config_resolver, get_user_id
from docintel.models.catalog import AVAILABLE_MODELS, PROVIDERS, AIModel, ProviderInfo
from docintel.models.config import ModelAvailability
from docintel.services.extraction.config_resolver import ExtractionConfigResolver

router = APIRouter()


@router.get(
    "",
    response_model=List[ModelAvailability],
    summary="List models available to the caller",
    description="Every catalog model, marked available when the caller has a valid key "
    "for its provider or is eligible for a managed key.",
    operation_id="list_available_models",
)
async def list_models(
    user_id: Annotated[str, Depends(get_user_id)],
    resolver: Annotated[ExtractionConfigResolver, Depends(get_config_resolver)],
) -> List[ModelAvailability]:
    return await resolver.available_models(user_id)


@router.get(
    "/catalog",
    response_model=List[AIModel],
    summary="Full model catalog",
    operation_id="get_model_catalog",
)
async def model_catalog() -> List[AIModel]:
    return list(AVAILABLE_MODELS)


@router.get(
    "/providers",
    response_model=List[ProviderInfo],
    summary="Supported providers",
    operation_id="list_providers",
)
async def list_providers() -> List[ProviderInfo]:
    return list(PROVIDERS.values())
