"""User preference, provider key and classification rule endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from docintel.api.errors import ERROR_RESPONSES, http_error
from docintel.core.exceptions import AppError
from docintel.dependencies import SessionDep, get_classification_service, get_settings_service, get_user_id
from docintel.models.catalog import AIProvider
from docintel.models.request.settings import (
    CreateClassificationRuleRequest,
    StoreApiKeyRequest,
    UpdatePreferencesRequest,
)
from docintel.models.response.office import ClassificationRuleResponse
from docintel.models.response.settings import ApiKeyStatusResponse, PreferencesResponse
from docintel.services.extraction.user_settings import UserSettingsService
from docintel.services.office.classification import ClassificationService

router = APIRouter()

SettingsDep = Annotated[UserSettingsService, Depends(get_settings_service)]
ClassificationDep = Annotated[ClassificationService, Depends(get_classification_service)]
UserDep = Annotated[str, Depends(get_user_id)]


@router.put(
    "/preferences",
    response_model=PreferencesResponse,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    summary="Update extraction and review preferences",
    operation_id="update_preferences",
)
async def update_preferences(
    request: UpdatePreferencesRequest,
    user_id: UserDep,
    service: SettingsDep,
    db_session: SessionDep,
) -> PreferencesResponse:
    try:
        row = await service.update_preferences(user_id, request.model_dump(exclude_unset=True))
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return PreferencesResponse.model_validate(row)


@router.put(
    "/api-keys/{provider}",
    response_model=ApiKeyStatusResponse,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    summary="Store a provider API key",
    operation_id="store_api_key",
)
async def store_api_key(
    provider: AIProvider,
    request: StoreApiKeyRequest,
    user_id: UserDep,
    service: SettingsDep,
    db_session: SessionDep,
) -> ApiKeyStatusResponse:
    try:
        row = await service.store_api_key(user_id, provider, request.api_key)
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return ApiKeyStatusResponse.model_validate(row)


@router.get(
    "/classification-rules",
    response_model=List[ClassificationRuleResponse],
    summary="List active classification rules",
    operation_id="list_classification_rules",
)
async def list_classification_rules(
    user_id: UserDep,
    service: ClassificationDep,
) -> List[ClassificationRuleResponse]:
    rules = await service.list_rules(user_id)
    return [ClassificationRuleResponse.model_validate(rule) for rule in rules]


@router.post(
    "/classification-rules",
    response_model=ClassificationRuleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={500: ERROR_RESPONSES[500]},
    summary="Create a classification override rule",
    operation_id="create_classification_rule",
)
async def create_classification_rule(
    request: CreateClassificationRuleRequest,
    user_id: UserDep,
    service: ClassificationDep,
    db_session: SessionDep,
) -> ClassificationRuleResponse:
    try:
        rule = await service.create_rule(user_id, request.to_spec(), name=request.name)
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return ClassificationRuleResponse.model_validate(rule)
