"""Schema template endpoints."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from docintel.api.errors import ERROR_RESPONSES, http_error
from docintel.core.exceptions import AppError
from docintel.dependencies import SessionDep, get_schema_store, get_user_id
from docintel.models.office import DocType, ResolvedSchema, SchemaTemplateDefinition
from docintel.models.request.office import CreateSchemaRequest, UpdateSchemaRequest
from docintel.models.response.office import SchemaResponse, SchemaVersionResponse
from docintel.services.office.schema_store import SchemaStoreService
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

StoreDep = Annotated[SchemaStoreService, Depends(get_schema_store)]
UserDep = Annotated[str, Depends(get_user_id)]


@router.get(
    "",
    response_model=List[SchemaResponse],
    summary="List the caller's schemas",
    operation_id="list_schemas",
)
async def list_schemas(user_id: UserDep, store: StoreDep) -> List[SchemaResponse]:
    templates = await store.list_schemas(user_id)
    return [SchemaResponse.model_validate(t) for t in templates]


@router.get(
    "/published/{doc_type}",
    response_model=ResolvedSchema,
    summary="Schema used for a document type",
    description="The caller's most recently published schema for the type, "
    "or the built-in default when none is published.",
    operation_id="get_published_schema",
)
async def get_published_schema(doc_type: DocType, user_id: UserDep, store: StoreDep) -> ResolvedSchema:
    return await store.get_published_schema(user_id, doc_type)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SchemaResponse,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    summary="Create a draft schema",
    operation_id="create_schema",
)
async def create_schema(
    request: CreateSchemaRequest,
    user_id: UserDep,
    store: StoreDep,
    db_session: SessionDep,
) -> SchemaResponse:
    try:
        template = await store.create_schema(user_id, request.name, request.definition)
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return SchemaResponse.model_validate(template)


@router.get(
    "/{schema_id}/versions/{version}",
    response_model=SchemaTemplateDefinition,
    responses={404: ERROR_RESPONSES[404]},
    summary="Get one schema version",
    operation_id="get_schema_version",
)
async def get_schema_version(
    schema_id: UUID,
    version: int,
    user_id: UserDep,
    store: StoreDep,
) -> SchemaTemplateDefinition:
    try:
        return await store.get_version(schema_id, user_id, version)
    except AppError as e:
        raise http_error(e)


@router.patch(
    "/{schema_id}",
    response_model=SchemaVersionResponse,
    responses=ERROR_RESPONSES,
    summary="Add a schema version",
    description="Store the definition as the next version. Publishing is a separate step.",
    operation_id="add_schema_version",
)
async def add_schema_version(
    schema_id: UUID,
    request: UpdateSchemaRequest,
    user_id: UserDep,
    store: StoreDep,
    db_session: SessionDep,
) -> SchemaVersionResponse:
    try:
        row = await store.add_version(schema_id, user_id, request.definition)
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return SchemaVersionResponse.model_validate(row)


@router.post(
    "/{schema_id}/publish",
    response_model=SchemaResponse,
    responses=ERROR_RESPONSES,
    summary="Publish the current schema version",
    operation_id="publish_schema",
)
async def publish_schema(
    schema_id: UUID,
    user_id: UserDep,
    store: StoreDep,
    db_session: SessionDep,
) -> SchemaResponse:
    try:
        template = await store.publish(schema_id, user_id)
        await db_session.commit()
    except AppError as e:
        raise http_error(e)
    return SchemaResponse.model_validate(template)
