from fastapi import APIRouter

from docintel.api.routes import documents, extraction, models, review, schemas, settings, sla, usage

api_router = APIRouter()

api_router.include_router(models.router, prefix="/models", tags=["Models"])
api_router.include_router(extraction.router, prefix="/extraction", tags=["Extraction"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(schemas.router, prefix="/schemas", tags=["Schemas"])
api_router.include_router(review.router, prefix="/review", tags=["Review"])
api_router.include_router(sla.router, prefix="/sla", tags=["SLA"])
api_router.include_router(usage.router, prefix="/usage", tags=["Usage"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
