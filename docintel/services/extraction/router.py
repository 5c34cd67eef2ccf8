"""Route an extraction request to a provider adapter with the right key."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docintel.core.exceptions import ExtractionRoutingError
from docintel.core.http_client import ProviderHTTPClient
from docintel.models.catalog import AIModel
from docintel.models.config import ResolvedExtractionConfig
from docintel.models.extraction import ExtractionRequest, ExtractionResult, ExtractionSettings
from docintel.services.extraction.adapters import AdapterFactory, ExtractionAdapter, create_adapter
from docintel.services.extraction.config_resolver import ExtractionConfigResolver
from docintel.services.extraction.enrichment import enrich_locale_metadata
from docintel.services.extraction.usage import UsageTracker
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ExtractionRouter:
    """Entry point for row extraction.

    The router resolves a model and key, fills in per-user defaults, calls the
    adapter, records usage and enriches successful results with Swedish
    locale metadata. It never raises for provider or routing failures; the
    returned ``ExtractionResult`` carries the error category instead.

    Example:
        >>> router = ExtractionRouter(session)
        >>> result = await router.extract(request, user_id="user-1")
        >>> result.success, result.key_source
        (True, <KeySource.BYOK: 'byok'>)
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: Optional[ExtractionConfigResolver] = None,
        usage_tracker: Optional[UsageTracker] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        http_client: Optional[ProviderHTTPClient] = None,
    ):
        self.session = session
        self.resolver = resolver or ExtractionConfigResolver(session)
        self.usage_tracker = usage_tracker or UsageTracker(session)
        self.adapter_factory = adapter_factory
        self.http_client = http_client

    def _build_adapter(self, model: AIModel) -> ExtractionAdapter:
        if self.adapter_factory is not None:
            return self.adapter_factory(model.provider, model.id)
        return create_adapter(model.provider, model.id, http_client=self.http_client)

    async def extract(
        self,
        request: ExtractionRequest,
        user_id: str,
        model_id: Optional[str] = None,
        document_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        try:
            config = await self.resolver.resolve(user_id, model_id)
        except ExtractionRoutingError as e:
            LOGGER.warning(
                "Extraction could not be routed",
                extra={"user_id": user_id, "model": e.model_id, "category": e.category.value},
            )
            return ExtractionResult(
                success=False,
                model=e.model_id or model_id or "",
                provider=e.provider or "",
                error=e.message,
                error_category=e.category,
                suggestions=e.suggestions,
            )
        return await self.extract_with_config(request, config, document_id=document_id)

    async def extract_with_config(
        self,
        request: ExtractionRequest,
        config: ResolvedExtractionConfig,
        document_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        """Run an extraction with an already resolved model and key."""
        updates = {}
        if not request.custom_instructions and config.custom_instructions:
            updates["custom_instructions"] = config.custom_instructions
        if request.settings == ExtractionSettings() and config.extraction_settings is not None:
            updates["settings"] = config.extraction_settings
        if updates:
            request = request.model_copy(update=updates)

        adapter = self._build_adapter(config.model)
        result = await adapter.extract(request, config.api_key.get_secret_value())

        await self.usage_tracker.record_extraction(config, result, document_id=document_id)

        if not result.success:
            return result

        enriched = {"key_source": config.key_source}
        metadata = enrich_locale_metadata(result.raw_response)
        if metadata is not None:
            enriched["locale_metadata"] = metadata
        return result.model_copy(update=enriched)
