"""Provider adapters and the provider -> adapter dispatch table."""

from typing import Callable, Dict, Optional, Type

from docintel.core.exceptions import ConfigurationError
from docintel.core.http_client import ProviderHTTPClient
from docintel.models.catalog import AIProvider
from docintel.services.extraction.adapters.anthropic import AnthropicAdapter
from docintel.services.extraction.adapters.base import ExtractionAdapter, ProviderResponse
from docintel.services.extraction.adapters.gemini import GeminiAdapter
from docintel.services.extraction.adapters.mistral import MistralAdapter
from docintel.services.extraction.adapters.openai import OpenAIAdapter

ADAPTERS: Dict[AIProvider, Type[ExtractionAdapter]] = {
    AIProvider.GOOGLE: GeminiAdapter,
    AIProvider.OPENAI: OpenAIAdapter,
    AIProvider.ANTHROPIC: AnthropicAdapter,
    AIProvider.MISTRAL: MistralAdapter,
}

_missing = set(AIProvider) - set(ADAPTERS)
if _missing:
    raise ConfigurationError(f"No extraction adapter registered for: {sorted(p.value for p in _missing)}")

AdapterFactory = Callable[[AIProvider, str], ExtractionAdapter]


def create_adapter(
    provider: AIProvider,
    model_id: str,
    http_client: Optional[ProviderHTTPClient] = None,
) -> ExtractionAdapter:
    """Instantiate the adapter registered for ``provider``."""
    return ADAPTERS[provider](model_id=model_id, http_client=http_client)


__all__ = [
    "ADAPTERS",
    "AdapterFactory",
    "AnthropicAdapter",
    "ExtractionAdapter",
    "GeminiAdapter",
    "MistralAdapter",
    "OpenAIAdapter",
    "ProviderResponse",
    "create_adapter",
]
