"""Adapter contract shared by every extraction provider.

Each provider subclass only knows how to shape its HTTP payload and where to
find the answer text and token counts in the response. Prompt building,
response parsing, row normalization, costing and error tagging live here so
all providers behave the same way.
"""

import base64
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from docintel.core.config import settings
from docintel.core.exceptions import (
    APIClientError,
    APITimeoutError,
    ExtractionErrorCategory,
    error_suggestions,
)
from docintel.core.http_client import ProviderHTTPClient
from docintel.models.catalog import AIModel, AIProvider, estimate_cost, get_model_by_id
from docintel.models.extraction import (
    ContentKind,
    ExtractedRow,
    ExtractionRequest,
    ExtractionResult,
    TokenUsage,
)
from docintel.services.extraction.prompt import build_prompt_for_request
from docintel.utils.json_parser import parse_extraction_response
from docintel.utils.logging import get_logger
from docintel.utils.numbers import to_float

LOGGER = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"


@dataclass
class ProviderResponse:
    """Answer text and token usage pulled out of a provider response."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0


def detect_image_mime(data: bytes) -> str:
    """Guess an image MIME type from its magic bytes (PNG when unsure)."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"


def media_type_for(request: ExtractionRequest) -> str:
    if request.content_kind == ContentKind.PDF:
        return PDF_MIME_TYPE
    return detect_image_mime(request.content if isinstance(request.content, bytes) else b"")


def encode_content(request: ExtractionRequest) -> str:
    """Base64 of the binary content."""
    content = request.content if isinstance(request.content, bytes) else request.content.encode("utf-8")
    return base64.b64encode(content).decode("ascii")


def normalize_item(item: Dict[str, Any]) -> ExtractedRow:
    """Turn one raw model item into an ``ExtractedRow``.

    Missing or negative weight becomes 0, a missing unit becomes ``kg`` and
    only a real JSON ``true`` marks a row hazardous.
    """
    weight = to_float(item.get("weightKg", item.get("weight_kg")))
    confidence = to_float(item.get("confidence"))
    if confidence is not None and not 0 <= confidence <= 1:
        confidence = None

    return ExtractedRow(
        date=str(item.get("date") or ""),
        location=str(item.get("location") or item.get("address") or ""),
        material=str(item.get("material") or ""),
        weight_kg=weight if weight is not None and weight > 0 else 0.0,
        unit=str(item.get("unit") or "kg").strip() or "kg",
        receiver=str(item.get("receiver") or ""),
        is_hazardous=item.get("isHazardous", item.get("is_hazardous")) is True,
        confidence=confidence,
    )


class ExtractionAdapter(ABC):
    """Uniform wrapper around one provider's completion API.

    Adapters are stateless apart from their model id and HTTP client, so one
    instance can serve many concurrent requests.
    """

    provider: AIProvider
    default_model_id: str
    supported_content = frozenset(ContentKind)

    def __init__(self, model_id: Optional[str] = None, http_client: Optional[ProviderHTTPClient] = None):
        self.model_id = model_id or self.default_model_id
        self.http_client = http_client or ProviderHTTPClient()
        self.logger = LOGGER

    def supports_content_type(self, kind: ContentKind) -> bool:
        return ContentKind(kind) in self.supported_content

    @abstractmethod
    async def call_provider(
        self,
        model: AIModel,
        request: ExtractionRequest,
        prompt: str,
        api_key: str,
        max_tokens: int,
    ) -> ProviderResponse:
        """Send the prompt (and any attached media) to the provider.

        Raises:
            APIClientError: On non-2xx responses or transport failures
            APITimeoutError: When the provider does not answer in time
        """

    async def extract(self, request: ExtractionRequest, api_key: str) -> ExtractionResult:
        """Run one extraction. Never raises; failures come back tagged."""
        started = time.monotonic()

        model = get_model_by_id(self.model_id)
        if model is None:
            return self._failure(
                started,
                ExtractionErrorCategory.UNKNOWN_MODEL,
                f"Unknown model: {self.model_id}",
            )

        if not self.supports_content_type(request.content_kind):
            return self._failure(
                started,
                ExtractionErrorCategory.API_ERROR,
                f"{self.provider.value} does not support {request.content_kind.value} content",
            )

        max_tokens = request.settings.extraction_max_tokens or settings.providers.default_max_tokens

        try:
            prompt = build_prompt_for_request(request)
            response = await self.call_provider(model, request, prompt, api_key, max_tokens)
        except APITimeoutError as e:
            return self._failure(
                started,
                ExtractionErrorCategory.TIMEOUT,
                f"{self.provider.value} did not respond in time: {e.message}",
            )
        except APIClientError as e:
            return self._failure(started, e.category, self._describe_client_error(e), raw_response=e.response_body)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            self.logger.warning(
                "Provider response has an unexpected shape",
                extra={"provider": self.provider.value, "model": self.model_id, "error": str(e)},
            )
            return self._failure(
                started,
                ExtractionErrorCategory.INVALID_RESPONSE,
                f"{self.provider.value} returned an unexpected response: {e}",
            )
        except Exception as e:
            self.logger.error(
                "Unexpected adapter failure",
                exc_info=True,
                extra={"provider": self.provider.value, "model": self.model_id},
            )
            return self._failure(
                started,
                ExtractionErrorCategory.API_ERROR,
                f"Unexpected error during {self.provider.value} extraction: {e}",
            )

        usage = TokenUsage(input=response.input_tokens, output=response.output_tokens)
        cost = estimate_cost(usage.input, usage.output, self.model_id).usd

        parsed = parse_extraction_response(response.text)
        raw_items = parsed.get("items") if parsed else None
        if not isinstance(raw_items, list) or not raw_items:
            return self._failure(
                started,
                ExtractionErrorCategory.INVALID_RESPONSE,
                "Failed to parse extraction response",
                usage=usage,
                cost=cost,
                raw_response=response.text,
            )

        items: List[ExtractedRow] = [normalize_item(item) for item in raw_items if isinstance(item, dict)]

        self.logger.info(
            "Extraction completed",
            extra={
                "provider": self.provider.value,
                "model": self.model_id,
                "rows": len(items),
                "input_tokens": usage.input,
                "output_tokens": usage.output,
            },
        )

        return ExtractionResult(
            success=True,
            items=items,
            model=self.model_id,
            provider=self.provider.value,
            tokens_used=usage,
            cost=cost,
            processing_time_ms=self._elapsed_ms(started),
            raw_response=response.text,
        )

    def _describe_client_error(self, error: APIClientError) -> str:
        provider = self.provider.value
        status = error.status_code
        category = error.category
        if category == ExtractionErrorCategory.INVALID_RESPONSE:
            return f"{provider} returned a response that is not JSON."
        if category == ExtractionErrorCategory.API_KEY:
            return f"Invalid or unauthorized API key for {provider} (HTTP {status}). Please check your key in Settings."
        if category == ExtractionErrorCategory.RATE_LIMIT:
            return f"{provider} rate limit reached (HTTP {status})."
        if category == ExtractionErrorCategory.SERVER_ERROR:
            return f"{provider} server error (HTTP {status})."
        if status is not None:
            return f"{provider} API error (HTTP {status})."
        return f"{provider} API error: {error.message}"

    def _failure(
        self,
        started: float,
        category: ExtractionErrorCategory,
        message: str,
        usage: Optional[TokenUsage] = None,
        cost: float = 0.0,
        raw_response: Optional[str] = None,
    ) -> ExtractionResult:
        self.logger.warning(
            "Extraction failed",
            extra={
                "provider": self.provider.value,
                "model": self.model_id,
                "category": category.value,
                "error": message,
            },
        )
        return ExtractionResult(
            success=False,
            model=self.model_id,
            provider=self.provider.value,
            tokens_used=usage or TokenUsage(),
            cost=cost,
            processing_time_ms=self._elapsed_ms(started),
            error=message,
            error_category=category,
            suggestions=error_suggestions(category),
            raw_response=raw_response,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
