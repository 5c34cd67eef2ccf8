from typing import Any, Dict, List

from docintel.core.config import settings
from docintel.models.catalog import AIModel, AIProvider
from docintel.models.extraction import ExtractionRequest
from docintel.services.extraction.adapters.base import (
    ExtractionAdapter,
    ProviderResponse,
    encode_content,
    media_type_for,
)


class GeminiAdapter(ExtractionAdapter):
    """Google Generative Language API adapter (generateContent)."""

    provider = AIProvider.GOOGLE
    default_model_id = "gemini-3-flash"

    def build_parts(self, request: ExtractionRequest, prompt: str) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = []
        if request.is_binary:
            parts.append(
                {"inline_data": {"mime_type": media_type_for(request), "data": encode_content(request)}}
            )
        parts.append({"text": prompt})
        return parts

    async def call_provider(
        self,
        model: AIModel,
        request: ExtractionRequest,
        prompt: str,
        api_key: str,
        max_tokens: int,
    ) -> ProviderResponse:
        payload = {
            "contents": [{"parts": self.build_parts(request, prompt)}],
            "generationConfig": {"temperature": 0, "maxOutputTokens": max_tokens},
        }
        url = f"{settings.providers.gemini_api_url}/{model.provider_model_name}:generateContent"
        data = await self.http_client.post_json(url, payload, params={"key": api_key})

        candidates = data.get("candidates") or []
        parts = ((candidates[0].get("content") or {}).get("parts") or []) if candidates else []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

        usage = data.get("usageMetadata") or {}
        return ProviderResponse(
            text=text,
            input_tokens=int(usage.get("promptTokenCount") or 0),
            output_tokens=int(usage.get("candidatesTokenCount") or 0),
        )
