from typing import Any, Dict, List

from docintel.core.config import settings
from docintel.models.catalog import AIModel, AIProvider
from docintel.models.extraction import ContentKind, ExtractionRequest
from docintel.services.extraction.adapters.base import (
    ExtractionAdapter,
    ProviderResponse,
    encode_content,
    media_type_for,
)
from docintel.services.extraction.adapters.openai import chat_completion_usage


class MistralAdapter(ExtractionAdapter):
    """Mistral chat completions (OpenAI-compatible wire format)."""

    provider = AIProvider.MISTRAL
    default_model_id = "pixtral-large"

    def build_content(self, request: ExtractionRequest, prompt: str) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        if request.is_binary:
            data_uri = f"data:{media_type_for(request)};base64,{encode_content(request)}"
            if request.content_kind == ContentKind.IMAGE:
                parts.append({"type": "image_url", "image_url": data_uri})
            else:
                parts.append({"type": "document_url", "document_url": data_uri})
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
            "model": model.provider_model_name,
            "messages": [{"role": "user", "content": self.build_content(request, prompt)}],
            "temperature": 0,
            "max_tokens": max_tokens,
        }
        data = await self.http_client.post_json(
            settings.providers.mistral_api_url,
            payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        return chat_completion_usage(data)
