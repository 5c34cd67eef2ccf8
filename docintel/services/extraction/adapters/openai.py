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


def chat_completion_text(data: Dict[str, Any]) -> str:
    """Answer text of an OpenAI-style chat completion."""
    choices = data.get("choices") or []
    if not choices:
        return ""
    content = (choices[0].get("message") or {}).get("content")
    if isinstance(content, list):
        return "".join(part.get("text", "") for part in content if isinstance(part, dict))
    return content or ""


def chat_completion_usage(data: Dict[str, Any]) -> ProviderResponse:
    usage = data.get("usage") or {}
    return ProviderResponse(
        text=chat_completion_text(data),
        input_tokens=int(usage.get("prompt_tokens") or 0),
        output_tokens=int(usage.get("completion_tokens") or 0),
    )


class OpenAIAdapter(ExtractionAdapter):
    """Chat Completions API adapter."""

    provider = AIProvider.OPENAI
    default_model_id = "gpt-5.2-chat"

    def build_content(self, request: ExtractionRequest, prompt: str) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = []
        if request.is_binary:
            data_uri = f"data:{media_type_for(request)};base64,{encode_content(request)}"
            if request.content_kind == ContentKind.IMAGE:
                parts.append({"type": "image_url", "image_url": {"url": data_uri}})
            else:
                parts.append({"type": "file", "file": {"filename": request.filename, "file_data": data_uri}})
        parts.append({"type": "text", "text": prompt})
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
            "max_completion_tokens": max_tokens,
        }
        data = await self.http_client.post_json(
            settings.providers.openai_api_url,
            payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        return chat_completion_usage(data)
