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


class AnthropicAdapter(ExtractionAdapter):
    """Messages API adapter."""

    provider = AIProvider.ANTHROPIC
    default_model_id = "claude-sonnet-4.5"

    def build_content(self, request: ExtractionRequest, prompt: str) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = []
        if request.is_binary:
            block_type = "image" if request.content_kind == ContentKind.IMAGE else "document"
            blocks.append(
                {
                    "type": block_type,
                    "source": {
                        "type": "base64",
                        "media_type": media_type_for(request),
                        "data": encode_content(request),
                    },
                }
            )
        blocks.append({"type": "text", "text": prompt})
        return blocks

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
            "max_tokens": max_tokens,
            "temperature": 0,
            "messages": [{"role": "user", "content": self.build_content(request, prompt)}],
        }
        data = await self.http_client.post_json(
            settings.providers.anthropic_api_url,
            payload,
            headers={
                "x-api-key": api_key,
                "anthropic-version": settings.providers.anthropic_api_version,
            },
        )

        text = "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if isinstance(block, dict) and block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        return ProviderResponse(
            text=text,
            input_tokens=int(usage.get("input_tokens") or 0),
            output_tokens=int(usage.get("output_tokens") or 0),
        )
