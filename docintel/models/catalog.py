"""Registry of extraction models, their providers and pricing.

Prices are USD per million tokens. Costs are also reported in SEK using a
fixed conversion rate, because the usage ledgers bill in SEK.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

USD_TO_SEK = 10.5


class AIProvider(str, Enum):
    """Providers that own extraction models."""

    GOOGLE = "google"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    MISTRAL = "mistral"


class ModelTier(str, Enum):
    FAST = "fast"
    BALANCED = "balanced"
    PREMIUM = "premium"


class ProviderInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: AIProvider
    name: str
    api_key_url: str
    api_key_prefix: str


class ModelPricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_usd: float = Field(..., description="USD per 1M input tokens")
    output_usd: float = Field(..., description="USD per 1M output tokens")

    @computed_field
    @property
    def input_sek(self) -> float:
        return round(self.input_usd * USD_TO_SEK, 2)

    @computed_field
    @property
    def output_sek(self) -> float:
        return round(self.output_usd * USD_TO_SEK, 2)


class AIModel(BaseModel):
    """One catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog id used in settings and requests")
    name: str
    provider: AIProvider
    api_model_id: str = Field(..., description="Provider-qualified model id, e.g. google/gemini-3-flash-preview")
    tier: ModelTier
    pricing: ModelPricing
    context_window: int
    recommended: bool = False
    supports_vision: bool = True
    speed_rating: int = Field(..., ge=1, le=5)
    quality_rating: int = Field(..., ge=1, le=5)

    @property
    def provider_model_name(self) -> str:
        """Model name as the provider API expects it (prefix stripped)."""
        if "/" in self.api_model_id:
            return self.api_model_id.split("/", 1)[1]
        return self.api_model_id


class CostEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    usd: float = 0.0
    sek: float = 0.0


PROVIDERS: Dict[AIProvider, ProviderInfo] = {
    AIProvider.GOOGLE: ProviderInfo(
        id=AIProvider.GOOGLE,
        name="Google AI",
        api_key_url="https://aistudio.google.com/apikey",
        api_key_prefix="AIza",
    ),
    AIProvider.OPENAI: ProviderInfo(
        id=AIProvider.OPENAI,
        name="OpenAI",
        api_key_url="https://platform.openai.com/api-keys",
        api_key_prefix="sk-",
    ),
    AIProvider.ANTHROPIC: ProviderInfo(
        id=AIProvider.ANTHROPIC,
        name="Anthropic",
        api_key_url="https://console.anthropic.com/settings/keys",
        api_key_prefix="sk-ant-",
    ),
    AIProvider.MISTRAL: ProviderInfo(
        id=AIProvider.MISTRAL,
        name="Mistral AI",
        api_key_url="https://console.mistral.ai/api-keys",
        api_key_prefix="",
    ),
}


AVAILABLE_MODELS: List[AIModel] = [
    AIModel(
        id="gemini-3-flash",
        name="Gemini 3 Flash",
        provider=AIProvider.GOOGLE,
        api_model_id="google/gemini-3-flash-preview",
        tier=ModelTier.FAST,
        pricing=ModelPricing(input_usd=0.50, output_usd=3),
        context_window=1_000_000,
        recommended=True,
        speed_rating=5,
        quality_rating=4,
    ),
    AIModel(
        id="gemini-3-pro",
        name="Gemini 3 Pro",
        provider=AIProvider.GOOGLE,
        api_model_id="google/gemini-3-pro-preview",
        tier=ModelTier.PREMIUM,
        pricing=ModelPricing(input_usd=2, output_usd=12),
        context_window=1_000_000,
        speed_rating=3,
        quality_rating=5,
    ),
    AIModel(
        id="gpt-5.2-chat",
        name="GPT-5.2 Chat",
        provider=AIProvider.OPENAI,
        api_model_id="openai/gpt-5.2-chat",
        tier=ModelTier.FAST,
        pricing=ModelPricing(input_usd=1.75, output_usd=14),
        context_window=128_000,
        speed_rating=5,
        quality_rating=4,
    ),
    AIModel(
        id="gpt-5.2",
        name="GPT-5.2",
        provider=AIProvider.OPENAI,
        api_model_id="openai/gpt-5.2",
        tier=ModelTier.PREMIUM,
        pricing=ModelPricing(input_usd=1.75, output_usd=14),
        context_window=128_000,
        speed_rating=2,
        quality_rating=5,
    ),
    AIModel(
        id="claude-haiku-4.5",
        name="Claude Haiku 4.5",
        provider=AIProvider.ANTHROPIC,
        api_model_id="anthropic/claude-haiku-4.5",
        tier=ModelTier.FAST,
        pricing=ModelPricing(input_usd=1, output_usd=5),
        context_window=200_000,
        speed_rating=5,
        quality_rating=3,
    ),
    AIModel(
        id="claude-sonnet-4.5",
        name="Claude Sonnet 4.5",
        provider=AIProvider.ANTHROPIC,
        api_model_id="anthropic/claude-sonnet-4.5",
        tier=ModelTier.BALANCED,
        pricing=ModelPricing(input_usd=3, output_usd=15),
        context_window=200_000,
        speed_rating=3,
        quality_rating=4,
    ),
    AIModel(
        id="claude-opus-4.5",
        name="Claude Opus 4.5",
        provider=AIProvider.ANTHROPIC,
        api_model_id="anthropic/claude-opus-4.5",
        tier=ModelTier.PREMIUM,
        pricing=ModelPricing(input_usd=5, output_usd=25),
        context_window=200_000,
        speed_rating=1,
        quality_rating=5,
    ),
    AIModel(
        id="pixtral-large",
        name="Pixtral Large",
        provider=AIProvider.MISTRAL,
        api_model_id="mistral/pixtral-large-latest",
        tier=ModelTier.BALANCED,
        pricing=ModelPricing(input_usd=2, output_usd=6),
        context_window=128_000,
        speed_rating=3,
        quality_rating=4,
    ),
]

_MODELS_BY_ID: Dict[str, AIModel] = {model.id: model for model in AVAILABLE_MODELS}


def get_model_by_id(model_id: str) -> Optional[AIModel]:
    return _MODELS_BY_ID.get(model_id)


def get_models_by_provider(provider: AIProvider) -> List[AIModel]:
    return [model for model in AVAILABLE_MODELS if model.provider == provider]


def get_models_by_tier(tier: ModelTier) -> List[AIModel]:
    return [model for model in AVAILABLE_MODELS if model.tier == tier]


def get_recommended_model() -> AIModel:
    for model in AVAILABLE_MODELS:
        if model.recommended:
            return model
    return AVAILABLE_MODELS[0]


def get_fastest_model(provider: Optional[AIProvider] = None) -> AIModel:
    """Highest speed rating, first declared wins ties."""
    candidates = get_models_by_provider(provider) if provider else AVAILABLE_MODELS
    fastest = candidates[0]
    for model in candidates[1:]:
        if model.speed_rating > fastest.speed_rating:
            fastest = model
    return fastest


def get_best_quality_model(provider: Optional[AIProvider] = None) -> AIModel:
    """Highest quality rating, first declared wins ties."""
    candidates = get_models_by_provider(provider) if provider else AVAILABLE_MODELS
    best = candidates[0]
    for model in candidates[1:]:
        if model.quality_rating > best.quality_rating:
            best = model
    return best


def get_provider_by_model_id(model_id: str) -> Optional[AIProvider]:
    model = get_model_by_id(model_id)
    return model.provider if model else None


def estimate_cost(input_tokens: int, output_tokens: int, model_id: str) -> CostEstimate:
    """Estimate the cost of a call.

    Args:
        input_tokens: Prompt tokens billed
        output_tokens: Completion tokens billed
        model_id: Catalog model id

    Returns:
        CostEstimate: USD rounded to 4 decimals and SEK rounded to 3; zero for unknown models
    """
    model = get_model_by_id(model_id)
    if model is None:
        return CostEstimate()

    total_usd = (input_tokens / 1_000_000) * model.pricing.input_usd + (
        output_tokens / 1_000_000
    ) * model.pricing.output_usd
    return CostEstimate(usd=round(total_usd, 4), sek=round(total_usd * USD_TO_SEK, 3))
