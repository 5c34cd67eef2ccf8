"""Tests for response parsing, prompt building and the model catalog."""

from docintel.models.catalog import (
    AVAILABLE_MODELS,
    AIProvider,
    ModelTier,
    estimate_cost,
    get_best_quality_model,
    get_fastest_model,
    get_model_by_id,
    get_models_by_tier,
    get_provider_by_model_id,
    get_recommended_model,
)
from docintel.models.extraction import ContentKind, ExtractionRequest, ExtractionSettings
from docintel.services.extraction.prompt import build_extraction_prompt, build_prompt_for_request, filename_date
from docintel.utils.json_parser import parse_extraction_response


class TestParseExtractionResponse:
    def test_plain_json(self):
        assert parse_extraction_response('{"items": [{"material": "Glass"}]}') == {"items": [{"material": "Glass"}]}

    def test_fenced_json_with_prose(self):
        text = 'Here is the data:\n```json\n{"items": [{"material": "Glass"}]}\n```\nDone.'

        assert parse_extraction_response(text)["items"][0]["material"] == "Glass"

    def test_bare_list_is_wrapped(self):
        assert parse_extraction_response('[{"material": "Metal"}]') == {"items": [{"material": "Metal"}]}

    def test_items_array_salvaged_from_broken_object(self):
        text = '{"note": oops, "items": [{"material": "Wood"}], "total": }'

        assert parse_extraction_response(text) == {"items": [{"material": "Wood"}]}

    def test_garbage_returns_none(self):
        assert parse_extraction_response("no json here") is None
        assert parse_extraction_response("") is None
        assert parse_extraction_response(None) is None


class TestPrompt:
    def test_filename_date(self):
        assert filename_date("report_2024_03_01.xlsx") == "2024-03-01"
        assert filename_date("report.xlsx") is None

    def test_fallback_date_and_table(self):
        prompt = build_extraction_prompt("a\tb", "export_2024-02-29.csv", "Unknown")

        assert "If no date found, use fallback: 2024-02-29" in prompt
        assert "a\tb" in prompt
        assert "CUSTOM INSTRUCTIONS" not in prompt

    def test_custom_instructions_and_synonyms(self):
        settings = ExtractionSettings(
            material_synonyms={"Cardboard": ["Wellpapp", "Kartong"]},
            known_receivers=["Recycling AB"],
        )
        request = ExtractionRequest(
            content="x",
            content_kind=ContentKind.SPREADSHEET,
            filename="f.xlsx",
            custom_instructions="Ignore the summary row.",
            settings=settings,
        )

        prompt = build_prompt_for_request(request)

        assert "CUSTOM INSTRUCTIONS (HIGHEST PRIORITY)" in prompt
        assert "Ignore the summary row." in prompt
        assert "Cardboard: Wellpapp, Kartong" in prompt
        assert '"receiver":"Recycling AB"' in prompt
        assert "use fallback: today's date" in prompt

    def test_binary_content_is_not_inlined(self):
        request = ExtractionRequest(content=b"%PDF-1.4", content_kind=ContentKind.PDF, filename="a.pdf")

        assert "(Document content attached as pdf)" in build_prompt_for_request(request)


class TestCatalog:
    def test_ids_are_unique(self):
        ids = [model.id for model in AVAILABLE_MODELS]
        assert len(ids) == len(set(ids))

    def test_lookup(self):
        assert get_model_by_id("claude-sonnet-4.5").provider == AIProvider.ANTHROPIC
        assert get_model_by_id("nope") is None
        assert get_provider_by_model_id("gemini-3-pro") == AIProvider.GOOGLE
        assert get_provider_by_model_id("nope") is None

    def test_recommended_model(self):
        assert get_recommended_model().recommended is True

    def test_fastest_and_best(self):
        fastest = get_fastest_model()
        best = get_best_quality_model(AIProvider.OPENAI)

        assert fastest.speed_rating == max(m.speed_rating for m in AVAILABLE_MODELS)
        assert best.provider == AIProvider.OPENAI
        assert best.quality_rating == 5

    def test_models_by_tier(self):
        balanced = get_models_by_tier(ModelTier.BALANCED)

        assert balanced
        assert all(model.tier == ModelTier.BALANCED for model in balanced)

    def test_sek_prices_are_serialized(self):
        pricing = get_model_by_id("gemini-3-flash").pricing.model_dump()

        assert pricing["input_sek"] == 5.25
        assert pricing["output_sek"] == 31.5

    def test_provider_model_name_strips_prefix(self):
        assert get_model_by_id("gemini-3-flash").provider_model_name == "gemini-3-flash-preview"

    def test_estimate_cost(self):
        cost = estimate_cost(1_000_000, 1_000_000, "gpt-5.2")

        assert cost.usd == 15.75
        assert cost.sek == round(15.75 * 10.5, 3)

    def test_estimate_cost_unknown_model_is_zero(self):
        cost = estimate_cost(1000, 1000, "nope")

        assert cost.usd == 0.0
        assert cost.sek == 0.0
