"""
Virtual Fridge Backend — Gemini Service Unit Tests (Mocked)
=============================================================

What:  Circuit breaker, reply parsing helpers, and GeminiService with the
       model object replaced by a mock.
How:   No real API calls; responses are built with SimpleNamespace in the
       candidates → content → parts shape the SDK returns.

What we test:
    ✅ Circuit breaker state machine
    ✅ JSON extraction, nutrient normalization, produce parsing
    ✅ Produce vision and recipe generation happy paths
    ✅ Upstream failures become LLMServiceError and trip the breaker
    ❌ Real API calls
"""

import json
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from virtual_fridge.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    LLMServiceError,
    ValidationError,
)
from virtual_fridge.services.gemini_service import (
    CircuitBreaker,
    GeminiService,
    extract_json,
    format_ingredient,
    normalize_nutrients,
    parse_produce_response,
    response_text,
)


def make_response(*texts):
    parts = [SimpleNamespace(text=t) for t in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


class TestCircuitBreaker:

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute() is True

    def test_opens_at_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.state == "open"

    def test_open_circuit_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        cb.record_failure()
        with pytest.raises(CircuitBreakerOpenError):
            cb.can_execute()

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.failure_count == 2

        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == "closed"

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_failure_while_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0)
        for _ in range(3):
            cb.record_failure()
        time.sleep(0.01)
        cb.can_execute()

        cb.record_failure()
        assert cb.state == "open"


class TestResponseParsing:

    def test_response_text_joins_non_empty_parts(self):
        assert response_text(make_response(" {\"a\": 1} ", "", "tail")) == '{"a": 1}\ntail'

    def test_response_text_without_candidates(self):
        assert response_text(SimpleNamespace(candidates=[])) == ""

    def test_extract_json_plain_object(self):
        assert extract_json('  {"isProduce": true}  ') == '{"isProduce": true}'

    def test_extract_json_from_fenced_reply(self):
        text = 'Sure!\n```json\n{"isProduce": false}\n```'
        assert extract_json(text) == '{"isProduce": false}'

    def test_extract_json_none_when_no_object(self):
        assert extract_json("no json here") is None

    def test_normalize_nutrients_key_variants(self):
        raw = {"calories": 52, "energykj": 218, "carbohydrates": "14", "unknown": "x"}
        assert normalize_nutrients(raw) == {"calories": "52", "energy_kj": "218", "carbs": "14"}

    def test_parse_produce_response_full(self):
        text = json.dumps({
            "isProduce": True,
            "category": "fruit",
            "name": "Apple",
            "nutrients_per_100g": {"calories": 52, "fiber": "2.4"},
        })
        analysis = parse_produce_response(text)
        assert analysis.is_produce is True
        assert analysis.category == "fruit"
        assert analysis.name == "Apple"
        assert analysis.nutrients == {"calories": "52", "fiber": "2.4"}

    def test_parse_produce_response_not_produce(self):
        assert parse_produce_response('{"isProduce": false}').is_produce is False

    @pytest.mark.parametrize("text", ["", "I can't tell", "{broken json", "[1, 2]"])
    def test_parse_produce_response_garbage_is_not_produce(self, text):
        assert parse_produce_response(text).is_produce is False

    def test_format_ingredient(self):
        assert format_ingredient("chicken_breast") == "Chicken Breast"
        assert format_ingredient("RED-apple") == "Red Apple"


class TestGeminiServiceMocked:

    def setup_method(self):
        self.service = GeminiService()
        self.service.model = MagicMock()
        self.service.model.generate_content_async = AsyncMock()

    # ── Vision ────────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_analyze_produce_success(self, tmp_path, sample_image_bytes):
        image = tmp_path / "banana.png"
        image.write_bytes(sample_image_bytes)
        self.service.model.generate_content_async.return_value = make_response(
            '{"isProduce": true, "category": "fruit", "name": "Banana", '
            '"nutrients_per_100g": {"calories": 89}}'
        )

        analysis = await self.service.analyze_produce(str(image))

        assert analysis.is_produce is True
        assert analysis.name == "Banana"
        contents = self.service.model.generate_content_async.call_args.args[0]
        assert contents[0] == GeminiService.PRODUCE_PROMPT
        assert contents[1] == {"mime_type": "image/png", "data": sample_image_bytes}
        kwargs = self.service.model.generate_content_async.call_args.kwargs
        assert kwargs["generation_config"] == {"response_mime_type": "application/json"}

    @pytest.mark.asyncio
    async def test_analyze_produce_upstream_failure(self, tmp_path):
        image = tmp_path / "apple.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        self.service.model.generate_content_async.side_effect = (
            google_exceptions.ServiceUnavailable("overloaded")
        )

        with pytest.raises(LLMServiceError, match="AI vision analysis failed"):
            await self.service.analyze_produce(str(image))
        assert self.service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_analyze_produce_unreadable_image(self, tmp_path):
        with pytest.raises(LLMServiceError, match="Could not read image"):
            await self.service.analyze_produce(str(tmp_path / "gone.jpg"))
        self.service.model.generate_content_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_analyze_produce_circuit_breaker_open(self, tmp_path):
        for _ in range(self.service.circuit_breaker.failure_threshold):
            self.service.circuit_breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            await self.service.analyze_produce(str(tmp_path / "apple.jpg"))
        self.service.model.generate_content_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_api_key(self, tmp_path):
        with patch("virtual_fridge.services.gemini_service.settings") as mock_settings:
            mock_settings.gemini_api_key = ""
            with pytest.raises(ConfigurationError):
                await self.service.analyze_produce(str(tmp_path / "apple.jpg"))

    # ── Recipes ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_generate_recipe_success(self):
        self.service.model.generate_content_async.return_value = make_response(json.dumps({
            "name": "Garlic Chicken",
            "instructions": "1. Sear chicken\n2. Add garlic",
            "ingredients": [{"name": "Chicken Breast", "measure": "2"}, "Garlic"],
        }))

        data = await self.service.generate_recipe(["chicken_breast", "garlic"])

        assert data.ingredients == ["Chicken Breast", "Garlic"]
        assert "Chicken Breast, Garlic" in data.prompt
        assert data.model == self.service.model_name
        assert data.recipe.name == "Garlic Chicken"
        assert [i.name for i in data.recipe.ingredients] == ["Chicken Breast", "Garlic"]
        assert data.recipe.ingredients[1].measure == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ingredients", [[], ["garlic", "  "]])
    async def test_generate_recipe_rejects_bad_ingredients(self, ingredients):
        with pytest.raises(ValidationError):
            await self.service.generate_recipe(ingredients)
        self.service.model.generate_content_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_generate_recipe_empty_reply(self):
        self.service.model.generate_content_async.return_value = make_response()

        with pytest.raises(LLMServiceError, match="Failed to generate recipe") as exc_info:
            await self.service.generate_recipe(["garlic"])
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_generate_recipe_unusable_reply(self):
        self.service.model.generate_content_async.return_value = make_response('{"title": "no name"}')

        with pytest.raises(LLMServiceError) as exc_info:
            await self.service.generate_recipe(["garlic"])
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_generate_recipe_connection_failure(self):
        self.service.model.generate_content_async.side_effect = ConnectionError("refused")

        with pytest.raises(LLMServiceError, match="Failed to connect to Gemini servers") as exc_info:
            await self.service.generate_recipe(["garlic"])
        assert exc_info.value.status_code == 502

    # ── Health ────────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_health_check_available(self):
        with patch("virtual_fridge.services.gemini_service.genai") as mock_genai:
            mock_genai.list_models.return_value = [SimpleNamespace(name=self.service.model_name)]
            assert await self.service.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure_returns_false(self):
        with patch("virtual_fridge.services.gemini_service.genai") as mock_genai:
            mock_genai.list_models.side_effect = RuntimeError("network down")
            assert await self.service.health_check() is False
