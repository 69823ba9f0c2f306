"""
Virtual Fridge Backend — Google Gemini Service
================================================

What:  AIService implementation backed by Google Gemini.
How:   Sends prompt + inline image (vision) or prompt only (recipes) to
       GenerativeModel.generate_content_async with a JSON response type,
       then parses and normalizes the model's JSON reply.
Who:   Singleton used by MediaService (vision) and RecipeService (recipes).

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient
       upstream errors (unavailable, quota, deadline)
    2. Circuit breaker so a Gemini outage fails fast instead of tying up
       every request for the full retry schedule
    3. Per-call request timeout (settings.gemini_timeout)
"""

import json
import logging
import re
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from virtual_fridge.config import settings
from virtual_fridge.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    LLMServiceError,
    ValidationError,
)
from virtual_fridge.schemas.food import NUTRIENT_KEYS
from virtual_fridge.schemas.media import ProduceAnalysis
from virtual_fridge.schemas.recipe import AiRecipeData, Recipe
from virtual_fridge.services.llm_base import AIService

logger = logging.getLogger(__name__)

# Extension → inline-data MIME type; anything else is sent as JPEG
IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}

JSON_RESPONSE_CONFIG = {"response_mime_type": "application/json"}

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the Gemini API.

    State Machine:
        CLOSED    → failure_count reaches threshold → OPEN
        OPEN      → every call raises CircuitBreakerOpenError until
                    recovery_timeout has elapsed → HALF_OPEN
        HALF_OPEN → one trial call; success → CLOSED, failure → OPEN

    Not shared between worker processes; each uvicorn worker trips its own.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True when a call may proceed.

        Raises:
            CircuitBreakerOpenError while OPEN and still inside the recovery window.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Response parsing helpers
# ══════════════════════════════════════════════════════════════════════════

def response_text(response: Any) -> str:
    """Joins the non-empty text parts of the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    texts = [(getattr(part, "text", None) or "").strip() for part in parts]
    return "\n".join(t for t in texts if t)


def extract_json(text: str) -> Optional[str]:
    """
    The whole text when it is a JSON object, else the outermost {...} span.

    Models sometimes wrap JSON in prose or a ``` fence despite the
    response_mime_type hint.
    """
    trimmed = text.strip()
    if trimmed.startswith("{") and trimmed.endswith("}"):
        return trimmed
    match = _JSON_OBJECT_RE.search(text)
    return match.group(0) if match else None


def normalize_nutrients(raw: Dict[str, Any]) -> Dict[str, str]:
    """
    Maps loosely-keyed model output onto NUTRIENT_KEYS.

    "energy_kj" is also found as "energykj" or "energy kj"; carbs falls
    back to "carbohydrates". Values are stringified, missing ones dropped.
    """

    def pick(key: str) -> Any:
        for candidate in (key, key.replace("_", ""), key.replace("_", " ")):
            value = raw.get(candidate)
            if value is not None:
                return value
        return None

    nutrients: Dict[str, str] = {}
    for key in NUTRIENT_KEYS:
        value = pick(key)
        if value is None and key == "carbs":
            value = pick("carbohydrates")
        if value is not None:
            nutrients[key] = str(value)
    return nutrients


def parse_produce_response(text: str) -> ProduceAnalysis:
    """Turns the model's reply into a ProduceAnalysis; garbage means not produce."""
    json_text = extract_json(text) if text else None
    if not json_text:
        return ProduceAnalysis(is_produce=False)
    try:
        obj = json.loads(json_text)
    except json.JSONDecodeError:
        return ProduceAnalysis(is_produce=False)
    if not isinstance(obj, dict):
        return ProduceAnalysis(is_produce=False)

    is_produce = obj.get("isProduce", obj.get("is_produce"))
    name = obj.get("name") or obj.get("label") or obj.get("item")
    raw_nutrients = obj.get("nutrients_per_100g") or obj.get("nutrients")

    return ProduceAnalysis(
        is_produce=bool(is_produce),
        category=obj.get("category") or obj.get("type"),
        name=str(name) if name else None,
        nutrients=normalize_nutrients(raw_nutrients) if isinstance(raw_nutrients, dict) else None,
    )


def format_ingredient(raw: str) -> str:
    """'red_apple' → 'Red Apple'"""
    words = re.sub(r"[_-]+", " ", raw).split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiService(AIService):
    """
    Google Gemini implementation of AIService.

    Error Handling Chain:
        API call fails → tenacity retries transient errors
        → still failing → circuit breaker records a failure, LLMServiceError
        → threshold reached → later calls rejected instantly
        → recovery timeout → one trial call (HALF_OPEN)
    """

    PRODUCE_PROMPT = "\n".join([
        "You are a vision model helping identify produce items for a smart fridge.",
        "Analyze the attached image and determine if it contains a single food item "
        "that is a fruit or a vegetable only.",
        "If yes, respond strictly as JSON with keys: isProduce (boolean), "
        'category ("fruit" or "vegetable"), name (common English name), '
        "nutrients_per_100g (object).",
        "The nutrients_per_100g object should include as many of these string fields "
        "as you can estimate: " + ", ".join(NUTRIENT_KEYS) + ".",
        'If not a single fruit/vegetable, respond: {"isProduce": false}. '
        "Do not include any additional text.",
    ])

    RECIPE_PROMPT_TEMPLATE = "\n".join([
        "You are a home cook planning a meal from what is left in the fridge.",
        "Write one recipe that uses these ingredients: {ingredients}.",
        "Pantry staples (salt, oil, water, spices) may be added.",
        "Respond strictly as JSON with keys: name (string), instructions (string, "
        "numbered steps separated by newlines), ingredients (array of objects "
        "with keys name and measure).",
        "Do not include any additional text.",
    ])

    TRANSIENT_ERRORS = (
        ConnectionError,
        TimeoutError,
        google_exceptions.ServiceUnavailable,
        google_exceptions.ResourceExhausted,
        google_exceptions.DeadlineExceeded,
        google_exceptions.InternalServerError,
    )

    def __init__(self):
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)

        self.model_name = settings.gemini_model
        self.model = genai.GenerativeModel(self.model_name)

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiService initialized with model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.model_name,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    def _require_api_key(self) -> None:
        if not settings.gemini_api_key:
            logger.error("GEMINI_API_KEY is not set")
            raise ConfigurationError("GEMINI_API_KEY is not set")

    # ── Vision ────────────────────────────────────────────────────────────

    async def analyze_produce(self, image_path: str) -> ProduceAnalysis:
        """
        Flow:
            1. Check API key and circuit breaker
            2. Read image bytes, pick MIME type from the extension
            3. Send prompt + inline image (with retry)
            4. Parse the JSON reply; unparsable means "not produce"
        """
        request_id = uuid.uuid4().hex[:8]
        self._require_api_key()
        self.circuit_breaker.can_execute()

        path = Path(image_path)
        mime_type = IMAGE_MIME_TYPES.get(path.suffix.lower(), "image/jpeg")
        try:
            async with aiofiles.open(path, "rb") as f:
                image_bytes = await f.read()
        except OSError as e:
            raise LLMServiceError(
                message="Could not read image for analysis.",
                context={"request_id": request_id, "os_error": str(e)},
            ) from e

        logger.info("[%s] Requesting Gemini vision analysis for %s", request_id, path.name)

        response = await self._call(
            [self.PRODUCE_PROMPT, {"mime_type": mime_type, "data": image_bytes}],
            request_id,
            failure_message="AI vision analysis failed. Please try again later.",
        )

        analysis = parse_produce_response(response_text(response))
        logger.info(
            "[%s] Vision result: is_produce=%s name=%s",
            request_id,
            analysis.is_produce,
            analysis.name,
        )
        return analysis

    # ── Recipes ───────────────────────────────────────────────────────────

    async def generate_recipe(self, ingredients: List[str]) -> AiRecipeData:
        if not ingredients or any(not isinstance(i, str) or not i.strip() for i in ingredients):
            raise ValidationError(
                "Ingredients must be a non-empty list of non-empty strings",
                field="ingredients",
            )
        self._require_api_key()

        request_id = uuid.uuid4().hex[:8]
        self.circuit_breaker.can_execute()

        formatted = [format_ingredient(i) for i in ingredients]
        prompt = self.RECIPE_PROMPT_TEMPLATE.format(ingredients=", ".join(formatted))

        response = await self._call(
            [prompt],
            request_id,
            failure_message="Failed to connect to Gemini servers",
            status_code=502,
        )

        text = response_text(response)
        if not text:
            logger.error("[%s] Gemini returned an empty response", request_id)
            raise LLMServiceError(
                message="Failed to generate recipe with Gemini.",
                status_code=502,
                context={"request_id": request_id},
            )

        recipe = self._parse_recipe(text, request_id)
        return AiRecipeData(
            ingredients=formatted,
            prompt=prompt,
            recipe=recipe,
            model=self.model_name,
        )

    def _parse_recipe(self, text: str, request_id: str) -> Recipe:
        json_text = extract_json(text)
        try:
            obj = json.loads(json_text) if json_text else None
            if not isinstance(obj, dict):
                raise ValueError("reply is not a JSON object")
            obj["ingredients"] = [
                {"name": item} if isinstance(item, str) else item
                for item in obj.get("ingredients") or []
            ]
            return Recipe.model_validate(obj)
        except (ValueError, PydanticValidationError) as e:
            logger.error("[%s] Unusable recipe from Gemini: %s", request_id, e)
            raise LLMServiceError(
                message="Failed to generate recipe with Gemini.",
                status_code=502,
                context={"request_id": request_id},
            ) from e

    # ── Transport ─────────────────────────────────────────────────────────

    async def _call(
        self,
        contents: List[Any],
        request_id: str,
        failure_message: str,
        status_code: int = 503,
    ) -> Any:
        """Runs one generate call through retry + circuit breaker bookkeeping."""
        try:
            response = await self._generate_with_retry(contents, request_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Gemini call failed: %s",
                request_id,
                str(e),
                exc_info=True,
            )
            raise LLMServiceError(
                message=failure_message,
                retry_after=self.circuit_breaker.recovery_timeout,
                status_code=status_code,
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()
        return response

    @retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _generate_with_retry(self, contents: List[Any], request_id: str) -> Any:
        start_time = time.perf_counter()
        try:
            response = await self.model.generate_content_async(
                contents,
                generation_config=JSON_RESPONSE_CONFIG,
                request_options={"timeout": settings.gemini_timeout},
            )
        except Exception as e:
            logger.warning(
                "[%s] Gemini API call failed after %.0fms: %s",
                request_id,
                (time.perf_counter() - start_time) * 1000,
                str(e),
            )
            raise

        logger.info(
            "[%s] Gemini call completed in %.0fms",
            request_id,
            (time.perf_counter() - start_time) * 1000,
        )
        return response

    async def health_check(self) -> bool:
        """Lists models (no token cost) to confirm connectivity and the key."""
        if not settings.gemini_api_key:
            return False
        try:
            model_names = [m.name for m in genai.list_models()]
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False
        if self.model_name not in model_names:
            logger.warning("Configured model %s not found in available models", self.model_name)
        return True


# One instance per process: the circuit breaker state must be shared by all requests
gemini_service = GeminiService()
