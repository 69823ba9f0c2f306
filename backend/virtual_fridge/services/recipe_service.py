"""
Virtual Fridge Backend — Recipe Service
=========================================

What:  Recipe suggestions for what is in the fridge.
How:   TheMealDB (filter by ingredients, pick one meal, load its details)
       for catalogue recipes; the AI service for generated ones.
"""

import logging
import random
from typing import Any, Dict, List, Optional

import httpx

from virtual_fridge.config import settings
from virtual_fridge.exceptions import ExternalServiceError
from virtual_fridge.schemas.recipe import (
    DEFAULT_RECIPE_INGREDIENTS,
    AiRecipeData,
    Recipe,
    RecipeIngredient,
)
from virtual_fridge.services.gemini_service import gemini_service
from virtual_fridge.services.llm_base import AIService

logger = logging.getLogger(__name__)

FILTER_ENDPOINT = "filter.php"
LOOKUP_ENDPOINT = "lookup.php"
MAX_MEAL_INGREDIENTS = 20


def parse_ingredients_query(raw: Optional[str]) -> List[str]:
    """'a, b,,c' → ['a', 'b', 'c']; nothing usable → the default list."""
    parts = [part.strip() for part in (raw or "").split(",")]
    ingredients = [part for part in parts if part]
    return ingredients or list(DEFAULT_RECIPE_INGREDIENTS)


def map_meal(meal: Dict[str, Any]) -> Recipe:
    """TheMealDB meal detail → Recipe (strIngredientN/strMeasureN pairs, blanks skipped)."""
    ingredients = []
    for n in range(1, MAX_MEAL_INGREDIENTS + 1):
        name = (meal.get(f"strIngredient{n}") or "").strip()
        if not name:
            continue
        measure = (meal.get(f"strMeasure{n}") or "").strip()
        ingredients.append(RecipeIngredient(name=name, measure=measure))

    return Recipe(
        name=meal.get("strMeal") or "",
        instructions=meal.get("strInstructions") or "",
        thumbnail=meal.get("strMealThumb") or None,
        youtube=meal.get("strYoutube") or None,
        ingredients=ingredients,
        source=meal.get("strSource") or None,
        image=meal.get("strImageSource") or meal.get("strMealThumb") or None,
    )


class RecipeService:
    """
    Args:
        base_url:   TheMealDB API root; defaults to settings.
        client:     Optional pre-built httpx client (tests inject a MockTransport).
        ai_service: AI provider for generated recipes.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        ai_service: Optional[AIService] = None,
    ):
        self.base_url = (base_url or settings.themealdb_base_url).rstrip("/")
        self._client = client
        self.ai_service = ai_service or gemini_service

    async def _get_json(self, client: httpx.AsyncClient, endpoint: str, query: str) -> Dict[str, Any]:
        response = await client.get(f"{self.base_url}/{endpoint}", params={"i": query})
        response.raise_for_status()
        return response.json() or {}

    async def get_recipe(self, ingredients: List[str]) -> Optional[Recipe]:
        """
        One random TheMealDB recipe containing the ingredients.

        Returns:
            The recipe, or None when TheMealDB has no match.

        Raises:
            ExternalServiceError (503): TheMealDB unreachable or erroring.
        """
        query = ",".join(ingredients)
        logger.info("Fetching recipes from TheMealDB with ingredients: %s", query)

        try:
            if self._client is not None:
                return await self._pick_recipe(self._client, query)
            async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
                return await self._pick_recipe(client, query)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch recipes: %s", str(e))
            raise ExternalServiceError(
                message="Failed to fetch recipes from TheMealDB service.",
                service="themealdb",
                status_code=503,
            ) from e

    async def _pick_recipe(self, client: httpx.AsyncClient, query: str) -> Optional[Recipe]:
        meals = (await self._get_json(client, FILTER_ENDPOINT, query)).get("meals") or []
        logger.debug("Received %d meals from TheMealDB for %s", len(meals), query)
        if not meals:
            return None

        chosen = random.choice(meals)
        details = (await self._get_json(client, LOOKUP_ENDPOINT, str(chosen.get("idMeal")))).get("meals") or []
        if not details:
            return None
        return map_meal(details[0])

    async def generate_ai_recipe(self, ingredients: List[str]) -> AiRecipeData:
        logger.info("Generating AI recipe for %d ingredient(s)", len(ingredients))
        return await self.ai_service.generate_recipe(ingredients)


recipe_service = RecipeService()
