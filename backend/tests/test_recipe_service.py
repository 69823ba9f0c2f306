"""
Virtual Fridge Backend — Recipe Service Tests
===============================================

What:  Ingredient query parsing, TheMealDB mapping and the filter → lookup
       flow, plus delegation of AI recipes.
How:   TheMealDB is an httpx.MockTransport; the AI service is an AsyncMock.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from virtual_fridge.exceptions import ExternalServiceError
from virtual_fridge.services.recipe_service import (
    RecipeService,
    map_meal,
    parse_ingredients_query,
)

MEALDB_BASE = "https://mealdb.test/api/json/v1/1"

MEAL_DETAIL = {
    "idMeal": "52940",
    "strMeal": "Brown Stew Chicken",
    "strInstructions": "Squeeze lime over chicken.",
    "strMealThumb": "https://mealdb.test/images/stew.jpg",
    "strYoutube": "https://www.youtube.com/watch?v=__5JCXxlLvs",
    "strSource": None,
    "strIngredient1": "Chicken",
    "strMeasure1": "1 whole",
    "strIngredient2": "Tomato",
    "strMeasure2": " 1 chopped ",
    "strIngredient3": "",
    "strMeasure3": "",
    "strIngredient4": None,
}


def mealdb_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParsing:

    def test_parse_ingredients_query(self):
        assert parse_ingredients_query(" chicken_breast, garlic,,") == ["chicken_breast", "garlic"]

    @pytest.mark.parametrize("raw", [None, "", " , "])
    def test_parse_ingredients_query_defaults(self, raw):
        assert parse_ingredients_query(raw) == ["chicken_breast"]

    def test_map_meal(self):
        recipe = map_meal(MEAL_DETAIL)
        assert recipe.name == "Brown Stew Chicken"
        assert [(i.name, i.measure) for i in recipe.ingredients] == [
            ("Chicken", "1 whole"),
            ("Tomato", "1 chopped"),
        ]
        assert recipe.thumbnail == recipe.image == "https://mealdb.test/images/stew.jpg"
        assert recipe.source is None


class TestRecipeService:

    @pytest.mark.asyncio
    async def test_get_recipe_filters_then_looks_up(self):
        seen = []

        def handler(request):
            seen.append((request.url.path.rsplit("/", 1)[-1], request.url.params["i"]))
            if request.url.path.endswith("filter.php"):
                return httpx.Response(200, json={"meals": [{"idMeal": "52940"}]})
            return httpx.Response(200, json={"meals": [MEAL_DETAIL]})

        service = RecipeService(MEALDB_BASE, client=mealdb_client(handler), ai_service=MagicMock())
        recipe = await service.get_recipe(["chicken", "tomato"])

        assert recipe.name == "Brown Stew Chicken"
        assert seen == [("filter.php", "chicken,tomato"), ("lookup.php", "52940")]

    @pytest.mark.asyncio
    async def test_get_recipe_no_match(self):
        service = RecipeService(
            MEALDB_BASE,
            client=mealdb_client(lambda r: httpx.Response(200, json={"meals": None})),
            ai_service=MagicMock(),
        )
        assert await service.get_recipe(["unobtainium"]) is None

    @pytest.mark.asyncio
    async def test_get_recipe_upstream_failure(self):
        service = RecipeService(
            MEALDB_BASE,
            client=mealdb_client(lambda r: httpx.Response(500)),
            ai_service=MagicMock(),
        )
        with pytest.raises(ExternalServiceError, match="TheMealDB") as exc_info:
            await service.get_recipe(["chicken"])
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_get_recipe_invalid_json(self):
        service = RecipeService(
            MEALDB_BASE,
            client=mealdb_client(lambda r: httpx.Response(200, content=b"<html>")),
            ai_service=MagicMock(),
        )
        with pytest.raises(ExternalServiceError):
            await service.get_recipe(["chicken"])

    @pytest.mark.asyncio
    async def test_generate_ai_recipe_delegates(self):
        ai = MagicMock()
        ai.generate_recipe = AsyncMock(return_value="generated")
        service = RecipeService(MEALDB_BASE, client=mealdb_client(lambda r: httpx.Response(500)), ai_service=ai)

        assert await service.generate_ai_recipe(["garlic"]) == "generated"
        ai.generate_recipe.assert_awaited_once_with(["garlic"])
