"""
Virtual Fridge Backend — Recipe Routes
========================================
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from virtual_fridge.dependencies import get_current_user
from virtual_fridge.exceptions import NotFoundError
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.recipe import (
    AiRecipeRequest,
    AiRecipeResponse,
    RecipeData,
    RecipeResponse,
)
from virtual_fridge.services.recipe_service import parse_ingredients_query, recipe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["Recipes"])


@router.get(
    "",
    response_model=RecipeResponse,
    responses={
        404: {"description": "No recipe uses these ingredients", "model": ErrorResponse},
        503: {"description": "TheMealDB unavailable", "model": ErrorResponse},
    },
    summary="A random TheMealDB recipe using the given ingredients",
)
async def get_recipes(
    ingredients: Optional[str] = Query(
        default=None,
        description="Comma-separated ingredient names, e.g. chicken_breast,garlic",
    ),
    user: User = Depends(get_current_user),
) -> RecipeResponse:
    recipe = await recipe_service.get_recipe(parse_ingredients_query(ingredients))
    if recipe is None:
        logger.debug("No recipes found; returning 404")
        raise NotFoundError(resource="Recipe", message="No recipes found")
    return RecipeResponse(message="Recipes fetched successfully", data=RecipeData(recipe=recipe))


@router.post(
    "/ai",
    response_model=AiRecipeResponse,
    responses={502: {"description": "Gemini failed", "model": ErrorResponse}},
    summary="Generate a recipe with Gemini",
)
async def generate_ai_recipe(
    body: AiRecipeRequest,
    user: User = Depends(get_current_user),
) -> AiRecipeResponse:
    data = await recipe_service.generate_ai_recipe(body.ingredients)
    return AiRecipeResponse(message="AI recipe generated successfully", data=data)
