"""
Recipe schemas: TheMealDB suggestions and Gemini-generated recipes.
"""

from typing import List, Optional

from pydantic import Field, field_validator

from virtual_fridge.schemas.common import ApiModel

DEFAULT_RECIPE_INGREDIENTS: List[str] = ["chicken_breast"]


class RecipeIngredient(ApiModel):
    name: str
    measure: str = ""


class Recipe(ApiModel):
    name: str
    instructions: str
    thumbnail: Optional[str] = None
    youtube: Optional[str] = None
    ingredients: List[RecipeIngredient] = Field(default_factory=list)
    source: Optional[str] = None
    image: Optional[str] = None


class RecipeData(ApiModel):
    recipe: Recipe


class RecipeResponse(ApiModel):
    message: str
    data: RecipeData


class AiRecipeRequest(ApiModel):
    ingredients: List[str] = Field(min_length=1)

    @field_validator("ingredients")
    @classmethod
    def no_blank_ingredients(cls, v: List[str]) -> List[str]:
        if any(not item.strip() for item in v):
            raise ValueError("ingredients must not contain empty strings")
        return v


class AiRecipeData(ApiModel):
    ingredients: List[str] = Field(description="Display-formatted ingredient names")
    prompt: str
    recipe: Recipe
    model: str


class AiRecipeResponse(ApiModel):
    message: str
    data: AiRecipeData
