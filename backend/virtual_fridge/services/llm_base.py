"""
Virtual Fridge Backend — Abstract AI Service Interface
========================================================

What:  Contract for the AI provider behind produce vision and recipe generation.
How:   Concrete providers subclass AIService; MediaService and RecipeService
       only ever talk to this interface.

Contract:
    - Provider-specific errors are wrapped in LLMServiceError
    - An open circuit breaker surfaces as CircuitBreakerOpenError
    - health_check() never raises
"""

from abc import ABC, abstractmethod
from typing import List

from virtual_fridge.schemas.media import ProduceAnalysis
from virtual_fridge.schemas.recipe import AiRecipeData


class AIService(ABC):
    """Abstract interface for the vision/recipe model."""

    @abstractmethod
    async def analyze_produce(self, image_path: str) -> ProduceAnalysis:
        """
        Decide whether a photo shows a single fruit or vegetable.

        Args:
            image_path: Path of the stored image on disk.

        Returns:
            ProduceAnalysis. is_produce is False when the model's answer
            cannot be understood; it is never None.

        Raises:
            LLMServiceError: the provider could not be reached.
            CircuitBreakerOpenError: too many recent failures.
        """
        ...

    @abstractmethod
    async def generate_recipe(self, ingredients: List[str]) -> AiRecipeData:
        """
        Invent a recipe around the given ingredient names.

        Raises:
            ValidationError: empty list or blank names.
            ConfigurationError: no API key configured.
            LLMServiceError: unreachable provider or unusable reply (502).
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the provider is reachable and the key is accepted."""
        ...
