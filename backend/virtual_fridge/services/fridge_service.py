"""
Virtual Fridge Backend — Fridge Service
=========================================

What:  The user's fridge as a whole: listing items with their food types,
       and turning a scanned barcode into a new item.
How:   Barcodes resolve against local FoodTypes first; unknown ones are
       fetched from OpenFoodFacts (httpx), mapped onto a FoodType and cached
       by barcode for every later scan.

Barcode Flow:
    ┌─────────┐  hit   ┌──────────────┐
    │ barcode │──────▶│ local FoodType│────────────┐
    └─────────┘        └──────────────┘             ▼
         │ miss        ┌──────────────┐      ┌────────────┐
         └───────────▶│ OpenFoodFacts │────▶│ new FoodItem│
                       └──────────────┘      └────────────┘
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.config import settings
from virtual_fridge.exceptions import ExternalServiceError, NotFoundError, ValidationError
from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.food_type import FoodType
from virtual_fridge.schemas.food import FoodTypeCreate, Nutrients
from virtual_fridge.services.food_item_service import food_item_service
from virtual_fridge.services.food_type_service import food_type_service
from virtual_fridge.utils.dates import add_days, date_diff_in_days, parse_date
from virtual_fridge.utils.sanitize import sanitize_log_value

logger = logging.getLogger(__name__)

# Our nutrient key → OpenFoodFacts field, read as "<field>_100g"
OFF_NUTRIENT_FIELDS = {
    "protein": "proteins",
    "fat": "fat",
    "saturated_fat": "saturated-fat",
    "monounsaturated_fat": "monounsaturated-fat",
    "polyunsaturated_fat": "polyunsaturated-fat",
    "trans_fat": "trans-fat",
    "cholesterol": "cholesterol",
    "carbs": "carbohydrates",
    "sugars": "sugars",
    "fiber": "fiber",
    "salt": "salt",
    "sodium": "sodium",
    "calcium": "calcium",
    "iron": "iron",
    "magnesium": "magnesium",
    "potassium": "potassium",
    "zinc": "zinc",
    "caffeine": "caffeine",
}

KJ_PER_KCAL = 4.184


def _first_present(source: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def map_nutriments(nutriments: Dict[str, Any]) -> Dict[str, str]:
    """OpenFoodFacts `nutriments` → our per-100g nutrient strings."""
    calories = _first_present(
        nutriments, "energy-kcal_100g", "energy-kcal_serving", "energy-kcal"
    )
    if not calories and nutriments.get("energy_100g"):
        calories = round(float(nutriments["energy_100g"]) / KJ_PER_KCAL)

    raw: Dict[str, Any] = {
        "calories": calories,
        "energy_kj": _first_present(nutriments, "energy-kj_100g", "energy_100g"),
    }
    for key, field in OFF_NUTRIENT_FIELDS.items():
        raw[key] = nutriments.get(f"{field}_100g")

    return Nutrients.model_validate(raw).to_storage()


def shelf_life_from_label(label: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Days from today until a "mm-yyyy" label date; None when unreadable."""
    if not label:
        return None
    try:
        expires = parse_date(label, "mm-yyyy")
    except ValueError:
        logger.debug("Unparsable expiration label: %r", label)
        return None
    return date_diff_in_days(today or date.today(), expires)


def map_product(barcode: str, product: Dict[str, Any]) -> FoodTypeCreate:
    """OpenFoodFacts `product` → FoodTypeCreate (name falls back to the barcode)."""
    allergens = [
        a[len("en:"):]
        for a in product.get("allergens_hierarchy") or []
        if isinstance(a, str) and a.startswith("en:")
    ]
    label = product.get("expiration_date") or product.get("expiry_date") or None
    name = product.get("product_name_en") or product.get("product_name") or barcode

    return FoodTypeCreate(
        name=name,
        brand=product.get("brands") or None,
        quantity=product.get("quantity") or None,
        ingredients=product.get("ingredients_text_en") or product.get("ingredients_text") or None,
        image=product.get("image_url") or None,
        expiration_date=str(label) if label else None,
        allergens=allergens,
        nutrients=Nutrients.model_validate(map_nutriments(product.get("nutriments") or {})),
        shelf_life_days=shelf_life_from_label(label),
        barcode_id=barcode,
    )


class FridgeService:
    """
    Args:
        base_url: OpenFoodFacts API root; defaults to settings.
        client:   Pre-built httpx client (tests pass one with a MockTransport).
                  Without one, a short-lived client is opened per lookup.
    """

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or settings.openfoodfacts_base_url).rstrip("/")
        self._client = client

    async def list_fridge(self, db: AsyncSession, user_id: UUID) -> List[Tuple[FoodItem, Optional[FoodType]]]:
        items = await food_item_service.find_all_by_user_id(db, user_id)
        types = await food_type_service.find_by_ids(db, (item.type_id for item in items))
        by_id = {food_type.id: food_type for food_type in types}
        return [(item, by_id.get(item.type_id)) for item in items]

    async def fetch_product(self, barcode: str) -> Dict[str, Any]:
        """
        GET /product/<barcode>.json from OpenFoodFacts.

        Raises:
            NotFoundError:        OpenFoodFacts has no such product
            ExternalServiceError: transport failure or unexpected status (500)
        """
        url = f"{self.base_url}/product/{barcode}.json"
        params = {"lc": "en"}
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
                    response = await client.get(url, params=params)
            if response.status_code == 404:
                payload: Dict[str, Any] = {}
            else:
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("OpenFoodFacts lookup failed for %s: %s", barcode, str(e))
            raise ExternalServiceError(
                message="Internal server error",
                service="openfoodfacts",
                status_code=500,
            ) from e

        product = payload.get("product") if isinstance(payload, dict) else None
        if not product:
            raise NotFoundError(
                resource="Product",
                message="Product not found in OpenFoodFacts",
            )
        return product

    async def create_from_barcode(
        self, db: AsyncSession, user_id: UUID, barcode: str
    ) -> Tuple[FoodItem, FoodType]:
        """
        Adds one item for the scanned barcode.

        The item's expiration date is today plus the type's shelf life, or
        today when the shelf life is unknown.
        """
        try:
            sanitize_log_value(barcode)
        except ValueError as e:
            raise ValidationError(message=str(e), field="barcode") from e

        logger.info("Received barcode: %s", barcode)

        food_type = await food_type_service.find_by_barcode(db, barcode)
        if food_type is None:
            product = await self.fetch_product(barcode)
            food_type = await food_type_service.create(db, map_product(barcode, product))
            logger.info("FoodType cached for barcode %s: %s", barcode, food_type.id)

        today = date.today()
        days = food_type.shelf_life_days
        expires = add_days(today, days) if isinstance(days, int) else today

        item = await food_item_service.create(
            db,
            user_id=user_id,
            type_id=food_type.id,
            percent_left=100,
            expiration_date=expires,
        )
        return item, food_type


fridge_service = FridgeService()
