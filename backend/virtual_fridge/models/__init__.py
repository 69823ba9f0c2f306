from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.food_type import FoodType
from virtual_fridge.models.user import User

__all__ = ["FoodItem", "FoodType", "User"]
