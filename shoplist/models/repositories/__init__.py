"""
Repositories - Data access layer for database operations.
"""

from shoplist.models.repositories.ingredient_repository import IngredientRepository
from shoplist.models.repositories.recipe_repository import RecipeRepository
from shoplist.models.repositories.shopping_list_repository import ShoppingListRepository
from shoplist.models.repositories.updates import build_update

__all__ = [
    "IngredientRepository",
    "RecipeRepository",
    "ShoppingListRepository",
    "build_update",
]
