"""
Models Package - Database Entities

This package contains SQLAlchemy ORM models for the shopping list database.
API schemas live in shoplist.models.schemas.
"""

from shoplist.models.entities import (
    Ingredient,
    Recipe,
    RecipeIngredient,
    ShoppingList,
    ShoppingListItem,
    ShoppingListLink,
)

__all__ = [
    # Recipe models
    "Ingredient",
    "Recipe",
    "RecipeIngredient",
    # Shopping list models
    "ShoppingList",
    "ShoppingListItem",
    "ShoppingListLink",
]
