"""
Ingredient Repository - Data access for a user's ingredients.

Methods flush but never commit; the calling service decides the transaction
boundary.
"""

from typing import Optional

from sqlalchemy.orm import Session

from shoplist.models.entities import Ingredient
from shoplist.models.repositories.updates import build_update

INGREDIENT_COLUMNS = {"name": "Name", "unit": "Unit"}


class IngredientRepository:
    """Repository for ingredient database operations."""

    def __init__(self, db: Session):
        """Initialize with a database session."""
        self.db = db

    def list_for_user(self, user_id: str) -> list[Ingredient]:
        return self.db.query(Ingredient).filter(
            Ingredient.UserId == user_id
        ).order_by(Ingredient.Name).all()

    def get_owned(self, ingredient_id: int, user_id: str) -> Optional[Ingredient]:
        """Get an ingredient only if it belongs to the user."""
        return self.db.query(Ingredient).filter(
            Ingredient.IngredientId == ingredient_id,
            Ingredient.UserId == user_id
        ).first()

    def get_by_name(self, name: str, user_id: str) -> Optional[Ingredient]:
        return self.db.query(Ingredient).filter(
            Ingredient.Name == name,
            Ingredient.UserId == user_id
        ).first()

    def create(self, user_id: str, name: str, unit: str) -> Ingredient:
        ingredient = Ingredient(Name=name, Unit=unit, UserId=user_id)
        self.db.add(ingredient)
        self.db.flush()
        return ingredient

    def update(self, ingredient_id: int, user_id: str, changes: dict) -> int:
        """
        Apply a partial update. Returns the number of rows changed.

        Args:
            changes: dict with optional keys: name, unit
        """
        statement = build_update(
            Ingredient,
            changes,
            INGREDIENT_COLUMNS,
            Ingredient.IngredientId == ingredient_id,
            Ingredient.UserId == user_id,
        )
        result = self.db.execute(statement.execution_options(synchronize_session="fetch"))
        return result.rowcount

    def delete(self, ingredient: Ingredient) -> None:
        """Delete an ingredient (cascades to recipe lines and list items)."""
        self.db.delete(ingredient)
        self.db.flush()
