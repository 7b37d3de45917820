"""
Recipe Repository - Data access for recipes and their ingredient lines.

Methods flush but never commit; the calling service decides the transaction
boundary.
"""

from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from shoplist.models.entities import Recipe, RecipeIngredient
from shoplist.models.repositories.updates import build_update

RECIPE_COLUMNS = {"name": "Name", "description": "Description", "servings": "Servings"}


class RecipeRepository:
    """Repository for recipe database operations."""

    def __init__(self, db: Session):
        """Initialize with a database session."""
        self.db = db

    def list_for_user(self, user_id: str, search: Optional[str] = None) -> list[Recipe]:
        """
        Get a user's recipes, newest first.

        Args:
            search: Optional case-insensitive text matched against name and description
        """
        query = self.db.query(Recipe).options(
            joinedload(Recipe.ingredients).joinedload(RecipeIngredient.ingredient)
        ).filter(Recipe.UserId == user_id)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Recipe.Name.ilike(pattern), Recipe.Description.ilike(pattern))
            )

        return query.order_by(Recipe.CreatedDate.desc(), Recipe.RecipeId.desc()).all()

    def get_owned(self, recipe_id: int, user_id: str) -> Optional[Recipe]:
        """Get a recipe with its ingredient lines, only if the user owns it."""
        return self.db.query(Recipe).options(
            joinedload(Recipe.ingredients).joinedload(RecipeIngredient.ingredient)
        ).filter(
            Recipe.RecipeId == recipe_id,
            Recipe.UserId == user_id
        ).first()

    def create(
        self,
        user_id: str,
        name: str,
        servings: int,
        description: Optional[str] = None
    ) -> Recipe:
        recipe = Recipe(
            Name=name,
            Description=description or "",
            Servings=servings,
            UserId=user_id
        )
        self.db.add(recipe)
        self.db.flush()  # Get the RecipeId
        return recipe

    def update(self, recipe_id: int, user_id: str, changes: dict) -> int:
        """
        Apply a partial update. Returns the number of rows changed.

        Args:
            changes: dict with optional keys: name, description, servings
        """
        statement = build_update(
            Recipe,
            changes,
            RECIPE_COLUMNS,
            Recipe.RecipeId == recipe_id,
            Recipe.UserId == user_id,
        )
        result = self.db.execute(statement.execution_options(synchronize_session="fetch"))
        return result.rowcount

    def replace_ingredients(
        self,
        recipe: Recipe,
        lines: Iterable[tuple[int, Decimal]]
    ) -> None:
        """
        Replace a recipe's ingredient lines.

        Args:
            lines: (ingredient_id, amount) pairs; ownership is checked by the caller
        """
        recipe.ingredients.clear()
        self.db.flush()
        for ingredient_id, amount in lines:
            recipe.ingredients.append(
                RecipeIngredient(IngredientId=ingredient_id, Amount=amount)
            )
        self.db.flush()

    def delete(self, recipe: Recipe) -> None:
        """Delete a recipe (cascades to its ingredient lines)."""
        self.db.delete(recipe)
        self.db.flush()
