"""
Recipe Service - recipes and their ingredient lines.

Recipe ingredient lines may only reference the owner's own ingredients.
Creating or updating a recipe is all-or-nothing.
"""

from typing import Optional

from sqlalchemy.orm import Session

from shoplist.database import transaction
from shoplist.models import Recipe
from shoplist.models.repositories import IngredientRepository, RecipeRepository
from shoplist.models.schemas import RecipeIngredientInput
from shoplist.services.exceptions import NotFound


class RecipeService:
    """CRUD over the recipes owned by one user."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RecipeRepository(db)
        self.ingredients = IngredientRepository(db)

    def list_for_owner(self, user_id: str, search: Optional[str] = None) -> list[Recipe]:
        return self.repo.list_for_user(user_id, search=search)

    def get(self, recipe_id: int, user_id: str) -> Recipe:
        recipe = self.repo.get_owned(recipe_id, user_id)
        if recipe is None:
            raise NotFound("Recipe not found")
        return recipe

    def _check_lines(self, user_id: str, lines: list[RecipeIngredientInput]) -> list[tuple]:
        """Ingredient lines as (ingredient_id, amount), all owned by the user."""
        checked = []
        for line in lines:
            if self.ingredients.get_owned(line.ingredient_id, user_id) is None:
                raise NotFound(f"Ingredient {line.ingredient_id} not found")
            checked.append((line.ingredient_id, line.amount))
        return checked

    def create(
        self,
        user_id: str,
        name: str,
        servings: int,
        description: Optional[str] = None,
        ingredients: Optional[list[RecipeIngredientInput]] = None
    ) -> Recipe:
        """
        Create a recipe with its ingredient lines.

        Raises:
            NotFound: an ingredient line references an ingredient the user does not own
        """
        with transaction(self.db):
            recipe = self.repo.create(user_id, name, servings, description)
            self.repo.replace_ingredients(recipe, self._check_lines(user_id, ingredients or []))
            recipe_id = recipe.RecipeId

        return self.get(recipe_id, user_id)

    def update(
        self,
        recipe_id: int,
        user_id: str,
        changes: dict,
        ingredients: Optional[list[RecipeIngredientInput]] = None
    ) -> Recipe:
        """
        Partially update a recipe; replace its lines when ingredients is given.

        Raises:
            NotFound: not the user's recipe, or a foreign ingredient
            ValidationError: neither fields nor ingredients were given
        """
        with transaction(self.db):
            recipe = self.get(recipe_id, user_id)
            if any(value is not None for value in changes.values()) or ingredients is None:
                self.repo.update(recipe_id, user_id, changes)
            if ingredients is not None:
                self.repo.replace_ingredients(recipe, self._check_lines(user_id, ingredients))

        self.db.expire_all()
        return self.get(recipe_id, user_id)

    def delete(self, recipe_id: int, user_id: str) -> None:
        with transaction(self.db):
            self.repo.delete(self.get(recipe_id, user_id))
