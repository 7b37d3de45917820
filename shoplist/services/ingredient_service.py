"""
Ingredient Service - a user's ingredient vocabulary.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shoplist.database import transaction
from shoplist.models import Ingredient
from shoplist.models.repositories import IngredientRepository
from shoplist.services.exceptions import ConflictError, NotFound


class IngredientService:
    """CRUD over the ingredients owned by one user."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = IngredientRepository(db)

    def list_for_owner(self, user_id: str) -> list[Ingredient]:
        return self.repo.list_for_user(user_id)

    def get(self, ingredient_id: int, user_id: str) -> Ingredient:
        ingredient = self.repo.get_owned(ingredient_id, user_id)
        if ingredient is None:
            raise NotFound("Ingredient not found")
        return ingredient

    def create(self, user_id: str, name: str, unit: str) -> Ingredient:
        """
        Raises:
            ConflictError: the user already has an ingredient with this name
        """
        try:
            with transaction(self.db):
                if self.repo.get_by_name(name, user_id) is not None:
                    raise ConflictError("Ingredient already exists")
                ingredient = self.repo.create(user_id, name, unit)
        except IntegrityError as e:
            raise ConflictError("Ingredient already exists") from e
        return ingredient

    def update(self, ingredient_id: int, user_id: str, changes: dict) -> Ingredient:
        """
        Change name and/or unit.

        Raises:
            NotFound: not the user's ingredient
            ValidationError: nothing to change
            ConflictError: the new name is already taken
        """
        try:
            with transaction(self.db):
                if not self.repo.update(ingredient_id, user_id, changes):
                    raise NotFound("Ingredient not found")
        except IntegrityError as e:
            raise ConflictError("Ingredient already exists") from e
        return self.get(ingredient_id, user_id)

    def delete(self, ingredient_id: int, user_id: str) -> None:
        with transaction(self.db):
            self.repo.delete(self.get(ingredient_id, user_id))
