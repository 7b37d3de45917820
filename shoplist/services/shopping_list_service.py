"""
Shopping List Service - list generation, item changes and sharing.

This service handles:
- Generating a list from recipes (aggregated, scaled by servings) in one
  all-or-nothing transaction
- Checking/unchecking items and adding items, for owners and share-token holders
- Issuing, reading and revoking share tokens

Mutations never touch sockets. They return the realtime events that describe
the change; the controller emits them once the transaction has committed.
"""

import logging
import secrets
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shoplist.database import transaction
from shoplist.models import Ingredient, ShoppingList, ShoppingListItem
from shoplist.models.repositories import (
    IngredientRepository,
    RecipeRepository,
    ShoppingListRepository,
)
from shoplist.models.schemas import MAX_AMOUNT
from shoplist.services.aggregation import RecipeSelection, aggregate
from shoplist.services.exceptions import ConflictError, NotFound, ValidationError
from shoplist.services.realtime import (
    ITEM_ADDED,
    ITEM_CHECKED_CHANGED,
    RealtimeEvent,
    list_room,
    user_room,
)
from shoplist.services.share_gateway import Requester, ShareTokenGateway

logger = logging.getLogger(__name__)

AMOUNT_PLACES = Decimal("0.01")  # Matches Numeric(10, 2)
SHARE_TOKEN_BYTES = 32  # 256 bits


def quantize_amount(amount) -> Decimal:
    return Decimal(amount).quantize(AMOUNT_PLACES, rounding=ROUND_HALF_UP)


def item_payload(item: ShoppingListItem) -> dict:
    """Wire form of an item inside realtime events."""
    return {
        "id": item.ShoppingListItemId,
        "ingredientId": item.IngredientId,
        "name": item.ingredient.Name,
        "unit": item.ingredient.Unit,
        "amount": float(item.Amount),
        "checked": bool(item.IsChecked),
    }


@dataclass
class MutationResult:
    """A committed item change and the events announcing it."""
    item: ShoppingListItem
    events: list[RealtimeEvent] = field(default_factory=list)
    created: bool = False


class ShoppingListService:
    """Service for shopping list generation, item changes and sharing."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ShoppingListRepository(db)
        self.recipes = RecipeRepository(db)
        self.ingredients = IngredientRepository(db)
        self.gateway = ShareTokenGateway(self.repo)

    # ==========================================
    # Queries
    # ==========================================

    def list_for_owner(self, user_id: str) -> list[ShoppingList]:
        return self.repo.list_for_user(user_id)

    def get_list(self, shopping_list_id: int, requester: Requester) -> ShoppingList:
        """Get a list the requester may see."""
        return self._authorize(shopping_list_id, requester)

    def get_items(self, shopping_list_id: int) -> list[ShoppingListItem]:
        return self.repo.get_items(shopping_list_id)

    def resolve_share_token(self, share_token: str) -> Requester:
        """Requester for a share-token holder. NotFound for unknown tokens."""
        return Requester.shared(self.gateway.resolve(share_token))

    # ==========================================
    # List Generation
    # ==========================================

    def _load_selections(
        self,
        user_id: str,
        recipe_ids: list[int],
        servings: int
    ) -> list[RecipeSelection]:
        """
        Load the chosen recipes for aggregation.

        Raises:
            NotFound: a recipe does not exist or belongs to someone else
        """
        selections = []
        for recipe_id in recipe_ids:
            recipe = self.recipes.get_owned(recipe_id, user_id)
            if recipe is None:
                raise NotFound(f"Recipe {recipe_id} not found")

            selections.append(RecipeSelection(
                recipe_id=recipe.RecipeId,
                base_servings=recipe.Servings,
                target_servings=servings,
                ingredients=tuple(
                    (ri.IngredientId, ri.Amount) for ri in recipe.ingredients
                ),
            ))
        return selections

    def create_from_recipes(
        self,
        user_id: str,
        name: str,
        recipe_ids: list[int],
        servings: int = 1
    ) -> ShoppingList:
        """
        Create a shopping list from recipes in one operation.

        Each recipe is scaled from its base servings to `servings` and the
        amounts of identical ingredients are summed into one item. If any
        recipe is missing or foreign, nothing is stored.

        Raises:
            NotFound: a recipe does not exist or is not the user's
            ValidationError: servings is not positive, or a scaled amount is too large
        """
        if servings <= 0:
            raise ValidationError("Servings must be a positive number")

        with transaction(self.db):
            shopping_list = self.repo.create(user_id, name)
            amounts = aggregate(self._load_selections(user_id, recipe_ids, servings))
            totals = {ingredient_id: quantize_amount(amount) for ingredient_id, amount in amounts.items()}
            if any(total > MAX_AMOUNT for total in totals.values()):
                raise ValidationError(f"Scaled amounts must not exceed {MAX_AMOUNT}")
            self.repo.add_items(shopping_list.ShoppingListId, totals)

        logger.info(
            f"Created shopping list {shopping_list.ShoppingListId} for user {user_id} "
            f"from {len(recipe_ids)} recipe(s) with {len(amounts)} item(s)"
        )
        return shopping_list

    def rename(self, shopping_list_id: int, user_id: str, name: str) -> ShoppingList:
        with transaction(self.db):
            if not self.repo.rename(shopping_list_id, user_id, name):
                raise NotFound("Shopping list not found")
        return self._authorize(shopping_list_id, Requester.owner(user_id))

    def delete(self, shopping_list_id: int, user_id: str) -> None:
        with transaction(self.db):
            shopping_list = self._authorize(shopping_list_id, Requester.owner(user_id))
            self.repo.delete(shopping_list)

    # ==========================================
    # Item Changes
    # ==========================================

    def _authorize(self, shopping_list_id: int, requester: Requester) -> ShoppingList:
        """
        Get the list if the requester may use it.

        Owners see their own lists; share-token holders see exactly the list
        their token opens. Everything else looks like a missing list.
        """
        if requester.is_owner:
            shopping_list = self.repo.get_owned(shopping_list_id, requester.user_id)
        elif requester.shared_list_id == shopping_list_id:
            shopping_list = self.repo.get_by_id(shopping_list_id)
        else:
            shopping_list = None

        if shopping_list is None:
            raise NotFound("Shopping list not found")
        return shopping_list

    def toggle_item(
        self,
        shopping_list_id: int,
        item_id: int,
        checked: bool,
        requester: Requester
    ) -> MutationResult:
        """
        Set an item's checked flag.

        Setting the same value twice is harmless and announces it twice.
        Owner changes are also sent to the owner's user room so their
        other sessions follow along.

        Raises:
            NotFound: the list is not visible to the requester, or the item is not on it
        """
        with transaction(self.db):
            shopping_list = self._authorize(shopping_list_id, requester)
            if not self.repo.set_item_checked(shopping_list_id, item_id, checked):
                raise NotFound("Item not found")
            item = self.repo.get_item(shopping_list_id, item_id)

        rooms = [list_room(shopping_list_id)]
        if requester.is_owner:
            rooms.append(user_room(shopping_list.UserId))

        event = RealtimeEvent(
            ITEM_CHECKED_CHANGED,
            tuple(rooms),
            {"listId": shopping_list_id, "itemId": item_id, "checked": checked},
        )
        return MutationResult(item=item, events=[event])

    def _resolve_ingredient(
        self,
        owner_id: str,
        ingredient_id: Optional[int],
        name: Optional[str],
        unit: Optional[str]
    ) -> Ingredient:
        """
        Find the owner's ingredient by id, or by name creating it if needed.

        Raises:
            NotFound: ingredient_id is not one of the owner's ingredients
            ValidationError: neither an id nor a name and unit were given
        """
        if ingredient_id is not None:
            ingredient = self.ingredients.get_owned(ingredient_id, owner_id)
            if ingredient is None:
                raise NotFound(f"Ingredient {ingredient_id} not found")
            return ingredient

        name = (name or "").strip()
        unit = (unit or "").strip()
        if not name or not unit:
            raise ValidationError("Name and unit are required")

        ingredient = self.ingredients.get_by_name(name, owner_id)
        if ingredient is not None:
            return ingredient

        try:
            with self.db.begin_nested():
                ingredient = self.ingredients.create(owner_id, name, unit)
        except IntegrityError:
            # Created by a concurrent request in the meantime
            ingredient = self.ingredients.get_by_name(name, owner_id)
            if ingredient is None:
                raise ConflictError(f"Ingredient '{name}' could not be created, please retry")
        return ingredient

    def add_item(
        self,
        shopping_list_id: int,
        requester: Requester,
        amount: Decimal,
        ingredient_id: Optional[int] = None,
        name: Optional[str] = None,
        unit: Optional[str] = None
    ) -> MutationResult:
        """
        Add an amount of an ingredient to a list.

        The ingredient is given by id or by (name, unit); names are resolved
        among the list owner's ingredients and created there when new, no
        matter who is adding. If the ingredient is already on the list the
        amount is added to the existing item, otherwise a new unchecked item
        is created.

        Raises:
            NotFound: list not visible, or ingredient id not the owner's
            ValidationError: negative or too large amount, or missing name/unit
            ConflictError: a concurrent add could not be merged
        """
        if amount is None or Decimal(amount) < 0:
            raise ValidationError("Amount must be zero or more")
        if Decimal(amount) > MAX_AMOUNT:
            raise ValidationError(f"Amount must not exceed {MAX_AMOUNT}")

        with transaction(self.db):
            shopping_list = self._authorize(shopping_list_id, requester)
            ingredient = self._resolve_ingredient(shopping_list.UserId, ingredient_id, name, unit)
            item, created = self.repo.merge_item(
                shopping_list_id, ingredient.IngredientId, quantize_amount(amount)
            )
            if item.Amount > MAX_AMOUNT:
                raise ValidationError(f"Total amount of {ingredient.Name} would exceed {MAX_AMOUNT}")

        event = RealtimeEvent(
            ITEM_ADDED,
            (list_room(shopping_list_id),),
            {"listId": shopping_list_id, "item": item_payload(item), "merged": not created},
        )
        return MutationResult(item=item, events=[event], created=created)

    # ==========================================
    # Sharing
    # ==========================================

    def _new_share_token(self) -> str:
        token = secrets.token_urlsafe(SHARE_TOKEN_BYTES)
        # Ensure uniqueness
        while self.repo.share_token_exists(token):
            token = secrets.token_urlsafe(SHARE_TOKEN_BYTES)
        return token

    def issue_share_token(self, shopping_list_id: int, user_id: str) -> str:
        """
        Generate a new share token for a list.

        Any previous token stops working immediately.
        """
        with transaction(self.db):
            shopping_list = self._authorize(shopping_list_id, Requester.owner(user_id))
            token = self._new_share_token()
            self.repo.set_share_token(shopping_list, token)

        logger.info(f"Issued share token for shopping list {shopping_list_id}")
        return token

    def get_share_token(self, shopping_list_id: int, user_id: str) -> Optional[str]:
        """Current share token, or None if the list is not shared."""
        return self._authorize(shopping_list_id, Requester.owner(user_id)).share_token

    def revoke_share_token(self, shopping_list_id: int, user_id: str) -> bool:
        with transaction(self.db):
            shopping_list = self._authorize(shopping_list_id, Requester.owner(user_id))
            revoked = self.repo.delete_link(shopping_list)

        if revoked:
            logger.info(f"Revoked share token for shopping list {shopping_list_id}")
        return revoked
