"""
Shopping List Repository - Data access for shopping list operations.

This repository handles all database operations related to shopping lists,
their items and share links. Methods flush but never commit; the calling
service wraps them in a transaction.
"""

import logging
from decimal import Decimal
from typing import Mapping, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session, joinedload

from shoplist.models.entities import (
    Ingredient,
    ShoppingList,
    ShoppingListItem,
    ShoppingListLink,
)
from shoplist.models.repositories.updates import build_update
from shoplist.services.exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)

SHOPPING_LIST_COLUMNS = {"name": "Name"}

# Attempts at the merge-or-insert before giving up on a concurrent writer
MERGE_ATTEMPTS = 2


class ShoppingListRepository:
    """Repository for shopping list database operations."""

    def __init__(self, db: Session):
        """Initialize with a database session."""
        self.db = db

    # ==========================================
    # Shopping List CRUD
    # ==========================================

    def create(self, user_id: str, name: str) -> ShoppingList:
        """
        Create a new, empty shopping list for a user.

        Args:
            user_id: Subject of the owner's bearer credential
            name: Name for the list
        """
        shopping_list = ShoppingList(UserId=user_id, Name=name)
        self.db.add(shopping_list)
        self.db.flush()
        return shopping_list

    def get_by_id(self, shopping_list_id: int) -> Optional[ShoppingList]:
        """Get a shopping list by ID with its link loaded."""
        return self.db.query(ShoppingList).options(
            joinedload(ShoppingList.link)
        ).filter(ShoppingList.ShoppingListId == shopping_list_id).first()

    def get_owned(self, shopping_list_id: int, user_id: str) -> Optional[ShoppingList]:
        """Get a shopping list only if the user owns it."""
        return self.db.query(ShoppingList).options(
            joinedload(ShoppingList.link)
        ).filter(
            ShoppingList.ShoppingListId == shopping_list_id,
            ShoppingList.UserId == user_id
        ).first()

    def get_by_share_token(self, share_token: str) -> Optional[ShoppingList]:
        """Get the shopping list a share token currently points at."""
        return self.db.query(ShoppingList).join(ShoppingList.link).filter(
            ShoppingListLink.ShareToken == share_token
        ).first()

    def list_for_user(self, user_id: str) -> list[ShoppingList]:
        """Get all shopping lists for a user, newest first."""
        return self.db.query(ShoppingList).filter(
            ShoppingList.UserId == user_id
        ).order_by(
            ShoppingList.CreatedDate.desc(),
            ShoppingList.ShoppingListId.desc()
        ).all()

    def is_owner(self, shopping_list_id: int, user_id: str) -> bool:
        """Check if a user owns a shopping list."""
        result = self.db.query(ShoppingList.ShoppingListId).filter(
            ShoppingList.ShoppingListId == shopping_list_id,
            ShoppingList.UserId == user_id
        ).first()
        return result is not None

    def rename(self, shopping_list_id: int, user_id: str, name: str) -> int:
        """Rename a list. Returns the number of rows changed."""
        statement = build_update(
            ShoppingList,
            {"name": name},
            SHOPPING_LIST_COLUMNS,
            ShoppingList.ShoppingListId == shopping_list_id,
            ShoppingList.UserId == user_id,
        )
        result = self.db.execute(statement.execution_options(synchronize_session="fetch"))
        return result.rowcount

    def delete(self, shopping_list: ShoppingList) -> None:
        """Delete a shopping list (cascades to items and link)."""
        self.db.delete(shopping_list)
        self.db.flush()

    # ==========================================
    # Item Management
    # ==========================================

    def add_items(
        self,
        shopping_list_id: int,
        amounts: Mapping[int, Decimal]
    ) -> list[ShoppingListItem]:
        """
        Insert one unchecked item per ingredient.

        Args:
            amounts: ingredient_id -> amount
        """
        items = []
        for ingredient_id, amount in amounts.items():
            item = ShoppingListItem(
                ShoppingListId=shopping_list_id,
                IngredientId=ingredient_id,
                Amount=amount,
                IsChecked=False
            )
            self.db.add(item)
            items.append(item)
        self.db.flush()
        return items

    def get_items(self, shopping_list_id: int) -> list[ShoppingListItem]:
        """Get a list's items, unchecked first, then by ingredient name."""
        return self.db.query(ShoppingListItem).join(
            ShoppingListItem.ingredient
        ).options(
            joinedload(ShoppingListItem.ingredient)
        ).filter(
            ShoppingListItem.ShoppingListId == shopping_list_id
        ).order_by(
            ShoppingListItem.IsChecked,
            Ingredient.Name
        ).populate_existing().all()

    def get_item(self, shopping_list_id: int, item_id: int) -> Optional[ShoppingListItem]:
        """Get an item, only if it belongs to the given list."""
        return self.db.query(ShoppingListItem).options(
            joinedload(ShoppingListItem.ingredient)
        ).filter(
            ShoppingListItem.ShoppingListItemId == item_id,
            ShoppingListItem.ShoppingListId == shopping_list_id
        ).populate_existing().first()

    def get_item_for_ingredient(
        self,
        shopping_list_id: int,
        ingredient_id: int
    ) -> Optional[ShoppingListItem]:
        return self.db.query(ShoppingListItem).options(
            joinedload(ShoppingListItem.ingredient)
        ).filter(
            ShoppingListItem.ShoppingListId == shopping_list_id,
            ShoppingListItem.IngredientId == ingredient_id
        ).populate_existing().first()

    def set_item_checked(self, shopping_list_id: int, item_id: int, is_checked: bool) -> bool:
        """Set the checked status of an item. False if the item is not on the list."""
        result = self.db.execute(
            update(ShoppingListItem).where(
                ShoppingListItem.ShoppingListItemId == item_id,
                ShoppingListItem.ShoppingListId == shopping_list_id
            ).values(
                IsChecked=is_checked,
                UpdatedDate=func.now()
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def merge_item(
        self,
        shopping_list_id: int,
        ingredient_id: int,
        amount: Decimal
    ) -> tuple[ShoppingListItem, bool]:
        """
        Add an amount of an ingredient to a list.

        If the ingredient is already on the list its amount is increased in a
        single UPDATE; otherwise a new unchecked item is inserted under a
        savepoint. An insert that loses a race with a concurrent writer hits
        the (list, ingredient) unique constraint, and the update is retried.

        Returns:
            (item, created) where created is False when an existing item was merged

        Raises:
            ConflictError: the item could not be merged or inserted after retrying
            ValidationError: the summed amount overflows the amount column
        """
        for attempt in range(1, MERGE_ATTEMPTS + 1):
            try:
                merged = self.db.execute(
                    update(ShoppingListItem).where(
                        ShoppingListItem.ShoppingListId == shopping_list_id,
                        ShoppingListItem.IngredientId == ingredient_id
                    ).values(
                        Amount=ShoppingListItem.Amount + amount,
                        UpdatedDate=func.now()
                    ).execution_options(synchronize_session=False)
                ).rowcount
            except DataError as e:
                # The summed amount no longer fits the Numeric(10, 2) column
                raise ValidationError(
                    f"Total amount of ingredient {ingredient_id} on list {shopping_list_id} is too large"
                ) from e

            if merged:
                return self.get_item_for_ingredient(shopping_list_id, ingredient_id), False

            item = ShoppingListItem(
                ShoppingListId=shopping_list_id,
                IngredientId=ingredient_id,
                Amount=amount,
                IsChecked=False
            )
            try:
                with self.db.begin_nested():
                    self.db.add(item)
            except IntegrityError:
                logger.warning(
                    f"Concurrent insert of ingredient {ingredient_id} on list "
                    f"{shopping_list_id} (attempt {attempt}), retrying as merge"
                )
                continue

            return self.get_item_for_ingredient(shopping_list_id, ingredient_id), True

        raise ConflictError(
            f"Ingredient {ingredient_id} is being changed concurrently on list "
            f"{shopping_list_id}, please retry"
        )

    # ==========================================
    # Link Management
    # ==========================================

    def set_share_token(self, shopping_list: ShoppingList, share_token: str) -> ShoppingListLink:
        """Point the list's link at a new token, replacing any previous one."""
        link = shopping_list.link
        if link is None:
            link = ShoppingListLink(ShoppingListId=shopping_list.ShoppingListId)
            shopping_list.link = link
        link.ShareToken = share_token
        link.CreatedDate = func.now()
        self.db.flush()
        return link

    def share_token_exists(self, share_token: str) -> bool:
        return self.db.query(ShoppingListLink.LinkId).filter(
            ShoppingListLink.ShareToken == share_token
        ).first() is not None

    def delete_link(self, shopping_list: ShoppingList) -> bool:
        """Remove the list's share link. False if it had none."""
        if shopping_list.link is None:
            return False
        shopping_list.link = None
        self.db.flush()
        return True
