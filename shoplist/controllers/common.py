"""
Helpers shared by the shopping list controllers.

Response builders turn ORM entities into the API schemas, and
``get_broadcaster`` hands out the process-wide broadcaster created in the
application lifespan.
"""

from fastapi import Request

from shoplist.models import ShoppingList, ShoppingListItem
from shoplist.models.schemas import (
    ShoppingListDetail,
    ShoppingListItemResponse,
    ShoppingListSummary,
)
from shoplist.services.realtime import RealtimeBroadcaster


def get_broadcaster(request: Request) -> RealtimeBroadcaster:
    return request.app.state.broadcaster


def item_response(item: ShoppingListItem) -> ShoppingListItemResponse:
    return ShoppingListItemResponse(
        item_id=item.ShoppingListItemId,
        ingredient_id=item.IngredientId,
        name=item.ingredient.Name,
        unit=item.ingredient.Unit,
        amount=item.Amount,
        checked=item.IsChecked
    )


def list_summary(shopping_list: ShoppingList) -> ShoppingListSummary:
    return ShoppingListSummary(
        shopping_list_id=shopping_list.ShoppingListId,
        name=shopping_list.Name,
        created_date=shopping_list.CreatedDate,
        updated_date=shopping_list.UpdatedDate
    )


def list_detail(
    shopping_list: ShoppingList,
    items: list[ShoppingListItem]
) -> ShoppingListDetail:
    return ShoppingListDetail(
        shopping_list_id=shopping_list.ShoppingListId,
        name=shopping_list.Name,
        created_date=shopping_list.CreatedDate,
        updated_date=shopping_list.UpdatedDate,
        items=[item_response(item) for item in items]
    )
