"""
Shopping Lists Controller

Owner routes for shopping lists:
- Generating a list from recipes, scaled to a number of servings
- Reading lists and their items (also the re-sync fetch for realtime clients)
- Checking items off and adding items
- Managing the share token

Item changes are announced to realtime subscribers after the response, once
the change is committed.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from shoplist.auth import UserContext, get_current_user
from shoplist.controllers.common import get_broadcaster, item_response, list_detail, list_summary
from shoplist.database import get_db
from shoplist.models.schemas import (
    ItemAdd,
    ItemCheckUpdate,
    ShareTokenResponse,
    ShoppingListCreate,
    ShoppingListDetail,
    ShoppingListItemResponse,
    ShoppingListRename,
    ShoppingListSummary,
)
from shoplist.services.realtime import RealtimeBroadcaster
from shoplist.services.share_gateway import Requester
from shoplist.services.shopping_list_service import ShoppingListService

router = APIRouter(prefix="/shopping-lists", tags=["shopping-lists"])


@router.get("", response_model=list[ShoppingListSummary])
def list_shopping_lists(
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the user's shopping lists, newest first."""
    return [list_summary(sl) for sl in ShoppingListService(db).list_for_owner(user.user_id)]


@router.get("/{list_id}", response_model=ShoppingListDetail)
def get_shopping_list(
    list_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a list with its items, unchecked first."""
    service = ShoppingListService(db)
    shopping_list = service.get_list(list_id, Requester.owner(user.user_id))
    return list_detail(shopping_list, service.get_items(list_id))


@router.post("", response_model=ShoppingListDetail, status_code=201)
def create_shopping_list(
    data: ShoppingListCreate,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Generate a shopping list from recipes.

    Each recipe's ingredient amounts are scaled from its own servings to
    `servings`, and identical ingredients are summed into one item. If any
    recipe is missing or belongs to someone else nothing is created.
    """
    service = ShoppingListService(db)
    shopping_list = service.create_from_recipes(
        user.user_id, data.name, data.recipe_ids, data.servings
    )
    return list_detail(shopping_list, service.get_items(shopping_list.ShoppingListId))


@router.patch("/{list_id}", response_model=ShoppingListSummary)
def rename_shopping_list(
    list_id: int,
    data: ShoppingListRename,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return list_summary(ShoppingListService(db).rename(list_id, user.user_id, data.name))


@router.delete("/{list_id}", status_code=204)
def delete_shopping_list(
    list_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a list with its items and share link."""
    ShoppingListService(db).delete(list_id, user.user_id)


# ============================================
# Items
# ============================================

@router.patch("/{list_id}/items/{item_id}", response_model=ShoppingListItemResponse)
def update_item(
    list_id: int,
    item_id: int,
    data: ItemCheckUpdate,
    background_tasks: BackgroundTasks,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster)
):
    """Check or uncheck an item."""
    result = ShoppingListService(db).toggle_item(
        list_id, item_id, data.checked, Requester.owner(user.user_id)
    )
    background_tasks.add_task(broadcaster.publish, result.events)
    return item_response(result.item)


@router.post("/{list_id}/items", response_model=ShoppingListItemResponse, status_code=201)
def add_item(
    list_id: int,
    data: ItemAdd,
    background_tasks: BackgroundTasks,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster)
):
    """
    Add an ingredient to the list.

    If the ingredient is already on the list its amount grows by `amount`.
    """
    result = ShoppingListService(db).add_item(
        list_id,
        Requester.owner(user.user_id),
        data.amount,
        ingredient_id=data.ingredient_id,
        name=data.name,
        unit=data.unit
    )
    background_tasks.add_task(broadcaster.publish, result.events)
    return item_response(result.item)


# ============================================
# Sharing
# ============================================

@router.post("/{list_id}/share", response_model=ShareTokenResponse)
def share_shopping_list(
    list_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Generate (or regenerate) the share token. Old links stop working."""
    token = ShoppingListService(db).issue_share_token(list_id, user.user_id)
    return ShareTokenResponse(share_token=token)


@router.get("/{list_id}/share", response_model=ShareTokenResponse)
def get_share_token(
    list_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current share token, null if the list is not shared."""
    return ShareTokenResponse(
        share_token=ShoppingListService(db).get_share_token(list_id, user.user_id)
    )


@router.delete("/{list_id}/share", status_code=204)
def revoke_share_token(
    list_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Stop sharing the list."""
    ShoppingListService(db).revoke_share_token(list_id, user.user_id)
