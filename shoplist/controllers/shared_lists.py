"""
Shared Lists Controller

Routes for anyone holding a share token; no user credential is needed.
The token in the path opens exactly one list: it can be read, its items
checked off, and items added. Unknown or replaced tokens give 404.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from shoplist.controllers.common import get_broadcaster, item_response, list_detail
from shoplist.database import get_db
from shoplist.models.schemas import (
    ItemCheckUpdate,
    SharedItemAdd,
    ShoppingListDetail,
    ShoppingListItemResponse,
)
from shoplist.services.realtime import RealtimeBroadcaster
from shoplist.services.shopping_list_service import ShoppingListService

router = APIRouter(prefix="/shared/shopping-lists", tags=["shared"])


@router.get("/{share_token}", response_model=ShoppingListDetail)
def get_shared_list(share_token: str, db: Session = Depends(get_db)):
    """Get the shared list with its items, unchecked first."""
    service = ShoppingListService(db)
    requester = service.resolve_share_token(share_token)
    shopping_list = service.get_list(requester.shared_list_id, requester)
    return list_detail(shopping_list, service.get_items(shopping_list.ShoppingListId))


@router.post("/{share_token}/items", response_model=ShoppingListItemResponse, status_code=201)
def add_shared_item(
    share_token: str,
    data: SharedItemAdd,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster)
):
    """
    Add an item by name.

    The name is looked up among the list owner's ingredients and created
    there if new. An item already on the list has `amount` added to it.
    """
    service = ShoppingListService(db)
    requester = service.resolve_share_token(share_token)
    result = service.add_item(
        requester.shared_list_id,
        requester,
        data.amount,
        name=data.name,
        unit=data.unit
    )
    background_tasks.add_task(broadcaster.publish, result.events)
    return item_response(result.item)


@router.patch("/{share_token}/items/{item_id}", response_model=ShoppingListItemResponse)
def update_shared_item(
    share_token: str,
    item_id: int,
    data: ItemCheckUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster)
):
    """Check or uncheck an item on the shared list."""
    service = ShoppingListService(db)
    requester = service.resolve_share_token(share_token)
    result = service.toggle_item(requester.shared_list_id, item_id, data.checked, requester)
    background_tasks.add_task(broadcaster.publish, result.events)
    return item_response(result.item)
