"""
Share token gateway - turns a share token into access to exactly one list.

A token is a capability: whoever holds it may read that list and change its
items, and nothing else. Both the HTTP shared-list routes and the realtime
handshake go through ``ShareTokenGateway.resolve``.
"""

from dataclasses import dataclass
from typing import Optional

from shoplist.models.repositories import ShoppingListRepository
from shoplist.services.exceptions import NotFound


@dataclass(frozen=True)
class SharedListAccess:
    """What a valid share token grants."""
    shopping_list_id: int
    owner_id: str


@dataclass(frozen=True)
class Requester:
    """
    Who is asking for a list operation.

    Either an authenticated owner (user_id set) or an anonymous holder of a
    share token (shared_list_id set to the one list the token opens).
    """
    user_id: Optional[str] = None
    shared_list_id: Optional[int] = None

    @classmethod
    def owner(cls, user_id: str) -> "Requester":
        return cls(user_id=user_id)

    @classmethod
    def shared(cls, access: SharedListAccess) -> "Requester":
        return cls(shared_list_id=access.shopping_list_id)

    @property
    def is_owner(self) -> bool:
        return self.user_id is not None


class ShareTokenGateway:
    """Resolves share tokens against the current link table."""

    def __init__(self, repo: ShoppingListRepository):
        self.repo = repo

    def resolve(self, share_token: Optional[str]) -> SharedListAccess:
        """
        Look up the list a token opens.

        Raises:
            NotFound: the token is empty, unknown or has been replaced
        """
        if not isinstance(share_token, str) or not share_token:
            raise NotFound("Shopping list not found or sharing is disabled")

        shopping_list = self.repo.get_by_share_token(share_token)
        if shopping_list is None:
            raise NotFound("Shopping list not found or sharing is disabled")

        return SharedListAccess(
            shopping_list_id=shopping_list.ShoppingListId,
            owner_id=shopping_list.UserId,
        )
