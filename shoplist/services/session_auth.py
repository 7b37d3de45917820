"""
Realtime session authentication.

Classifies an incoming realtime connection from its handshake payload
``{"token"?: bearer credential, "shareToken"?: share token}``:

- a valid bearer credential makes an owner session, joined to ``user:{id}``
- otherwise a valid share token makes a shared session, joined to
  ``list:{id}`` for the one list the token opens
- anything else is rejected

An invalid bearer credential falls through to the share token when one was
also presented. The classification never changes after the handshake.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from shoplist.services.exceptions import AuthorizationError, NotFound
from shoplist.services.realtime import list_room, user_room
from shoplist.services.share_gateway import ShareTokenGateway

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CONNECTED_OWNER = "connected-owner"
    CONNECTED_SHARED = "connected-shared"
    REJECTED = "rejected"


@dataclass(frozen=True)
class RealtimeSession:
    """Outcome of a handshake."""
    state: SessionState
    user_id: Optional[str] = None
    shopping_list_id: Optional[int] = None
    reason: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return self.state is SessionState.CONNECTED_OWNER

    @property
    def is_shared(self) -> bool:
        return self.state is SessionState.CONNECTED_SHARED

    @property
    def rejected(self) -> bool:
        return self.state is SessionState.REJECTED

    @property
    def initial_rooms(self) -> tuple[str, ...]:
        """Rooms the session is auto-joined to on connect."""
        if self.is_owner:
            return (user_room(self.user_id),)
        if self.is_shared:
            return (list_room(self.shopping_list_id),)
        return ()

    def describe(self) -> dict:
        """Payload of the ``connected`` message sent back to the client."""
        if self.is_owner:
            return {"role": "owner", "userId": self.user_id}
        return {"role": "shared", "listId": self.shopping_list_id}


class SessionAuthenticator:
    """
    Runs the handshake state machine for one connection.

    Args:
        verify_credential: returns the user id for a bearer credential, or
            raises AuthorizationError
        gateway: resolves share tokens
    """

    def __init__(
        self,
        verify_credential: Callable[[str], str],
        gateway: ShareTokenGateway
    ):
        self.verify_credential = verify_credential
        self.gateway = gateway

    def authenticate(self, handshake: Optional[dict]) -> RealtimeSession:
        handshake = handshake if isinstance(handshake, dict) else {}
        credential = handshake.get("token")
        share_token = handshake.get("shareToken")

        if not credential and not share_token:
            return self._reject("No credential or share token presented")
        if not isinstance(credential or "", str) or not isinstance(share_token or "", str):
            return self._reject("Credentials must be strings")

        if credential:
            try:
                user_id = self.verify_credential(credential)
            except AuthorizationError as e:
                if not share_token:
                    return self._reject(e.message)
                logger.info("Bearer credential rejected, trying share token")
            else:
                logger.info(f"Realtime owner session for user {user_id}")
                return RealtimeSession(SessionState.CONNECTED_OWNER, user_id=user_id)

        try:
            access = self.gateway.resolve(share_token)
        except NotFound as e:
            return self._reject(e.message)

        logger.info(f"Realtime shared session for list {access.shopping_list_id}")
        return RealtimeSession(
            SessionState.CONNECTED_SHARED,
            shopping_list_id=access.shopping_list_id
        )

    def _reject(self, reason: str) -> RealtimeSession:
        logger.info(f"Realtime connection rejected: {reason}")
        return RealtimeSession(SessionState.REJECTED, reason=reason)
