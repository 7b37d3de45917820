"""
Realtime Controller

WebSocket endpoint for live shopping list updates.

Protocol:
1. Client connects to /ws and sends the handshake as its first message:
   {"token": "<bearer>"} and/or {"shareToken": "<share token>"}
2. Server answers {"event": "connected", "data": {...}} or an error event
   followed by close code 1008
3. Owner sessions may then send {"type": "join_list", "listId": n} and
   {"type": "leave_list", "listId": n}
4. Item changes arrive as {"event": "item_checked_changed" | "item_added", "data": {...}}

Nothing is replayed. A client that reconnects should re-fetch the list.
"""

import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from shoplist.auth import verify_access_token
from shoplist.database import SessionLocal
from shoplist.models.repositories import ShoppingListRepository
from shoplist.services.realtime import RealtimeBroadcaster, list_room
from shoplist.services.session_auth import RealtimeSession, SessionAuthenticator
from shoplist.services.share_gateway import ShareTokenGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

POLICY_VIOLATION = 1008


class Connection:
    """
    One open realtime session as seen by the broadcaster.

    Starlette's WebSocket is not hashable, so room membership is tracked
    on this wrapper instead.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send_json(self, data: Any) -> None:
        await self.websocket.send_json(data)

    async def send_event(self, name: str, data: dict) -> None:
        await self.websocket.send_json({"event": name, "data": data})

    async def send_error(self, message: str) -> None:
        await self.send_event("error", {"message": message})


# ============================================
# Store access (runs in the threadpool)
# ============================================

def _authenticate(handshake: Any) -> RealtimeSession:
    db = SessionLocal()
    try:
        gateway = ShareTokenGateway(ShoppingListRepository(db))
        return SessionAuthenticator(verify_access_token, gateway).authenticate(handshake)
    finally:
        db.close()


def _owns_list(shopping_list_id: int, user_id: str) -> bool:
    db = SessionLocal()
    try:
        return ShoppingListRepository(db).is_owner(shopping_list_id, user_id)
    finally:
        db.close()


# ============================================
# Endpoint
# ============================================

async def _handle_message(
    connection: Connection,
    session: RealtimeSession,
    broadcaster: RealtimeBroadcaster,
    message: Any
) -> None:
    """Apply one client message after the handshake."""
    if not isinstance(message, dict):
        await connection.send_error("Messages must be JSON objects")
        return

    kind = message.get("type")
    if kind not in ("join_list", "leave_list"):
        await connection.send_error(f"Unknown message type: {kind}")
        return

    if not session.is_owner:
        await connection.send_error("Only list owners can join or leave lists")
        return

    list_id = message.get("listId")
    if not isinstance(list_id, int) or isinstance(list_id, bool):
        await connection.send_error("listId must be an integer")
        return

    if kind == "leave_list":
        broadcaster.leave(connection, list_room(list_id))
        await connection.send_event("left_list", {"listId": list_id})
        return

    if not await run_in_threadpool(_owns_list, list_id, session.user_id):
        await connection.send_error("Shopping list not found")
        return

    broadcaster.join(connection, list_room(list_id))
    logger.info(f"User {session.user_id} joined realtime room for list {list_id}")
    await connection.send_event("joined_list", {"listId": list_id})


@router.websocket("/ws")
async def realtime_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for shopping list updates.

    Owner sessions start in their user room and join list rooms on request;
    shared sessions are placed in the one list room their token opens.
    """
    broadcaster: RealtimeBroadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    connection = Connection(websocket)

    try:
        handshake = await websocket.receive_json()
    except WebSocketDisconnect:
        return
    except ValueError:
        handshake = None

    session = await run_in_threadpool(_authenticate, handshake)
    if session.rejected:
        await connection.send_error(session.reason or "Unauthorized")
        await websocket.close(code=POLICY_VIOLATION)
        return

    try:
        for room in session.initial_rooms:
            broadcaster.join(connection, room)
        await connection.send_event("connected", session.describe())

        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await connection.send_error("Invalid JSON")
                continue
            await _handle_message(connection, session, broadcaster, message)
    except WebSocketDisconnect:
        logger.info("Realtime client disconnected")
    finally:
        broadcaster.disconnect(connection)
