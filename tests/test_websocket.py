"""Realtime WebSocket tests: handshake, rooms and live item events."""

import asyncio
from types import SimpleNamespace

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import OWNER_ID, create_ingredient, create_list, create_recipe, share_list
from shoplist.auth import create_access_token
from shoplist.controllers.realtime import realtime_endpoint
from shoplist.services.realtime import RealtimeBroadcaster


def shared_list(client, headers):
    """A shared list with 2 lemons. Returns (list_id, item, token)."""
    lemon_id = create_ingredient(client, headers, "Lemon", "pieces")
    recipe_id = create_recipe(client, headers, "Lemonade", 1, [(lemon_id, 2)])
    data = create_list(client, headers, [recipe_id])
    return data["shopping_list_id"], data["items"][0], share_list(client, headers, data["shopping_list_id"])


def connect(ws, handshake):
    ws.send_json(handshake)
    return ws.receive_json()


class TestHandshake:

    def test_owner_session(self, client):
        with client.websocket_connect("/ws") as ws:
            reply = connect(ws, {"token": create_access_token(OWNER_ID)})

        assert reply == {"event": "connected", "data": {"role": "owner", "userId": OWNER_ID}}

    def test_shared_session(self, client, auth_headers):
        list_id, _, token = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            reply = connect(ws, {"shareToken": token})

        assert reply == {"event": "connected", "data": {"role": "shared", "listId": list_id}}

    def test_invalid_bearer_falls_through_to_share_token(self, client, auth_headers):
        list_id, _, token = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            reply = connect(ws, {"token": "forged", "shareToken": token})

        assert reply["data"] == {"role": "shared", "listId": list_id}

    @pytest.mark.parametrize("handshake", [
        {},
        {"token": "forged"},
        {"shareToken": "unknown"},
        {"shareToken": ["x"]},
        {"token": {"sub": "user-1"}},
    ])
    def test_rejected_with_policy_violation(self, client, handshake):
        with client.websocket_connect("/ws") as ws:
            reply = connect(ws, handshake)
            assert reply["event"] == "error"
            with pytest.raises(WebSocketDisconnect) as closed:
                ws.receive_json()

        assert closed.value.code == 1008


class TestLiveEvents:

    def test_shared_session_sees_added_item(self, client, auth_headers):
        list_id, _, token = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            connect(ws, {"shareToken": token})
            client.post(
                f"/shared/shopping-lists/{token}/items",
                json={"name": "Mint", "unit": "sprigs", "amount": 3},
            )
            message = ws.receive_json()

        assert message["event"] == "item_added"
        assert message["data"]["listId"] == list_id
        assert message["data"]["merged"] is False
        assert message["data"]["item"]["name"] == "Mint"
        assert message["data"]["item"]["amount"] == 3.0
        assert message["data"]["item"]["checked"] is False

    def test_shared_session_sees_merged_item(self, client, auth_headers):
        _, item, token = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            connect(ws, {"shareToken": token})
            client.post(
                f"/shared/shopping-lists/{token}/items",
                json={"name": "Lemon", "unit": "pieces", "amount": 3},
            )
            message = ws.receive_json()

        assert message["data"]["merged"] is True
        assert message["data"]["item"]["id"] == item["item_id"]
        assert message["data"]["item"]["amount"] == 5.0

    def test_owner_in_two_rooms_gets_one_event(self, client, auth_headers):
        list_id, item, _ = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            connect(ws, {"token": create_access_token(OWNER_ID)})
            ws.send_json({"type": "join_list", "listId": list_id})
            assert ws.receive_json() == {"event": "joined_list", "data": {"listId": list_id}}

            client.patch(
                f"/shopping-lists/{list_id}/items/{item['item_id']}",
                headers=auth_headers,
                json={"checked": True},
            )
            message = ws.receive_json()

            # The next message must be the reply to leave_list, not a second copy
            ws.send_json({"type": "leave_list", "listId": list_id})
            follow_up = ws.receive_json()

        assert message == {
            "event": "item_checked_changed",
            "data": {"listId": list_id, "itemId": item["item_id"], "checked": True},
        }
        assert follow_up == {"event": "left_list", "data": {"listId": list_id}}

    def test_owner_sees_shared_changes_after_joining(self, client, auth_headers):
        list_id, item, token = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            connect(ws, {"token": create_access_token(OWNER_ID)})
            ws.send_json({"type": "join_list", "listId": list_id})
            ws.receive_json()

            client.patch(f"/shared/shopping-lists/{token}/items/{item['item_id']}", json={"checked": True})
            message = ws.receive_json()

        assert message["event"] == "item_checked_changed"
        assert message["data"]["checked"] is True

    def test_owner_cannot_join_foreign_list(self, client, auth_headers):
        list_id, _, _ = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            connect(ws, {"token": create_access_token("user-2")})
            ws.send_json({"type": "join_list", "listId": list_id})
            reply = ws.receive_json()

        assert reply == {"event": "error", "data": {"message": "Shopping list not found"}}

    def test_shared_session_cannot_join_lists(self, client, auth_headers):
        list_id, item, token = shared_list(client, auth_headers)

        with client.websocket_connect("/ws") as ws:
            connect(ws, {"shareToken": token})
            ws.send_json({"type": "join_list", "listId": list_id + 1})
            reply = ws.receive_json()

            # Still a shared session on its own list
            client.patch(f"/shared/shopping-lists/{token}/items/{item['item_id']}", json={"checked": True})
            message = ws.receive_json()

        assert reply["event"] == "error"
        assert message["event"] == "item_checked_changed"

    def test_unknown_message_type(self, client):
        with client.websocket_connect("/ws") as ws:
            connect(ws, {"token": create_access_token(OWNER_ID)})
            ws.send_json({"type": "dance"})
            reply = ws.receive_json()

        assert reply["event"] == "error"


class GoneAfterHandshake:
    """Socket whose client leaves before the connected event can be sent."""

    def __init__(self, broadcaster, handshake):
        self.app = SimpleNamespace(state=SimpleNamespace(broadcaster=broadcaster))
        self.handshake = handshake

    async def accept(self):
        pass

    async def receive_json(self):
        return self.handshake

    async def send_json(self, data):
        raise WebSocketDisconnect(code=1001)


class TestDisconnect:

    def test_client_gone_before_connected_event_leaves_no_rooms(self):
        broadcaster = RealtimeBroadcaster()
        websocket = GoneAfterHandshake(broadcaster, {"token": create_access_token(OWNER_ID)})

        asyncio.run(realtime_endpoint(websocket))

        assert broadcaster.connection_count == 0
        assert broadcaster.members(f"user:{OWNER_ID}") == set()

