"""Tests for realtime handshake classification."""

import pytest

from shoplist.services.exceptions import AuthorizationError, NotFound
from shoplist.services.session_auth import SessionAuthenticator, SessionState
from shoplist.services.share_gateway import SharedListAccess

VALID_CREDENTIAL = "good-bearer"
VALID_SHARE_TOKEN = "good-share"


def verify(credential):
    if credential != VALID_CREDENTIAL:
        raise AuthorizationError("Invalid access token")
    return "user-1"


class FakeGateway:

    def resolve(self, share_token):
        if share_token != VALID_SHARE_TOKEN:
            raise NotFound("Shopping list not found or sharing is disabled")
        return SharedListAccess(shopping_list_id=42, owner_id="user-1")


@pytest.fixture
def authenticator():
    return SessionAuthenticator(verify, FakeGateway())


class TestAuthenticate:

    def test_bearer_makes_owner_session(self, authenticator):
        session = authenticator.authenticate({"token": VALID_CREDENTIAL})

        assert session.state is SessionState.CONNECTED_OWNER
        assert session.initial_rooms == ("user:user-1",)
        assert session.describe() == {"role": "owner", "userId": "user-1"}

    def test_share_token_makes_shared_session(self, authenticator):
        session = authenticator.authenticate({"shareToken": VALID_SHARE_TOKEN})

        assert session.is_shared
        assert session.initial_rooms == ("list:42",)
        assert session.describe() == {"role": "shared", "listId": 42}

    def test_bearer_wins_when_both_valid(self, authenticator):
        session = authenticator.authenticate(
            {"token": VALID_CREDENTIAL, "shareToken": VALID_SHARE_TOKEN}
        )

        assert session.is_owner

    def test_invalid_bearer_falls_through_to_share_token(self, authenticator):
        session = authenticator.authenticate({"token": "forged", "shareToken": VALID_SHARE_TOKEN})

        assert session.is_shared
        assert session.shopping_list_id == 42

    @pytest.mark.parametrize("handshake", [
        None,
        {},
        "not-an-object",
        {"token": "forged"},
        {"shareToken": "unknown"},
        {"token": "forged", "shareToken": "unknown"},
        {"token": 5},
        {"shareToken": ["x"]},
        {"shareToken": {"a": 1}},
        {"token": "forged", "shareToken": ["x"]},
    ])
    def test_rejected(self, authenticator, handshake):
        session = authenticator.authenticate(handshake)

        assert session.rejected
        assert session.reason
        assert session.initial_rooms == ()
