"""Shared list API tests: anonymous access through a share token."""

from conftest import create_ingredient, create_list, create_recipe, share_list


def shared_soup_list(client, headers):
    """A shared list with 2 lemons and 4 carrots. Returns (list_id, token)."""
    lemon_id = create_ingredient(client, headers, "Lemon", "pieces")
    carrot_id = create_ingredient(client, headers, "Carrot", "pieces")
    recipe_id = create_recipe(client, headers, "Soup", 2, [(lemon_id, 2), (carrot_id, 4)])
    list_id = create_list(client, headers, [recipe_id], servings=2)["shopping_list_id"]
    return list_id, share_list(client, headers, list_id)


def test_read_shared_list(client, auth_headers):
    list_id, token = shared_soup_list(client, auth_headers)

    response = client.get(f"/shared/shopping-lists/{token}")
    assert response.status_code == 200
    data = response.json()
    assert data["shopping_list_id"] == list_id
    assert {i["name"] for i in data["items"]} == {"Lemon", "Carrot"}


def test_unknown_token_not_found(client):
    response = client.get("/shared/shopping-lists/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"] == "Shopping list not found or sharing is disabled"


def test_add_new_item(client, auth_headers):
    list_id, token = shared_soup_list(client, auth_headers)

    response = client.post(
        f"/shared/shopping-lists/{token}/items",
        json={"name": "Basil", "unit": "leaves", "amount": 3},
    )
    assert response.status_code == 201
    item = response.json()
    assert item["name"] == "Basil"
    assert item["amount"] == 3.0
    assert item["checked"] is False

    owner_view = client.get(f"/shopping-lists/{list_id}", headers=auth_headers).json()
    assert "Basil" in [i["name"] for i in owner_view["items"]]


def test_add_existing_item_merges(client, auth_headers):
    list_id, token = shared_soup_list(client, auth_headers)

    response = client.post(
        f"/shared/shopping-lists/{token}/items",
        json={"name": "Lemon", "unit": "pieces", "amount": 3},
    )
    assert response.status_code == 201
    assert response.json()["amount"] == 5.0

    items = client.get(f"/shared/shopping-lists/{token}").json()["items"]
    assert [i["amount"] for i in items if i["name"] == "Lemon"] == [5.0]


def test_negative_amount_rejected(client, auth_headers):
    _, token = shared_soup_list(client, auth_headers)

    response = client.post(
        f"/shared/shopping-lists/{token}/items",
        json={"name": "Lemon", "unit": "pieces", "amount": -1},
    )
    assert response.status_code == 422


def test_toggle_shared_item(client, auth_headers):
    list_id, token = shared_soup_list(client, auth_headers)
    item = client.get(f"/shared/shopping-lists/{token}").json()["items"][0]

    response = client.patch(
        f"/shared/shopping-lists/{token}/items/{item['item_id']}", json={"checked": True}
    )
    assert response.status_code == 200
    assert response.json()["checked"] is True

    owner_items = client.get(f"/shopping-lists/{list_id}", headers=auth_headers).json()["items"]
    assert next(i for i in owner_items if i["item_id"] == item["item_id"])["checked"] is True


def test_token_cannot_reach_other_lists(client, auth_headers):
    _, token = shared_soup_list(client, auth_headers)
    carrot_id = client.get("/ingredients", headers=auth_headers).json()[0]["ingredient_id"]
    other_recipe = create_recipe(client, auth_headers, "Other", 1, [(carrot_id, 1)])
    other_list = create_list(client, auth_headers, [other_recipe], name="Private")
    other_item_id = other_list["items"][0]["item_id"]

    response = client.patch(
        f"/shared/shopping-lists/{token}/items/{other_item_id}", json={"checked": True}
    )
    assert response.status_code == 404


def test_regenerated_token_replaces_old(client, auth_headers):
    list_id, old_token = shared_soup_list(client, auth_headers)
    share_list(client, auth_headers, list_id)

    response = client.post(
        f"/shared/shopping-lists/{old_token}/items",
        json={"name": "Lemon", "unit": "pieces", "amount": 1},
    )
    assert response.status_code == 404
