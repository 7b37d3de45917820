"""Shared fixtures: in-memory database, API client and bearer credentials."""

import os

# Settings are read once at import time
os.environ["DB_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-for-the-shopping-list-suite"

import pytest
from fastapi.testclient import TestClient

from shoplist.auth import create_access_token
from shoplist.database import Base, SessionLocal, engine, init_db
from shoplist.main import app

OWNER_ID = "user-1"
OTHER_ID = "user-2"


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(OWNER_ID)}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {create_access_token(OTHER_ID)}"}


# ============================================
# API helpers
# ============================================

def create_ingredient(client, headers, name, unit):
    response = client.post("/ingredients", headers=headers, json={"name": name, "unit": unit})
    assert response.status_code == 201, response.text
    return response.json()["ingredient_id"]


def create_recipe(client, headers, name, servings, lines):
    response = client.post(
        "/recipes",
        headers=headers,
        json={
            "name": name,
            "servings": servings,
            "ingredients": [
                {"ingredient_id": ingredient_id, "amount": amount}
                for ingredient_id, amount in lines
            ],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["recipe_id"]


def create_list(client, headers, recipe_ids, servings=1, name="Weekly shop"):
    response = client.post(
        "/shopping-lists",
        headers=headers,
        json={"name": name, "recipe_ids": recipe_ids, "servings": servings},
    )
    assert response.status_code == 201, response.text
    return response.json()


def share_list(client, headers, list_id):
    response = client.post(f"/shopping-lists/{list_id}/share", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["share_token"]
