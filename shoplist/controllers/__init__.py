"""
Controllers Package

Each controller is a FastAPI APIRouter for one resource area. Controllers
validate input with the Pydantic schemas, call a service, and turn the
result into a response. Service errors are mapped to HTTP status codes by
the handler registered in main.py.
"""

from shoplist.controllers.ingredients import router as ingredients_router
from shoplist.controllers.realtime import router as realtime_router
from shoplist.controllers.recipes import router as recipes_router
from shoplist.controllers.shared_lists import router as shared_lists_router
from shoplist.controllers.shopping_lists import router as shopping_lists_router

__all__ = [
    "ingredients_router",
    "recipes_router",
    "shopping_lists_router",
    "shared_lists_router",
    "realtime_router",
]
