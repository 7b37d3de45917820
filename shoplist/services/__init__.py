"""
Services Package - Business Logic Layer

Services hold the rules of the application and are independent of HTTP:
- aggregation: scaling recipes by servings and summing ingredients
- shopping_list_service: list generation, item changes and sharing
- recipe_service / ingredient_service: owner-scoped CRUD
- share_gateway: share token resolution
- session_auth: realtime handshake classification
- realtime: rooms and event fan-out

Only modules without database imports are re-exported here.
"""

from shoplist.services.aggregation import RecipeSelection, aggregate, scale_amount
from shoplist.services.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFound,
    ServiceError,
    TransientStoreError,
    ValidationError,
)
from shoplist.services.realtime import RealtimeBroadcaster, RealtimeEvent

__all__ = [
    "RecipeSelection",
    "aggregate",
    "scale_amount",
    "ServiceError",
    "NotFound",
    "ValidationError",
    "ConflictError",
    "AuthorizationError",
    "TransientStoreError",
    "RealtimeBroadcaster",
    "RealtimeEvent",
]
