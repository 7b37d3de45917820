"""
Pydantic Schemas (Data Transfer Objects)

These schemas define the structure of data flowing in and out of the API.

Naming Convention:
- *Create: Input for creating new resources
- *Update: Partial input, every field optional
- *Response: Data returned to clients

Amounts are accepted as decimals and returned as plain JSON numbers.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

# Largest value a Numeric(10, 2) amount column holds
MAX_AMOUNT = Decimal("99999999.99")


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# ============================================
# Ingredient Schemas
# ============================================

class IngredientCreate(BaseModel):
    """Request body for creating an ingredient."""
    name: str = Field(..., max_length=255, description="Ingredient name, unique per user")
    unit: str = Field(..., max_length=50, description="Unit label (e.g., 'pieces', 'tsp')")

    @field_validator("name", "unit")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class IngredientUpdate(BaseModel):
    """Partial update of an ingredient. Omitted fields are left alone."""
    name: str | None = Field(None, max_length=255)
    unit: str | None = Field(None, max_length=50)

    @field_validator("name", "unit")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return None if value is None else _strip_required(value)


class IngredientResponse(BaseModel):
    ingredient_id: int
    name: str
    unit: str
    created_date: datetime


# ============================================
# Recipe Schemas
# ============================================

class RecipeIngredientInput(BaseModel):
    """
    One ingredient line of a recipe.

    The amount is for the recipe's base servings, in the ingredient's unit.
    """
    ingredient_id: int
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT, description="Amount at base servings")


class RecipeIngredientResponse(BaseModel):
    recipe_ingredient_id: int
    ingredient_id: int
    name: str
    unit: str
    amount: float


class RecipeCreate(BaseModel):
    """Request body for creating a recipe."""
    name: str = Field(..., max_length=255, description="Recipe title")
    description: str | None = Field(None, description="Brief description of the dish")
    servings: int = Field(..., ge=1, description="Number of servings the amounts are for")
    ingredients: list[RecipeIngredientInput] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class RecipeUpdate(BaseModel):
    """
    Partial update of a recipe.

    When ingredients is given the recipe's ingredient lines are replaced.
    """
    name: str | None = Field(None, max_length=255)
    description: str | None = None
    servings: int | None = Field(None, ge=1)
    ingredients: list[RecipeIngredientInput] | None = None

    @field_validator("name")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return None if value is None else _strip_required(value)


class RecipeResponse(BaseModel):
    recipe_id: int
    name: str
    description: str | None
    servings: int
    created_date: datetime
    updated_date: datetime
    ingredients: list[RecipeIngredientResponse]


# ============================================
# Shopping List Schemas
# ============================================

class ShoppingListCreate(BaseModel):
    """
    Request to generate a shopping list from recipes.

    Every recipe is scaled from its own base servings to `servings`.
    """
    name: str = Field(..., max_length=255)
    recipe_ids: list[int] = Field(..., description="Recipes to aggregate")
    servings: int = Field(1, ge=1, description="Target servings for every recipe")

    @field_validator("name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class ShoppingListRename(BaseModel):
    name: str = Field(..., max_length=255)

    @field_validator("name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class ItemCheckUpdate(BaseModel):
    checked: bool


class ItemAdd(BaseModel):
    """
    Item to add to a list.

    Either reference an existing ingredient by id, or give a name and unit;
    a name that does not exist yet creates the ingredient for the list owner.
    """
    ingredient_id: int | None = None
    name: str | None = Field(None, max_length=255)
    unit: str | None = Field(None, max_length=50)
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)

    @model_validator(mode="after")
    def check_reference(self):
        if self.ingredient_id is None:
            if not (self.name and self.name.strip()) or not (self.unit and self.unit.strip()):
                raise ValueError("either ingredient_id or both name and unit are required")
            self.name = self.name.strip()
            self.unit = self.unit.strip()
        return self


class SharedItemAdd(BaseModel):
    """Item added through a share link. Always resolved by name."""
    name: str = Field(..., max_length=255)
    unit: str = Field(..., max_length=50)
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)

    @field_validator("name", "unit")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _strip_required(value)


class ShoppingListItemResponse(BaseModel):
    item_id: int
    ingredient_id: int
    name: str
    unit: str
    amount: float
    checked: bool


class ShoppingListSummary(BaseModel):
    shopping_list_id: int
    name: str
    created_date: datetime
    updated_date: datetime


class ShoppingListDetail(ShoppingListSummary):
    items: list[ShoppingListItemResponse]


class ShareTokenResponse(BaseModel):
    share_token: str | None
