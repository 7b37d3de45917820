"""
Ingredients Controller

CRUD for the authenticated user's ingredients. Names are unique per user;
deleting an ingredient also removes it from recipes and shopping lists.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shoplist.auth import UserContext, get_current_user
from shoplist.database import get_db
from shoplist.models import Ingredient
from shoplist.models.schemas import IngredientCreate, IngredientResponse, IngredientUpdate
from shoplist.services.ingredient_service import IngredientService

router = APIRouter(prefix="/ingredients", tags=["ingredients"])


def _response(ingredient: Ingredient) -> IngredientResponse:
    return IngredientResponse(
        ingredient_id=ingredient.IngredientId,
        name=ingredient.Name,
        unit=ingredient.Unit,
        created_date=ingredient.CreatedDate
    )


@router.get("", response_model=list[IngredientResponse])
def list_ingredients(
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the user's ingredients ordered by name."""
    return [_response(i) for i in IngredientService(db).list_for_owner(user.user_id)]


@router.post("", response_model=IngredientResponse, status_code=201)
def create_ingredient(
    data: IngredientCreate,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create an ingredient. 409 if the user already has one with this name."""
    ingredient = IngredientService(db).create(user.user_id, data.name, data.unit)
    return _response(ingredient)


@router.put("/{ingredient_id}", response_model=IngredientResponse)
def update_ingredient(
    ingredient_id: int,
    data: IngredientUpdate,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename an ingredient and/or change its unit."""
    ingredient = IngredientService(db).update(
        ingredient_id, user.user_id, data.model_dump(exclude_unset=True)
    )
    return _response(ingredient)


@router.delete("/{ingredient_id}", status_code=204)
def delete_ingredient(
    ingredient_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    IngredientService(db).delete(ingredient_id, user.user_id)
