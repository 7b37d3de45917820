"""
Recipes Controller

Handles CRUD operations for the authenticated user's recipes:
- Listing recipes with text search
- Getting recipe details
- Creating and updating recipes with their ingredient lines
- Deleting recipes

Ingredient lines reference the user's own ingredients by id, with the
amount needed at the recipe's base servings.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shoplist.auth import UserContext, get_current_user
from shoplist.database import get_db
from shoplist.models import Recipe
from shoplist.models.schemas import (
    RecipeCreate,
    RecipeIngredientResponse,
    RecipeResponse,
    RecipeUpdate,
)
from shoplist.services.recipe_service import RecipeService

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _response(recipe: Recipe) -> RecipeResponse:
    ingredients = [
        RecipeIngredientResponse(
            recipe_ingredient_id=ri.RecipeIngredientId,
            ingredient_id=ri.IngredientId,
            name=ri.ingredient.Name,
            unit=ri.ingredient.Unit,
            amount=ri.Amount
        )
        for ri in sorted(recipe.ingredients, key=lambda x: x.RecipeIngredientId)
    ]

    return RecipeResponse(
        recipe_id=recipe.RecipeId,
        name=recipe.Name,
        description=recipe.Description,
        servings=recipe.Servings,
        created_date=recipe.CreatedDate,
        updated_date=recipe.UpdatedDate,
        ingredients=ingredients
    )


@router.get("", response_model=list[RecipeResponse])
def list_recipes(
    search: str | None = None,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List the user's recipes, newest first.

    Query Parameters:
    - search: case-insensitive match on name or description
    """
    recipes = RecipeService(db).list_for_owner(user.user_id, search=search)
    return [_response(r) for r in recipes]


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _response(RecipeService(db).get(recipe_id, user.user_id))


@router.post("", response_model=RecipeResponse, status_code=201)
def create_recipe(
    data: RecipeCreate,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a recipe with its ingredient lines.

    Every referenced ingredient must belong to the user; otherwise nothing
    is created and 404 names the offending ingredient.
    """
    recipe = RecipeService(db).create(
        user.user_id,
        data.name,
        data.servings,
        description=data.description,
        ingredients=data.ingredients
    )
    return _response(recipe)


@router.put("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update recipe fields; a given ingredients list replaces the old one."""
    changes = data.model_dump(exclude_unset=True, exclude={"ingredients"})
    recipe = RecipeService(db).update(
        recipe_id, user.user_id, changes, ingredients=data.ingredients
    )
    return _response(recipe)


@router.delete("/{recipe_id}", status_code=204)
def delete_recipe(
    recipe_id: int,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a recipe (cascades to its ingredient lines)."""
    RecipeService(db).delete(recipe_id, user.user_id)
