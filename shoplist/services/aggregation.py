"""
Ingredient aggregation - merges recipe ingredient lines into list amounts.

Each selected recipe is scaled from its base servings to the requested
servings, and amounts of the same ingredient are summed. Identity is the
ingredient id only: there is no unit conversion and no name matching.

This module does no I/O. The caller loads the recipes (and checks that they
exist and belong to the requester) and hands over plain RecipeSelection values.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Sequence

from shoplist.services.exceptions import ValidationError


@dataclass(frozen=True)
class RecipeSelection:
    """A recipe chosen for a shopping list, with the servings wanted."""
    recipe_id: int
    base_servings: int
    target_servings: int
    ingredients: Sequence[tuple[int, Decimal]] = field(default_factory=tuple)  # (ingredient_id, base amount)


def scale_amount(base_amount: Decimal, base_servings: int, target_servings: int) -> Decimal:
    """Amount needed for target_servings of a recipe written for base_servings."""
    # Multiply before dividing so whole-number scalings stay exact
    return Decimal(base_amount) * Decimal(target_servings) / Decimal(base_servings)


def aggregate(selections: Iterable[RecipeSelection]) -> dict[int, Decimal]:
    """
    Merge the scaled ingredient amounts of all selections.

    Args:
        selections: recipes with their base servings, target servings and lines

    Returns:
        ingredient_id -> total amount

    Raises:
        ValidationError: a selection has non-positive base or target servings
    """
    totals: dict[int, Decimal] = defaultdict(Decimal)

    for selection in selections:
        if selection.base_servings <= 0:
            raise ValidationError(
                f"Recipe {selection.recipe_id} has invalid servings {selection.base_servings}"
            )
        if selection.target_servings <= 0:
            raise ValidationError("Servings must be a positive number")

        for ingredient_id, base_amount in selection.ingredients:
            totals[ingredient_id] += scale_amount(
                base_amount, selection.base_servings, selection.target_servings
            )

    return dict(totals)
