"""
SQLAlchemy ORM Entity Models

These models represent the database tables and define the relationships
between entities. Users are not stored here: UserId columns hold the subject
of the bearer credential issued by the auth service.

Database Design Rationale:
- Every ingredient, recipe and shopping list belongs to exactly one user
- (Name, UserId) is unique for ingredients, so a name resolves to one row
- (ShoppingListId, IngredientId) is unique for items, so adding an ingredient
  that is already on a list merges into the existing row
- Cascade deletes to maintain referential integrity

Table Relationships:
    Recipe (1) ──────> (*) RecipeIngredient ──> (1) Ingredient
    ShoppingList (1) ┬──> (*) ShoppingListItem ──> (1) Ingredient
                     └──> (0..1) ShoppingListLink
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shoplist.database import Base


class Ingredient(Base):
    """
    An ingredient in one user's pantry vocabulary.

    The unit is a free-text label ("pieces", "tsp", "g"); amounts of the
    same ingredient are always expressed in this unit.
    """
    __tablename__ = "Ingredients"
    __table_args__ = (
        UniqueConstraint("Name", "UserId", name="UQ_Ingredients_Name_UserId"),
    )

    IngredientId = Column(Integer, primary_key=True, autoincrement=True)
    Name = Column(String(255), nullable=False)
    Unit = Column(String(50), nullable=False)
    UserId = Column(String(100), nullable=False, index=True)
    CreatedDate = Column(DateTime, nullable=False, server_default=func.now())

    # Deleting an ingredient removes it from recipes and shopping lists
    recipe_links = relationship(
        "RecipeIngredient",
        back_populates="ingredient",
        cascade="all, delete-orphan"
    )
    list_items = relationship(
        "ShoppingListItem",
        back_populates="ingredient",
        cascade="all, delete-orphan"
    )


class Recipe(Base):
    """
    A recipe and the serving count its ingredient amounts are written for.
    """
    __tablename__ = "Recipes"

    RecipeId = Column(Integer, primary_key=True, autoincrement=True)
    Name = Column(String(255), nullable=False)
    Description = Column(Text, nullable=True)
    Servings = Column(Integer, nullable=False, default=1)  # Base servings
    UserId = Column(String(100), nullable=False, index=True)
    CreatedDate = Column(DateTime, nullable=False, server_default=func.now())
    UpdatedDate = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan"
    )


class RecipeIngredient(Base):
    """
    Junction table linking recipes to ingredients with amounts.

    Amount is in the ingredient's unit at the recipe's base servings.
    """
    __tablename__ = "RecipeIngredients"

    RecipeIngredientId = Column(Integer, primary_key=True, autoincrement=True)
    RecipeId = Column(
        Integer,
        ForeignKey("Recipes.RecipeId", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    IngredientId = Column(
        Integer,
        ForeignKey("Ingredients.IngredientId", ondelete="CASCADE"),
        nullable=False
    )
    Amount = Column(Numeric(10, 2), nullable=False)

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_links")


# ============================================
# Shopping List Models
# ============================================

class ShoppingList(Base):
    """
    Shopping list generated from recipes.

    Items can be checked off and added by the owner or by anyone holding
    the list's share token.
    """
    __tablename__ = "ShoppingLists"

    ShoppingListId = Column(Integer, primary_key=True, autoincrement=True)
    Name = Column(String(255), nullable=False)
    UserId = Column(String(100), nullable=False, index=True)
    CreatedDate = Column(DateTime, nullable=False, server_default=func.now())
    UpdatedDate = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "ShoppingListItem",
        back_populates="shopping_list",
        cascade="all, delete-orphan"
    )
    link = relationship(
        "ShoppingListLink",
        back_populates="shopping_list",
        cascade="all, delete-orphan",
        uselist=False
    )

    @property
    def share_token(self):
        return self.link.ShareToken if self.link else None


class ShoppingListItem(Base):
    """
    One ingredient to buy, with its total amount across the list.
    """
    __tablename__ = "ShoppingListItems"
    __table_args__ = (
        UniqueConstraint(
            "ShoppingListId", "IngredientId",
            name="UQ_ShoppingListItems_List_Ingredient"
        ),
    )

    ShoppingListItemId = Column(Integer, primary_key=True, autoincrement=True)
    ShoppingListId = Column(
        Integer,
        ForeignKey("ShoppingLists.ShoppingListId", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    IngredientId = Column(
        Integer,
        ForeignKey("Ingredients.IngredientId", ondelete="CASCADE"),
        nullable=False
    )
    Amount = Column(Numeric(10, 2), nullable=False)
    IsChecked = Column(Boolean, nullable=False, default=False)
    CreatedDate = Column(DateTime, nullable=False, server_default=func.now())
    UpdatedDate = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    shopping_list = relationship("ShoppingList", back_populates="items")
    ingredient = relationship("Ingredient", back_populates="list_items")


class ShoppingListLink(Base):
    """
    Share token for a shopping list.

    Holding the token is enough to read the list and change its items.
    A list has at most one link; issuing a new one replaces it.
    """
    __tablename__ = "ShoppingListLinks"

    LinkId = Column(Integer, primary_key=True, autoincrement=True)
    ShoppingListId = Column(
        Integer,
        ForeignKey("ShoppingLists.ShoppingListId", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    ShareToken = Column(String(64), nullable=False, unique=True)
    CreatedDate = Column(DateTime, nullable=False, server_default=func.now())

    shopping_list = relationship("ShoppingList", back_populates="link")
