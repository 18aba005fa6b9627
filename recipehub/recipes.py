import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .db import transaction
from .duration import Duration
from .errors import InvalidArgument, RecipeNotFound
from .guard import require_active_user, require_exists, require_ownership
from .pagination import (
    RecipeSort,
    check_page_request,
    paginate,
    parse_sort,
    recipe_ordering,
)

logger = logging.getLogger(__name__)

NUTRITION_FIELDS = (
    "calories",
    "fat_content",
    "saturated_fat_content",
    "cholesterol_content",
    "sodium_content",
    "carbohydrate_content",
    "fiber_content",
    "sugar_content",
    "protein_content",
)


def get_recipe(db: Session, recipe_id: int) -> Optional[schemas.RecipeOut]:
    if recipe_id <= 0:
        raise InvalidArgument("Recipe ID must be positive.")
    recipe = crud.get_recipe(db, recipe_id)
    if recipe is None or recipe.is_deleted:
        return None
    return crud.recipe_to_schema(recipe)


def search_recipes(
    db: Session,
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    min_rating: Optional[float] = None,
    page: int = 1,
    size: int = 10,
    sort: Optional[str] = None,
) -> schemas.Page:
    """Page through active recipes matching every given filter.

    ``keyword`` is a case-insensitive substring of the name or description.
    Recipes without a rating never pass ``min_rating``.
    """
    check_page_request(page, size)
    query = db.query(models.Recipe).filter(models.Recipe.is_deleted.is_(False))
    if keyword:
        # the database folds both sides so they fold the same way
        query = query.filter(
            or_(
                models.Recipe.name.icontains(keyword, autoescape=True),
                models.Recipe.description.icontains(keyword, autoescape=True),
            )
        )
    if category:
        query = query.filter(models.Recipe.category == category)
    if min_rating is not None:
        query = query.filter(models.Recipe.aggregated_rating >= min_rating)

    ordering = recipe_ordering(parse_sort(RecipeSort, sort))
    return paginate(query, ordering, page, size, crud.recipe_to_schema)


def create_recipe(
    db: Session, dto: schemas.RecipeCreate, auth: schemas.AuthInfo
) -> int:
    with transaction(db):
        user = require_active_user(db, auth)
        if not dto.name or not dto.name.strip():
            raise InvalidArgument("Recipe name cannot be empty.")
        cook_time = Duration.from_text(dto.cook_time or None, strict=True)
        prep_time = Duration.from_text(dto.prep_time or None, strict=True)

        recipe = models.Recipe(
            id=crud.allocate_id(db, models.Recipe),
            author_id=user.id,
            name=dto.name,
            description=dto.description,
            category=dto.category,
            cook_time=cook_time,
            prep_time=prep_time,
            date_published=datetime.now(timezone.utc),
            aggregated_rating=None,
            review_count=0,
            servings=dto.servings,
            recipe_yield=dto.recipe_yield,
            is_deleted=False,
        )
        for field in NUTRITION_FIELDS:
            setattr(recipe, field, getattr(dto, field))
        recipe.ingredients = [
            models.RecipeIngredient(name=name, display_order=position)
            for position, name in enumerate(dto.ingredients)
        ]
        db.add(recipe)
        db.flush()
        recipe_id = recipe.id
    logger.info("Recipe created: id=%s, author=%s", recipe_id, auth.user_id)
    return recipe_id


def delete_recipe(db: Session, recipe_id: int, auth: schemas.AuthInfo) -> None:
    with transaction(db):
        require_active_user(db, auth)
        recipe = require_exists(
            crud.get_recipe(db, recipe_id, for_update=True),
            RecipeNotFound,
            "Recipe not found.",
        )
        require_ownership(auth, recipe)
        recipe.is_deleted = True
    logger.info("Recipe soft-deleted: id=%s", recipe_id)


def update_times(
    db: Session,
    auth: schemas.AuthInfo,
    recipe_id: int,
    cook_time: Optional[str] = None,
    prep_time: Optional[str] = None,
) -> None:
    """Replace the cook and/or prep time; ``None`` leaves a field alone."""
    with transaction(db):
        require_active_user(db, auth)
        recipe = require_exists(
            crud.get_recipe(db, recipe_id, for_update=True),
            RecipeNotFound,
            "Recipe not found.",
        )
        require_ownership(auth, recipe)
        # parse both before touching either so a bad one changes nothing
        new_cook = (
            Duration.from_text(cook_time, strict=True)
            if cook_time is not None
            else None
        )
        new_prep = (
            Duration.from_text(prep_time, strict=True)
            if prep_time is not None
            else None
        )
        if new_cook is not None:
            recipe.cook_time = new_cook
        if new_prep is not None:
            recipe.prep_time = new_prep
