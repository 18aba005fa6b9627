"""Deterministic paging over filtered queries.

Every ordering ends with the entity id, so two calls against the same data
return the same rows in the same order. Nullable sort columns always sort
last, ascending or descending.
"""
from enum import Enum
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Query

from . import models, schemas
from .errors import InvalidPageRequest


class RecipeSort(str, Enum):
    rating_desc = "rating_desc"
    date_desc = "date_desc"
    calories_asc = "calories_asc"
    id_asc = "id_asc"


class ReviewSort(str, Enum):
    likes_desc = "likes_desc"
    date_desc = "date_desc"
    id_asc = "id_asc"


def parse_sort(enum_cls, value: Optional[str]):
    """Map a sort name onto ``enum_cls``; unknown names use ``id_asc``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls.id_asc


def check_page_request(page: int, size: int) -> None:
    if page is None or size is None or page < 1 or size <= 0:
        raise InvalidPageRequest(
            f"Invalid page or size: page={page}, size={size}."
        )


def recipe_ordering(sort: RecipeSort) -> list:
    recipe = models.Recipe
    if sort is RecipeSort.rating_desc:
        return [recipe.aggregated_rating.desc().nulls_last(), recipe.id.asc()]
    if sort is RecipeSort.date_desc:
        return [recipe.date_published.desc().nulls_last(), recipe.id.asc()]
    if sort is RecipeSort.calories_asc:
        return [recipe.calories.asc().nulls_last(), recipe.id.asc()]
    return [recipe.id.asc()]


def paginate(
    query: Query,
    ordering: Sequence,
    page: int,
    size: int,
    transform: Callable = lambda row: row,
) -> schemas.Page:
    """Count the filtered rows, then fetch one ordered window of them."""
    check_page_request(page, size)
    total = query.order_by(None).count()
    rows = (
        query.order_by(*ordering)
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return schemas.Page(
        items=[transform(row) for row in rows],
        page=page,
        size=size,
        total=total,
    )
