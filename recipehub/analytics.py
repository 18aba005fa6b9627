"""Whole-dataset rankings.

None of these page or lock; they read a snapshot of the store and return
``None`` (or an empty list) when nothing qualifies.
"""
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models, schemas

_CENTS = Decimal("0.01")


def _to_cents(value: float) -> Decimal:
    return Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def nearest_pair(values):
    """Closest pair in ``values``, a list of ``(id, Decimal)``.

    Returns ``(a_id, b_id, a_value, b_value, diff)`` with ``a_id < b_id``,
    choosing the smallest ``(a_id, b_id)`` among equally close pairs, or
    ``None`` for fewer than two values.

    After sorting by ``(value, id)`` the closest pair is always adjacent:
    a non-zero minimum means every value is distinct, and among equal
    values the two smallest ids sit next to each other.
    """
    if len(values) < 2:
        return None
    ordered = sorted(values, key=lambda item: (item[1], item[0]))
    best = None
    for (left_id, left), (right_id, right) in zip(ordered, ordered[1:]):
        diff = abs(right - left)
        if left_id < right_id:
            candidate = (diff, left_id, right_id, left, right)
        else:
            candidate = (diff, right_id, left_id, right, left)
        if best is None or candidate[:3] < best[:3]:
            best = candidate
    diff, a_id, b_id, a_value, b_value = best
    return a_id, b_id, a_value, b_value, diff


def closest_calorie_pair(db: Session) -> Optional[schemas.CaloriePair]:
    rows = (
        db.query(models.Recipe.id, models.Recipe.calories)
        .filter(
            models.Recipe.is_deleted.is_(False),
            models.Recipe.calories.isnot(None),
        )
        .all()
    )
    found = nearest_pair([(rid, _to_cents(cal)) for rid, cal in rows])
    if found is None:
        return None
    a_id, b_id, a_cal, b_cal, diff = found
    return schemas.CaloriePair(
        recipe_a=a_id,
        recipe_b=b_id,
        calories_a=float(a_cal),
        calories_b=float(b_cal),
        difference=float(diff),
    )


def top_recipes_by_ingredients(
    db: Session, k: int = 3
) -> List[schemas.IngredientCount]:
    """Recipes with the most distinct ingredient names, ties by lower id."""
    count = func.count(func.distinct(models.RecipeIngredient.name)).label("cnt")
    rows = (
        db.query(models.Recipe.id, models.Recipe.name, count)
        .join(
            models.RecipeIngredient,
            models.RecipeIngredient.recipe_id == models.Recipe.id,
        )
        .filter(models.Recipe.is_deleted.is_(False))
        .group_by(models.Recipe.id, models.Recipe.name)
        .order_by(count.desc(), models.Recipe.id.asc())
        .limit(k)
        .all()
    )
    return [
        schemas.IngredientCount(recipe_id=rid, name=name, ingredient_count=cnt)
        for rid, name, cnt in rows
    ]


def highest_follow_ratio(db: Session) -> Optional[schemas.FollowRatio]:
    follow = models.UserFollow
    followers = (
        db.query(follow.followee_id.label("user_id"), func.count().label("n"))
        .group_by(follow.followee_id)
        .subquery()
    )
    following = (
        db.query(follow.follower_id.label("user_id"), func.count().label("n"))
        .group_by(follow.follower_id)
        .subquery()
    )
    rows = (
        db.query(
            models.User.id,
            models.User.name,
            func.coalesce(followers.c.n, 0),
            following.c.n,
        )
        .join(following, following.c.user_id == models.User.id)
        .outerjoin(followers, followers.c.user_id == models.User.id)
        .filter(models.User.is_deleted.is_(False), following.c.n > 0)
        .all()
    )
    if not rows:
        return None
    # exact fractions so equal ratios fall through to the id tie-break
    user_id, name, n_followers, n_following = max(
        rows, key=lambda row: (Fraction(row[2], row[3]), -row[0])
    )
    return schemas.FollowRatio(
        user_id=user_id, name=name, ratio=n_followers / n_following
    )
