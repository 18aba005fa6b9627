from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import crud, models
from .errors import RecipeNotFound

_CENTS = Decimal("0.01")


def mean_rating(total: Optional[int], count: int) -> Optional[float]:
    """Average rating rounded half-up to two places, ``None`` if no reviews."""
    if not count:
        return None
    mean = Decimal(int(total)) / Decimal(count)
    return float(mean.quantize(_CENTS, rounding=ROUND_HALF_UP))


def recompute(db: Session, recipe_id: int) -> None:
    """Rewrite a recipe's rating and review count from its current reviews.

    Call inside the transaction that changed the reviews. Writers lock the
    recipe row before their first review write, so the lock taken here is
    already held and never upgraded past another writer's key-share lock.
    """
    db.flush()
    recipe = crud.get_recipe(db, recipe_id, for_update=True)
    if recipe is None:
        raise RecipeNotFound("Recipe not found.")
    count, total = (
        db.query(func.count(models.Review.id), func.sum(models.Review.rating))
        .filter(models.Review.recipe_id == recipe_id)
        .one()
    )
    recipe.review_count = count
    recipe.aggregated_rating = mean_rating(total, count)
    db.flush()


def recompute_all(db: Session) -> int:
    """Recompute every recipe in one pass; returns the number of recipes."""
    db.flush()
    stats = {
        recipe_id: (count, total)
        for recipe_id, count, total in db.query(
            models.Review.recipe_id,
            func.count(models.Review.id),
            func.sum(models.Review.rating),
        ).group_by(models.Review.recipe_id)
    }
    recipes = db.query(models.Recipe).all()
    for recipe in recipes:
        count, total = stats.get(recipe.id, (0, None))
        recipe.review_count = count
        recipe.aggregated_rating = mean_rating(total, count)
    db.flush()
    return len(recipes)
