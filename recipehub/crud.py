from typing import Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .duration import total_time


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_name(db: Session, name: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.name == name).first()


def get_recipe(db: Session, recipe_id: int, for_update: bool = False):
    query = db.query(models.Recipe).filter(models.Recipe.id == recipe_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def get_review(db: Session, review_id: int) -> Optional[models.Review]:
    return db.query(models.Review).filter(models.Review.id == review_id).first()


def like_count(db: Session, review_id: int) -> int:
    return (
        db.query(func.count(models.ReviewLike.user_id))
        .filter(models.ReviewLike.review_id == review_id)
        .scalar()
    )


def insert_ignore(db: Session, model, **values) -> bool:
    """Insert a row unless one with the same key exists; returns whether it did.

    Two callers racing on the same key both succeed and only one row is
    written.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values)
    else:
        try:
            with db.begin_nested():
                db.add(model(**values))
        except IntegrityError:
            return False
        return True
    result = db.execute(stmt.on_conflict_do_nothing())
    return result.rowcount > 0


def allocate_id(db: Session, model) -> int:
    """Hand out the next id for ``model``'s table.

    The counter row is locked for the rest of the caller's transaction, so
    two concurrent creators of the same entity type never get the same id.
    The first call for a table seeds the counter from ``max(id)``.
    """
    entity = model.__tablename__
    seq = (
        db.query(models.IdSequence)
        .filter(models.IdSequence.entity == entity)
        .with_for_update()
        .first()
    )
    if seq is None:
        current = db.query(func.coalesce(func.max(model.id), 0)).scalar()
        seq = models.IdSequence(entity=entity, last_id=current)
        db.add(seq)
    seq.last_id += 1
    db.flush()
    return seq.last_id


def sync_sequence(db: Session, model) -> None:
    """Move the counter for ``model`` past ids inserted explicitly."""
    entity = model.__tablename__
    current = db.query(func.coalesce(func.max(model.id), 0)).scalar()
    seq = (
        db.query(models.IdSequence)
        .filter(models.IdSequence.entity == entity)
        .with_for_update()
        .first()
    )
    if seq is None:
        db.add(models.IdSequence(entity=entity, last_id=current))
    elif seq.last_id < current:
        seq.last_id = current
    db.flush()


def recipe_to_schema(recipe: models.Recipe) -> schemas.RecipeOut:
    cook = recipe.cook_time.text if recipe.cook_time else None
    prep = recipe.prep_time.text if recipe.prep_time else None
    return schemas.RecipeOut(
        id=recipe.id,
        author_id=recipe.author_id,
        author_name=recipe.author.name if recipe.author else None,
        name=recipe.name,
        description=recipe.description,
        category=recipe.category,
        cook_time=cook,
        prep_time=prep,
        total_time=total_time(cook, prep),
        date_published=recipe.date_published,
        aggregated_rating=recipe.aggregated_rating,
        review_count=recipe.review_count or 0,
        calories=recipe.calories,
        fat_content=recipe.fat_content,
        saturated_fat_content=recipe.saturated_fat_content,
        cholesterol_content=recipe.cholesterol_content,
        sodium_content=recipe.sodium_content,
        carbohydrate_content=recipe.carbohydrate_content,
        fiber_content=recipe.fiber_content,
        sugar_content=recipe.sugar_content,
        protein_content=recipe.protein_content,
        servings=recipe.servings,
        recipe_yield=recipe.recipe_yield,
        ingredients=[i.name for i in recipe.ingredients],
    )


def review_to_schema(review: models.Review) -> schemas.ReviewOut:
    return schemas.ReviewOut(
        id=review.id,
        recipe_id=review.recipe_id,
        author_id=review.author_id,
        author_name=review.author.name if review.author else None,
        rating=review.rating,
        review=review.content,
        date_submitted=review.date_submitted,
        date_modified=review.date_modified,
        likes=sorted(like.user_id for like in review.likes),
    )
