import logging
from typing import Iterable

from sqlalchemy.orm import Session

from . import aggregates, crud, models, schemas
from .db import transaction
from .duration import Duration
from .errors import InvalidArgument
from .recipes import NUTRITION_FIELDS
from .users import normalize_gender

logger = logging.getLogger(__name__)


def import_records(
    db: Session,
    users: Iterable[schemas.UserRecord],
    recipes: Iterable[schemas.RecipeRecord],
    reviews: Iterable[schemas.ReviewRecord],
) -> dict:
    """Load already-parsed records in a single transaction.

    Records are trusted, but rows that would break an invariant (ids or
    names already stored or repeated in the batch, self-follows, self-likes,
    out-of-range ratings, dangling references) are skipped with a warning
    rather than failing the batch.
    Bad durations load as zero. Aggregates are computed from the imported
    reviews, never copied from the records.
    """
    users, recipes, reviews = list(users), list(recipes), list(reviews)
    added = {"users": 0, "follows": 0, "recipes": 0, "reviews": 0, "likes": 0}

    with transaction(db):
        # rows already in the store count as duplicates too
        user_ids = {row.id for row in db.query(models.User.id)}
        names = {row.name for row in db.query(models.User.name)}
        imported = []
        for record in users:
            if record.id in user_ids or record.name in names:
                logger.warning("Skipping duplicate user %s", record.id)
                continue
            db.add(
                models.User(
                    id=record.id,
                    name=record.name,
                    password=record.password,
                    gender=_gender_or_unknown(record.gender),
                    age=record.age,
                    role="USER",
                    is_deleted=False,
                )
            )
            user_ids.add(record.id)
            names.add(record.name)
            imported.append(record)
            added["users"] += 1
        db.flush()

        edges = set()
        for record in imported:
            for target in record.following:
                edge = (record.id, target)
                if target == record.id or target not in user_ids or edge in edges:
                    continue
                edges.add(edge)
                db.add(models.UserFollow(follower_id=record.id, followee_id=target))
                added["follows"] += 1
        db.flush()

        recipe_ids = {row.id for row in db.query(models.Recipe.id)}
        for record in recipes:
            if record.id in recipe_ids or record.author_id not in user_ids:
                logger.warning("Skipping recipe %s", record.id)
                continue
            recipe = models.Recipe(
                id=record.id,
                author_id=record.author_id,
                name=record.name,
                description=record.description,
                category=record.category,
                cook_time=Duration.from_text(record.cook_time),
                prep_time=Duration.from_text(record.prep_time),
                date_published=record.date_published,
                review_count=0,
                servings=record.servings,
                recipe_yield=record.recipe_yield,
                is_deleted=False,
            )
            for field in NUTRITION_FIELDS:
                setattr(recipe, field, getattr(record, field))
            recipe.ingredients = [
                models.RecipeIngredient(name=name, display_order=position)
                for position, name in enumerate(record.ingredients)
            ]
            db.add(recipe)
            recipe_ids.add(record.id)
            added["recipes"] += 1
        db.flush()

        review_ids = {row.id for row in db.query(models.Review.id)}
        for record in reviews:
            if (
                record.id in review_ids
                or record.recipe_id not in recipe_ids
                or record.author_id not in user_ids
                or not 1 <= record.rating <= 5
            ):
                logger.warning("Skipping review %s", record.id)
                continue
            db.add(
                models.Review(
                    id=record.id,
                    recipe_id=record.recipe_id,
                    author_id=record.author_id,
                    rating=record.rating,
                    content=record.review,
                    date_submitted=record.date_submitted,
                    date_modified=record.date_modified or record.date_submitted,
                )
            )
            review_ids.add(record.id)
            added["reviews"] += 1
            for liker in sorted(set(record.likes)):
                if liker == record.author_id or liker not in user_ids:
                    continue
                db.add(models.ReviewLike(review_id=record.id, user_id=liker))
                added["likes"] += 1
        db.flush()

        aggregates.recompute_all(db)
        for model in (models.User, models.Recipe, models.Review):
            crud.sync_sequence(db, model)

    logger.info("Imported %s", added)
    return added


def _gender_or_unknown(value):
    try:
        return normalize_gender(value)
    except InvalidArgument:
        return schemas.Gender.unknown.value
