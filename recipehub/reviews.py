import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import aggregates, crud, models, schemas
from .db import transaction
from .errors import (
    InvalidRating,
    RecipeNotFound,
    ReviewNotFound,
    SelfLikeRejected,
)
from .guard import require_active_user, require_exists, require_ownership
from .pagination import ReviewSort, check_page_request, paginate, parse_sort

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def _check_rating(rating: int) -> None:
    if not isinstance(rating, int) or isinstance(rating, bool):
        raise InvalidRating("Rating must be an integer between 1 and 5.")
    if rating < 1 or rating > 5:
        raise InvalidRating("Rating must be between 1 and 5.")


def _active_recipe(
    db: Session, recipe_id: int, for_update: bool = False
) -> models.Recipe:
    return require_exists(
        crud.get_recipe(db, recipe_id, for_update=for_update),
        RecipeNotFound,
        "Recipe not found.",
    )


def _review_of(db: Session, recipe_id: int, review_id: int) -> models.Review:
    review = crud.get_review(db, review_id)
    if review is None or review.recipe_id != recipe_id:
        raise ReviewNotFound("Review not found for this recipe.")
    return review


def add_review(
    db: Session,
    auth: schemas.AuthInfo,
    recipe_id: int,
    rating: int,
    text: Optional[str],
) -> int:
    with transaction(db):
        user = require_active_user(db, auth)
        # lock the recipe before touching its reviews
        _active_recipe(db, recipe_id, for_update=True)
        _check_rating(rating)

        now = _now()
        review = models.Review(
            id=crud.allocate_id(db, models.Review),
            recipe_id=recipe_id,
            author_id=user.id,
            rating=rating,
            content=text,
            date_submitted=now,
            date_modified=now,
        )
        db.add(review)
        aggregates.recompute(db, recipe_id)
        review_id = review.id
    return review_id


def edit_review(
    db: Session,
    auth: schemas.AuthInfo,
    recipe_id: int,
    review_id: int,
    rating: int,
    text: Optional[str],
) -> None:
    with transaction(db):
        require_active_user(db, auth)
        _active_recipe(db, recipe_id, for_update=True)
        review = _review_of(db, recipe_id, review_id)
        require_ownership(auth, review)
        _check_rating(rating)

        review.rating = rating
        review.content = text
        review.date_modified = _now()
        aggregates.recompute(db, recipe_id)


def delete_review(
    db: Session, auth: schemas.AuthInfo, recipe_id: int, review_id: int
) -> None:
    with transaction(db):
        require_active_user(db, auth)
        _active_recipe(db, recipe_id, for_update=True)
        review = _review_of(db, recipe_id, review_id)
        require_ownership(auth, review)

        # likes go with the review through the delete-orphan cascade
        db.delete(review)
        aggregates.recompute(db, recipe_id)


def like_review(db: Session, auth: schemas.AuthInfo, review_id: int) -> int:
    """Add the caller's like (no-op if present); returns the like count."""
    with transaction(db):
        user = require_active_user(db, auth)
        review = require_exists(
            crud.get_review(db, review_id), ReviewNotFound, "Review not found."
        )
        if review.author_id == user.id:
            raise SelfLikeRejected("Cannot like your own review.")
        crud.insert_ignore(
            db, models.ReviewLike, review_id=review_id, user_id=user.id
        )
        count = crud.like_count(db, review_id)
    return count


def unlike_review(db: Session, auth: schemas.AuthInfo, review_id: int) -> int:
    """Remove the caller's like (no-op if absent); returns the like count."""
    with transaction(db):
        user = require_active_user(db, auth)
        require_exists(
            crud.get_review(db, review_id), ReviewNotFound, "Review not found."
        )
        existing = db.get(models.ReviewLike, (review_id, user.id))
        if existing is not None:
            db.delete(existing)
            db.flush()
        count = crud.like_count(db, review_id)
    return count


def list_by_recipe(
    db: Session,
    recipe_id: int,
    page: int = 1,
    size: int = 10,
    sort: Optional[str] = None,
) -> schemas.Page:
    check_page_request(page, size)
    _active_recipe(db, recipe_id)

    sort = parse_sort(ReviewSort, sort)
    query = db.query(models.Review).filter(models.Review.recipe_id == recipe_id)
    if sort is ReviewSort.likes_desc:
        likes = (
            db.query(
                models.ReviewLike.review_id.label("review_id"),
                func.count(models.ReviewLike.user_id).label("n"),
            )
            .group_by(models.ReviewLike.review_id)
            .subquery()
        )
        query = query.outerjoin(likes, likes.c.review_id == models.Review.id)
        ordering = [func.coalesce(likes.c.n, 0).desc(), models.Review.id.asc()]
    elif sort is ReviewSort.date_desc:
        ordering = [
            models.Review.date_modified.desc().nulls_last(),
            models.Review.id.asc(),
        ]
    else:
        ordering = [models.Review.id.asc()]
    return paginate(query, ordering, page, size, crud.review_to_schema)


def refresh_aggregate(db: Session, recipe_id: int) -> schemas.RecipeOut:
    with transaction(db):
        recipe = _active_recipe(db, recipe_id, for_update=True)
        aggregates.recompute(db, recipe_id)
    db.refresh(recipe)
    return crud.recipe_to_schema(recipe)
