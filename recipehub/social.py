"""Follow edges, the follow feed and account deletion."""
import logging
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .db import transaction
from .errors import NotOwner, SelfFollowRejected, UserNotFound
from .guard import require_active_user, require_exists
from .pagination import check_page_request, paginate

logger = logging.getLogger(__name__)


def follow(db: Session, auth: schemas.AuthInfo, target_id: int) -> bool:
    """Toggle the caller's follow of ``target_id``.

    Returns ``True`` if the caller follows the target afterwards and ``False``
    if an existing follow was removed. Calling twice therefore undoes the
    first call.
    """
    with transaction(db):
        user = require_active_user(db, auth)
        if user.id == target_id:
            raise SelfFollowRejected("Cannot follow yourself.")
        require_exists(crud.get_user(db, target_id), UserNotFound, "User not found.")

        edge = db.get(models.UserFollow, (user.id, target_id))
        if edge is not None:
            db.delete(edge)
            now_following = False
        else:
            crud.insert_ignore(
                db, models.UserFollow, follower_id=user.id, followee_id=target_id
            )
            now_following = True
    return now_following


def follow_counts(db: Session, user_id: int) -> Tuple[int, int]:
    """Return ``(followers, following)`` for a user."""
    followers = (
        db.query(func.count(models.UserFollow.follower_id))
        .filter(models.UserFollow.followee_id == user_id)
        .scalar()
    )
    following = (
        db.query(func.count(models.UserFollow.followee_id))
        .filter(models.UserFollow.follower_id == user_id)
        .scalar()
    )
    return followers, following


def _feed_item(row) -> schemas.FeedItem:
    recipe, author_name = row
    return schemas.FeedItem(
        recipe_id=recipe.id,
        name=recipe.name,
        author_id=recipe.author_id,
        author_name=author_name,
        date_published=recipe.date_published,
        aggregated_rating=recipe.aggregated_rating,
        review_count=recipe.review_count or 0,
    )


def feed(
    db: Session,
    auth: schemas.AuthInfo,
    page: int = 1,
    size: int = 10,
    category: Optional[str] = None,
) -> schemas.Page:
    """Recipes by everyone the caller follows, newest first."""
    check_page_request(page, size)
    user = require_active_user(db, auth)

    query = (
        db.query(models.Recipe, models.User.name)
        .join(models.User, models.Recipe.author_id == models.User.id)
        .join(
            models.UserFollow,
            models.Recipe.author_id == models.UserFollow.followee_id,
        )
        .filter(
            models.UserFollow.follower_id == user.id,
            models.Recipe.is_deleted.is_(False),
        )
    )
    if category:
        query = query.filter(models.Recipe.category == category)
    ordering = [
        models.Recipe.date_published.desc().nulls_last(),
        models.Recipe.id.desc(),
    ]
    return paginate(query, ordering, page, size, _feed_item)


def delete_account(db: Session, auth: schemas.AuthInfo, user_id: int) -> bool:
    """Soft-delete the caller's own account and drop all its follow edges."""
    with transaction(db):
        user = require_active_user(db, auth)
        if user.id != user_id:
            raise NotOwner("Can only delete your own account.")
        user.is_deleted = True
        removed = (
            db.query(models.UserFollow)
            .filter(
                or_(
                    models.UserFollow.follower_id == user_id,
                    models.UserFollow.followee_id == user_id,
                )
            )
            .delete(synchronize_session=False)
        )
    logger.info("User soft-deleted: id=%s, follow edges removed=%s", user_id, removed)
    return True
