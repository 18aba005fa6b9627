"""Checks run before every mutation.

Operations call them in a fixed order: :func:`require_active_user`, then
:func:`require_exists`, then :func:`require_ownership`, then their own
field validation. The first failing check decides the error.
"""
from typing import Optional

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .errors import AccountInactive, NotFound, NotOwner, Unauthenticated


def require_active_user(
    db: Session, auth: Optional[schemas.AuthInfo]
) -> models.User:
    # password is checked at login only
    if auth is None:
        raise Unauthenticated("Auth info is missing.")
    user = crud.get_user(db, auth.user_id)
    if user is None or user.is_deleted:
        raise AccountInactive("User is deleted or does not exist.")
    return user


def require_exists(entity, error=NotFound, message: str = "Not found."):
    if entity is None or getattr(entity, "is_deleted", False):
        raise error(message)
    return entity


def require_ownership(auth: schemas.AuthInfo, entity) -> None:
    if entity.author_id != auth.user_id:
        raise NotOwner(f"You are not the author of this {_label(entity)}.")


def _label(entity) -> str:
    return type(entity).__name__.lower()
