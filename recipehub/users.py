import hmac
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .db import transaction
from .errors import DuplicateName, InvalidArgument, RecipeHubError, UserNotFound
from .guard import require_active_user, require_exists
from .social import follow_counts

logger = logging.getLogger(__name__)


def age_from_birthday(birthday: str, today: Optional[date] = None) -> int:
    try:
        born = date.fromisoformat(birthday.strip()[:10])
    except (AttributeError, ValueError):
        raise InvalidArgument(f"Invalid birthday: {birthday!r}") from None
    today = today or date.today()
    had_birthday = (today.month, today.day) >= (born.month, born.day)
    return today.year - born.year - (0 if had_birthday else 1)


def normalize_gender(value: Optional[str]) -> str:
    if value is None:
        return schemas.Gender.unknown.value
    raw = value.value if isinstance(value, schemas.Gender) else str(value)
    for gender in schemas.Gender:
        if gender.value.lower() == raw.strip().lower():
            return gender.value
    raise InvalidArgument(f"Invalid gender: {value!r}")


def create_user(db: Session, req: schemas.RegisterRequest) -> int:
    """Register a user, raising on any invalid or conflicting field."""
    name = (req.name or "").strip()
    if not name:
        raise InvalidArgument("User name cannot be empty.")
    if not req.birthday:
        raise InvalidArgument("Birthday is required.")
    age = age_from_birthday(req.birthday)
    if age <= 0:
        raise InvalidArgument("Age must be positive.")
    gender = normalize_gender(req.gender)

    try:
        with transaction(db):
            if crud.get_user_by_name(db, name) is not None:
                raise DuplicateName(f"User name already taken: {name}")
            user = models.User(
                id=crud.allocate_id(db, models.User),
                name=name,
                password=req.password,
                gender=gender,
                age=age,
                role="USER",
                is_deleted=False,
            )
            db.add(user)
            db.flush()
            user_id = user.id
    except IntegrityError:
        raise DuplicateName(f"User name already taken: {name}") from None
    logger.info("User registered: id=%s, name=%s", user_id, name)
    return user_id


def register(db: Session, req: schemas.RegisterRequest) -> int:
    """Like :func:`create_user` but answers ``-1`` instead of raising."""
    try:
        return create_user(db, req)
    except RecipeHubError as exc:
        logger.warning("Registration rejected: %s", exc.message)
        return -1


def login(db: Session, auth: Optional[schemas.AuthInfo]) -> int:
    if auth is None or not auth.password:
        return -1
    user = crud.get_user(db, auth.user_id)
    if user is None or user.is_deleted:
        return -1
    if not hmac.compare_digest(
        (user.password or "").encode(), auth.password.encode()
    ):
        logger.warning("Login failed for user %s", auth.user_id)
        return -1
    return user.id


def get_user(db: Session, user_id: int) -> schemas.UserOut:
    user = require_exists(crud.get_user(db, user_id), UserNotFound, "User not found.")
    followers, following = follow_counts(db, user.id)
    return schemas.UserOut(
        id=user.id,
        name=user.name,
        gender=user.gender,
        age=user.age,
        role=user.role,
        follower_count=followers,
        following_count=following,
    )


def update_profile(
    db: Session,
    auth: schemas.AuthInfo,
    gender: Optional[str] = None,
    age: Optional[int] = None,
) -> None:
    with transaction(db):
        user = require_active_user(db, auth)
        new_gender = normalize_gender(gender) if gender is not None else None
        if age is not None and age <= 0:
            raise InvalidArgument("Age must be positive.")
        if new_gender is not None:
            user.gender = new_gender
        if age is not None:
            user.age = age
