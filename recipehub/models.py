from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import composite, relationship

from .db import Base
from .duration import Duration


class User(Base):
    __tablename__ = "users"
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=True)
    gender = Column(String(50), nullable=True)  # Male / Female / Unknown
    age = Column(Integer, nullable=True)
    role = Column(String(20), nullable=False, default="USER")
    is_deleted = Column(Boolean, nullable=False, default=False)


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    author_id = Column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    cook_time_iso = Column(String(50), nullable=True)
    cook_time_sec = Column(Integer, nullable=False, default=0)
    prep_time_iso = Column(String(50), nullable=True)
    prep_time_sec = Column(Integer, nullable=False, default=0)
    cook_time = composite(Duration, cook_time_iso, cook_time_sec)
    prep_time = composite(Duration, prep_time_iso, prep_time_sec)

    date_published = Column(DateTime(timezone=True), nullable=True)

    # written only by aggregates.recompute
    aggregated_rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)

    calories = Column(Float, nullable=True)
    fat_content = Column(Float, nullable=True)
    saturated_fat_content = Column(Float, nullable=True)
    cholesterol_content = Column(Float, nullable=True)
    sodium_content = Column(Float, nullable=True)
    carbohydrate_content = Column(Float, nullable=True)
    fiber_content = Column(Float, nullable=True)
    sugar_content = Column(Float, nullable=True)
    protein_content = Column(Float, nullable=True)

    servings = Column(Integer, nullable=True)
    recipe_yield = Column("yield", String(100), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    author = relationship("User")
    ingredients = relationship(
        "RecipeIngredient",
        order_by="RecipeIngredient.display_order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_recipes_cat_rating", "category", "aggregated_rating"),
        Index("idx_recipes_cat_date", "category", "date_published"),
        Index("idx_recipes_cat_cal", "category", "calories"),
    )


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"
    id = Column(Integer, primary_key=True)
    recipe_id = Column(
        BigInteger,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    display_order = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "recipe_id", "display_order", name="uq_ingredient_position"
        ),
        Index("idx_ingredients_lookup", "recipe_id", "display_order"),
    )


class Review(Base):
    __tablename__ = "reviews"
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    recipe_id = Column(
        BigInteger, ForeignKey("recipes.id"), nullable=False, index=True
    )
    author_id = Column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)
    content = Column(Text, nullable=True)
    date_submitted = Column(DateTime(timezone=True), nullable=True)
    date_modified = Column(DateTime(timezone=True), nullable=True)

    author = relationship("User")
    likes = relationship("ReviewLike", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_rating_range"),
    )


class ReviewLike(Base):
    __tablename__ = "review_likes"
    review_id = Column(
        BigInteger,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    user_id = Column(BigInteger, ForeignKey("users.id"), primary_key=True)


class UserFollow(Base):
    __tablename__ = "user_follows"
    follower_id = Column(
        BigInteger, ForeignKey("users.id"), primary_key=True, index=True
    )
    followee_id = Column(
        BigInteger, ForeignKey("users.id"), primary_key=True, index=True
    )

    __table_args__ = (
        CheckConstraint("follower_id <> followee_id", name="ck_no_self_follow"),
    )


class IdSequence(Base):
    """Last id handed out per entity table; see crud.allocate_id."""

    __tablename__ = "id_sequences"
    entity = Column(String(50), primary_key=True)
    last_id = Column(BigInteger, nullable=False)
