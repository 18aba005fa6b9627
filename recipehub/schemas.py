from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Gender(str, Enum):
    male = "Male"
    female = "Female"
    unknown = "Unknown"


class AuthInfo(BaseModel):
    """Who is calling. The session behind it was authenticated upstream."""

    user_id: int
    password: Optional[str] = None


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    size: int
    total: int


# users

class RegisterRequest(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "Alice"})
    password: str = ""
    gender: Optional[Gender] = None
    birthday: Optional[str] = Field(
        None, json_schema_extra={"example": "1990-04-12"}
    )


class LoginRequest(BaseModel):
    user_id: int
    password: str


class ProfileUpdate(BaseModel):
    gender: Optional[str] = None
    age: Optional[int] = None


class UserOut(BaseModel):
    id: int
    name: str
    gender: Optional[str] = None
    age: Optional[int] = None
    role: str = "USER"
    follower_count: int = 0
    following_count: int = 0

    model_config = ConfigDict(from_attributes=True)


# recipes

class RecipeCreate(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "Simple Pancakes"})
    description: Optional[str] = None
    category: Optional[str] = None
    cook_time: Optional[str] = Field(
        None, json_schema_extra={"example": "PT20M"}
    )
    prep_time: Optional[str] = Field(
        None, json_schema_extra={"example": "PT10M"}
    )
    calories: Optional[float] = None
    fat_content: Optional[float] = None
    saturated_fat_content: Optional[float] = None
    cholesterol_content: Optional[float] = None
    sodium_content: Optional[float] = None
    carbohydrate_content: Optional[float] = None
    fiber_content: Optional[float] = None
    sugar_content: Optional[float] = None
    protein_content: Optional[float] = None
    servings: Optional[int] = None
    recipe_yield: Optional[str] = None
    ingredients: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["flour", "milk", "egg"]},
    )


class TimesUpdate(BaseModel):
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None


class RecipeOut(BaseModel):
    id: int
    author_id: int
    author_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None
    total_time: Optional[str] = None
    date_published: Optional[datetime] = None
    aggregated_rating: Optional[float] = None
    review_count: int = 0
    calories: Optional[float] = None
    fat_content: Optional[float] = None
    saturated_fat_content: Optional[float] = None
    cholesterol_content: Optional[float] = None
    sodium_content: Optional[float] = None
    carbohydrate_content: Optional[float] = None
    fiber_content: Optional[float] = None
    sugar_content: Optional[float] = None
    protein_content: Optional[float] = None
    servings: Optional[int] = None
    recipe_yield: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)


class FeedItem(BaseModel):
    recipe_id: int
    name: str
    author_id: int
    author_name: Optional[str] = None
    date_published: Optional[datetime] = None
    aggregated_rating: Optional[float] = None
    review_count: int = 0


# reviews

class ReviewCreate(BaseModel):
    rating: int
    review: Optional[str] = None


class ReviewOut(BaseModel):
    id: int
    recipe_id: int
    author_id: int
    author_name: Optional[str] = None
    rating: int
    review: Optional[str] = None
    date_submitted: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    likes: List[int] = Field(default_factory=list)


# analytics

class CaloriePair(BaseModel):
    recipe_a: int
    recipe_b: int
    calories_a: float
    calories_b: float
    difference: float


class IngredientCount(BaseModel):
    recipe_id: int
    name: str
    ingredient_count: int


class FollowRatio(BaseModel):
    user_id: int
    name: str
    ratio: float


# bulk import records, already parsed upstream

class UserRecord(BaseModel):
    id: int
    name: str
    password: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    following: List[int] = Field(default_factory=list)


class RecipeRecord(BaseModel):
    id: int
    author_id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None
    date_published: Optional[datetime] = None
    calories: Optional[float] = None
    fat_content: Optional[float] = None
    saturated_fat_content: Optional[float] = None
    cholesterol_content: Optional[float] = None
    sodium_content: Optional[float] = None
    carbohydrate_content: Optional[float] = None
    fiber_content: Optional[float] = None
    sugar_content: Optional[float] = None
    protein_content: Optional[float] = None
    servings: Optional[int] = None
    recipe_yield: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)


class ReviewRecord(BaseModel):
    id: int
    recipe_id: int
    author_id: int
    rating: int
    review: Optional[str] = None
    date_submitted: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    likes: List[int] = Field(default_factory=list)
