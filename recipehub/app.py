import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import analytics, recipes, reviews, schemas, social, users
from .config import settings
from .db import SessionLocal, init_db
from .errors import NotFound, RecipeHubError


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    # Initialize DB once at startup
    init_db()
    yield


app = FastAPI(title="RecipeHub", lifespan=lifespan)

# Allow CORS for API clients (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecipeHubError)
async def recipehub_error_handler(request: Request, exc: RecipeHubError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.message},
    )


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_auth(
    x_user_id: Optional[int] = Header(None),
) -> Optional[schemas.AuthInfo]:
    # the session was authenticated upstream; we only learn who it is
    if x_user_id is None:
        return None
    return schemas.AuthInfo(user_id=x_user_id)


PageNumber = Query(1)
PageSize = Query(10, le=settings.max_page_size)


def _link_header(request: Request, response: Response, page: schemas.Page):
    links = []
    if page.page > 1:
        prev_url = request.url.include_query_params(page=page.page - 1)
        links.append(f'<{prev_url}>; rel="prev"')
    if page.page * page.size < page.total:
        next_url = request.url.include_query_params(page=page.page + 1)
        links.append(f'<{next_url}>; rel="next"')
    if links:
        response.headers["Link"] = ", ".join(links)


@app.get("/health")
def health():
    return {"status": "ok"}


# users

@app.post("/api/users")
def register(body: schemas.RegisterRequest, db: Session = Depends(get_db)):
    return {"id": users.register(db, body)}


@app.post("/api/login")
def login(body: schemas.LoginRequest, db: Session = Depends(get_db)):
    auth = schemas.AuthInfo(user_id=body.user_id, password=body.password)
    return {"id": users.login(db, auth)}


@app.get("/api/users/{user_id}", response_model=schemas.UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return users.get_user(db, user_id)


@app.patch("/api/users/me")
def update_profile(
    body: schemas.ProfileUpdate,
    auth=Depends(get_auth),
    db: Session = Depends(get_db),
):
    users.update_profile(db, auth, gender=body.gender, age=body.age)
    return {"updated": True}


@app.delete("/api/users/{user_id}")
def delete_account(user_id: int, auth=Depends(get_auth), db: Session = Depends(get_db)):
    return {"deleted": social.delete_account(db, auth, user_id)}


@app.post("/api/users/{user_id}/follow")
def follow(user_id: int, auth=Depends(get_auth), db: Session = Depends(get_db)):
    return {"following": social.follow(db, auth, user_id)}


@app.get("/api/feed", response_model=schemas.Page[schemas.FeedItem])
def feed(
    request: Request,
    response: Response,
    page: int = PageNumber,
    size: int = PageSize,
    category: Optional[str] = None,
    auth=Depends(get_auth),
    db: Session = Depends(get_db),
):
    result = social.feed(db, auth, page, size, category)
    _link_header(request, response, result)
    return result


# recipes

@app.get("/api/recipes", response_model=schemas.Page[schemas.RecipeOut])
def search_recipes(
    request: Request,
    response: Response,
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_rating: Optional[float] = None,
    page: int = PageNumber,
    size: int = PageSize,
    sort: Optional[str] = None,
    db: Session = Depends(get_db),
):
    result = recipes.search_recipes(db, q, category, min_rating, page, size, sort)
    _link_header(request, response, result)
    return result


@app.get("/api/recipes/{recipe_id}", response_model=schemas.RecipeOut)
def get_recipe(recipe_id: int, db: Session = Depends(get_db)):
    recipe = recipes.get_recipe(db, recipe_id)
    if recipe is None:
        raise NotFound("Recipe not found.")
    return recipe


@app.post("/api/recipes")
def create_recipe(
    body: schemas.RecipeCreate, auth=Depends(get_auth), db: Session = Depends(get_db)
):
    return {"id": recipes.create_recipe(db, body, auth)}


@app.delete("/api/recipes/{recipe_id}")
def delete_recipe(recipe_id: int, auth=Depends(get_auth), db: Session = Depends(get_db)):
    recipes.delete_recipe(db, recipe_id, auth)
    return {"deleted": True}


@app.patch("/api/recipes/{recipe_id}/times")
def update_times(
    recipe_id: int,
    body: schemas.TimesUpdate,
    auth=Depends(get_auth),
    db: Session = Depends(get_db),
):
    recipes.update_times(db, auth, recipe_id, body.cook_time, body.prep_time)
    return {"updated": True}


# reviews

@app.get(
    "/api/recipes/{recipe_id}/reviews",
    response_model=schemas.Page[schemas.ReviewOut],
)
def list_reviews(
    recipe_id: int,
    request: Request,
    response: Response,
    page: int = PageNumber,
    size: int = PageSize,
    sort: Optional[str] = None,
    db: Session = Depends(get_db),
):
    result = reviews.list_by_recipe(db, recipe_id, page, size, sort)
    _link_header(request, response, result)
    return result


@app.post("/api/recipes/{recipe_id}/reviews")
def add_review(
    recipe_id: int,
    body: schemas.ReviewCreate,
    auth=Depends(get_auth),
    db: Session = Depends(get_db),
):
    return {"id": reviews.add_review(db, auth, recipe_id, body.rating, body.review)}


@app.put("/api/recipes/{recipe_id}/reviews/{review_id}")
def edit_review(
    recipe_id: int,
    review_id: int,
    body: schemas.ReviewCreate,
    auth=Depends(get_auth),
    db: Session = Depends(get_db),
):
    reviews.edit_review(db, auth, recipe_id, review_id, body.rating, body.review)
    return {"updated": True}


@app.delete("/api/recipes/{recipe_id}/reviews/{review_id}")
def delete_review(
    recipe_id: int,
    review_id: int,
    auth=Depends(get_auth),
    db: Session = Depends(get_db),
):
    reviews.delete_review(db, auth, recipe_id, review_id)
    return {"deleted": True}


@app.post("/api/reviews/{review_id}/like")
def like_review(review_id: int, auth=Depends(get_auth), db: Session = Depends(get_db)):
    return {"likes": reviews.like_review(db, auth, review_id)}


@app.delete("/api/reviews/{review_id}/like")
def unlike_review(review_id: int, auth=Depends(get_auth), db: Session = Depends(get_db)):
    return {"likes": reviews.unlike_review(db, auth, review_id)}


@app.post("/api/recipes/{recipe_id}/refresh-rating", response_model=schemas.RecipeOut)
def refresh_rating(recipe_id: int, db: Session = Depends(get_db)):
    return reviews.refresh_aggregate(db, recipe_id)


# analytics

@app.get("/api/analytics/closest-calories")
def closest_calories(db: Session = Depends(get_db)):
    return analytics.closest_calorie_pair(db)


@app.get(
    "/api/analytics/top-ingredients",
    response_model=List[schemas.IngredientCount],
)
def top_ingredients(db: Session = Depends(get_db)):
    return analytics.top_recipes_by_ingredients(db)


@app.get("/api/analytics/follow-ratio")
def follow_ratio(db: Session = Depends(get_db)):
    return analytics.highest_follow_ratio(db)
