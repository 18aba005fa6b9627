from datetime import datetime

from recipehub import crud, loader, models, recipes, reviews, schemas, users


def _dataset():
    people = [
        schemas.UserRecord(id=10, name="ann", password="a", gender="Female", age=30,
                           following=[11, 11, 10, 99]),
        schemas.UserRecord(id=11, name="ben", password="b", gender="weird", age=40,
                           following=[10]),
        schemas.UserRecord(id=12, name="ann", password="dup", age=22),
    ]
    dishes = [
        schemas.RecipeRecord(id=100, author_id=10, name="Stew", cook_time="PT2H",
                             prep_time="soon", calories=500.0,
                             date_published=datetime(2020, 1, 1),
                             ingredients=["beef", "carrot", "beef"]),
        schemas.RecipeRecord(id=101, author_id=11, name="Salad", calories=150.0),
        schemas.RecipeRecord(id=102, author_id=77, name="Orphan"),
    ]
    notes = [
        schemas.ReviewRecord(id=1000, recipe_id=100, author_id=11, rating=5,
                             review="lovely", likes=[10, 11, 10]),
        schemas.ReviewRecord(id=1001, recipe_id=100, author_id=10, rating=2),
        schemas.ReviewRecord(id=1002, recipe_id=100, author_id=10, rating=9),
        schemas.ReviewRecord(id=1003, recipe_id=555, author_id=10, rating=3),
    ]
    return people, dishes, notes


def test_import_records_loads_and_skips_bad_rows(db):
    added = loader.import_records(db, *_dataset())
    assert added == {"users": 2, "follows": 2, "recipes": 2, "reviews": 2, "likes": 1}

    assert crud.get_user(db, 11).gender == "Unknown"
    assert db.query(models.UserFollow).count() == 2

    stew = crud.get_recipe(db, 100)
    assert stew.cook_time.seconds == 7200
    # malformed text is kept for display but counts as zero seconds
    assert stew.prep_time.text == "soon"
    assert stew.prep_time.seconds == 0
    assert [i.name for i in stew.ingredients] == ["beef", "carrot", "beef"]


def test_import_computes_aggregates_from_reviews(db):
    loader.import_records(db, *_dataset())
    stew = recipes.get_recipe(db, 100)
    assert stew.review_count == 2
    assert stew.aggregated_rating == 3.5
    assert stew.total_time is None
    salad = recipes.get_recipe(db, 101)
    assert salad.review_count == 0
    assert salad.aggregated_rating is None

    page = reviews.list_by_recipe(db, 100, 1, 10)
    assert page.items[0].likes == [10]


def test_new_ids_continue_after_imported_ones(db):
    loader.import_records(db, *_dataset())
    user_id = users.register(
        db, schemas.RegisterRequest(name="cat", password="c", birthday="1999-01-01")
    )
    assert user_id == 12
    auth = schemas.AuthInfo(user_id=user_id)
    recipe_id = recipes.create_recipe(db, schemas.RecipeCreate(name="Toast"), auth)
    assert recipe_id == 102
    review_id = reviews.add_review(db, auth, 100, 4, "nice")
    assert review_id == 1002


def test_rows_already_in_the_store_are_skipped(db, make_user, make_recipe):
    chef = make_user("chef")
    recipe_id = make_recipe(chef, name="Soup")
    review_id = reviews.add_review(db, chef, recipe_id, 4, "mine")

    added = loader.import_records(
        db,
        [
            schemas.UserRecord(id=chef.user_id, name="bob", following=[chef.user_id]),
            schemas.UserRecord(id=50, name="chef"),
            schemas.UserRecord(id=51, name="carol", following=[chef.user_id]),
        ],
        [
            schemas.RecipeRecord(id=recipe_id, author_id=51, name="Clash"),
            schemas.RecipeRecord(id=200, author_id=chef.user_id, name="Stew"),
        ],
        [
            schemas.ReviewRecord(id=review_id, recipe_id=recipe_id, author_id=51, rating=1),
            schemas.ReviewRecord(id=300, recipe_id=recipe_id, author_id=51, rating=2),
        ],
    )
    assert added == {"users": 1, "follows": 1, "recipes": 1, "reviews": 1, "likes": 0}

    db.expire_all()
    assert crud.get_user(db, chef.user_id).name == "chef"
    assert crud.get_recipe(db, recipe_id).name == "Soup"
    soup = recipes.get_recipe(db, recipe_id)
    assert soup.review_count == 2
    assert soup.aggregated_rating == 3.0
