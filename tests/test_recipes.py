from datetime import datetime, timedelta

import pytest

from recipehub import crud, recipes, reviews, schemas
from recipehub.errors import (
    AccountInactive,
    InvalidArgument,
    InvalidDuration,
    InvalidPageRequest,
    NotOwner,
    RecipeNotFound,
)


@pytest.fixture
def catalog(db, make_user, make_recipe):
    chef = make_user("chef")
    ids = [
        make_recipe(chef, name="Apple Pie", category="Dessert", calories=450.0),
        make_recipe(chef, name="Banana Bread", category="Dessert", calories=None),
        make_recipe(chef, name="Cherry Tart", category="Dessert", calories=300.0),
        make_recipe(chef, name="Tomato Soup", category="Soup", calories=120.0,
                    description="with apple cider"),
        make_recipe(chef, name="Leek Soup", category="Soup", calories=300.0),
    ]
    return chef, ids


def _ids(page):
    return [item.id for item in page.items]


def test_create_and_get_recipe(db, make_user, make_recipe):
    chef = make_user("chef")
    recipe_id = make_recipe(
        chef,
        name="Pancakes",
        cook_time="PT20M",
        prep_time="PT10M",
        ingredients=["flour", "milk", "egg"],
        calories=250.5,
        servings=4,
        recipe_yield="8 pancakes",
    )
    recipe = recipes.get_recipe(db, recipe_id)
    assert recipe.name == "Pancakes"
    assert recipe.author_name == "chef"
    assert recipe.ingredients == ["flour", "milk", "egg"]
    assert recipe.total_time == "PT30M"
    assert recipe.aggregated_rating is None
    assert recipe.review_count == 0
    assert recipe.date_published is not None

    row = crud.get_recipe(db, recipe_id)
    assert row.cook_time.seconds == 1200
    assert row.prep_time.seconds == 600
    assert [i.display_order for i in row.ingredients] == [0, 1, 2]


def test_create_recipe_validation(db, make_user, make_recipe):
    chef = make_user("chef")
    with pytest.raises(InvalidArgument):
        make_recipe(chef, name="   ")
    with pytest.raises(InvalidDuration):
        make_recipe(chef, name="Stew", cook_time="three hours")
    with pytest.raises(AccountInactive):
        make_recipe(schemas.AuthInfo(user_id=404), name="Ghost")
    assert recipes.search_recipes(db).total == 0


def test_get_recipe_hides_deleted(db, catalog):
    chef, ids = catalog
    recipes.delete_recipe(db, ids[0], chef)
    assert recipes.get_recipe(db, ids[0]) is None
    assert recipes.get_recipe(db, 999) is None
    with pytest.raises(InvalidArgument):
        recipes.get_recipe(db, 0)


def test_delete_recipe_guards(db, catalog, make_user):
    chef, ids = catalog
    other = make_user("other")
    with pytest.raises(NotOwner):
        recipes.delete_recipe(db, ids[0], other)
    with pytest.raises(RecipeNotFound):
        recipes.delete_recipe(db, 999, chef)
    recipes.delete_recipe(db, ids[0], chef)
    with pytest.raises(RecipeNotFound):
        recipes.delete_recipe(db, ids[0], chef)


def test_update_times(db, catalog, make_user):
    chef, ids = catalog
    recipes.update_times(db, chef, ids[0], cook_time="PT1H", prep_time=None)
    recipe = recipes.get_recipe(db, ids[0])
    assert recipe.cook_time == "PT1H"
    assert recipe.prep_time is None
    assert recipe.total_time == "PT1H"

    recipes.update_times(db, chef, ids[0], prep_time="PT15M")
    assert recipes.get_recipe(db, ids[0]).total_time == "PT1H15M"


def test_update_times_is_all_or_nothing(db, catalog, make_user):
    chef, ids = catalog
    with pytest.raises(InvalidDuration):
        recipes.update_times(db, chef, ids[0], cook_time="PT2H", prep_time="-PT5M")
    assert recipes.get_recipe(db, ids[0]).cook_time is None

    other = make_user("other")
    with pytest.raises(NotOwner):
        recipes.update_times(db, other, ids[0], cook_time="bogus")


def test_search_filters(db, catalog):
    chef, ids = catalog
    assert _ids(recipes.search_recipes(db, keyword="soup")) == [ids[3], ids[4]]
    # description matches too
    assert _ids(recipes.search_recipes(db, keyword="APPLE")) == [ids[0], ids[3]]
    assert _ids(recipes.search_recipes(db, category="Soup")) == [ids[3], ids[4]]
    assert recipes.search_recipes(db, keyword="100%").total == 0


def test_search_matches_non_ascii_text(db, make_user, make_recipe):
    chef = make_user("chef")
    eclair = make_recipe(chef, name="ÉCLAIR au chocolat")
    make_recipe(chef, name="Eclair plain")
    assert _ids(recipes.search_recipes(db, keyword="ÉCLAIR")) == [eclair]
    assert _ids(recipes.search_recipes(db, keyword="au CHOCOLAT")) == [eclair]


def test_search_min_rating_excludes_unrated(db, catalog, make_user):
    chef, ids = catalog
    fan = make_user("fan")
    reviews.add_review(db, fan, ids[1], 5, "yum")
    reviews.add_review(db, fan, ids[2], 3, "ok")
    page = recipes.search_recipes(db, min_rating=4.0)
    assert _ids(page) == [ids[1]]
    assert page.total == 1


def test_sort_keys_put_nulls_last(db, catalog, make_user):
    chef, ids = catalog
    fan = make_user("fan")
    reviews.add_review(db, fan, ids[2], 4, "x")
    reviews.add_review(db, fan, ids[4], 4, "x")
    reviews.add_review(db, fan, ids[0], 2, "x")

    by_rating = recipes.search_recipes(db, sort="rating_desc")
    assert _ids(by_rating) == [ids[2], ids[4], ids[0], ids[1], ids[3]]

    by_calories = recipes.search_recipes(db, sort="calories_asc")
    assert _ids(by_calories) == [ids[3], ids[2], ids[4], ids[0], ids[1]]

    assert _ids(recipes.search_recipes(db, sort="no_such_sort")) == ids


def test_date_sort_is_newest_first_with_id_tie_break(db, catalog):
    chef, ids = catalog
    base = datetime(2024, 1, 1)
    stamps = [base, base + timedelta(days=2), base + timedelta(days=2), None, base]
    for recipe_id, stamp in zip(ids, stamps):
        crud.get_recipe(db, recipe_id).date_published = stamp
    db.commit()

    page = recipes.search_recipes(db, sort="date_desc")
    assert _ids(page) == [ids[1], ids[2], ids[0], ids[4], ids[3]]


def test_pagination_is_stable_and_complete(db, catalog):
    for sort in ("rating_desc", "date_desc", "calories_asc", "id_asc"):
        first = recipes.search_recipes(db, page=2, size=2, sort=sort)
        second = recipes.search_recipes(db, page=2, size=2, sort=sort)
        assert _ids(first) == _ids(second)
        assert first.total == second.total == 5

        seen = []
        for page in (1, 2, 3):
            seen += _ids(recipes.search_recipes(db, page=page, size=2, sort=sort))
        assert len(seen) == len(set(seen)) == 5


def test_page_past_the_end_is_empty_not_an_error(db, catalog):
    page = recipes.search_recipes(db, page=100, size=10)
    assert page.items == []
    assert page.total == 5
    assert page.page == 100


@pytest.mark.parametrize("page,size", ((0, 10), (-1, 10), (1, 0), (1, -5)))
def test_invalid_page_request(db, page, size):
    with pytest.raises(InvalidPageRequest):
        recipes.search_recipes(db, page=page, size=size)


def test_deleted_recipes_are_not_listed(db, catalog):
    chef, ids = catalog
    recipes.delete_recipe(db, ids[1], chef)
    page = recipes.search_recipes(db, size=10)
    assert ids[1] not in _ids(page)
    assert page.total == 4
