# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `recipehub` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipehub import app as app_module
from recipehub import models, recipes, schemas, users


@pytest.fixture
def engine():
    # Use StaticPool so the same in-memory database is shared across connections
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app_module.app.dependency_overrides[app_module.get_db] = override_get_db
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(name, password="secret", gender="Male", birthday="1990-01-01"):
        user_id = users.create_user(
            db,
            schemas.RegisterRequest(
                name=name, password=password, gender=gender, birthday=birthday
            ),
        )
        return schemas.AuthInfo(user_id=user_id, password=password)

    return _make


@pytest.fixture
def make_recipe(db):
    def _make(auth, name="Recipe", **fields):
        return recipes.create_recipe(
            db, schemas.RecipeCreate(name=name, **fields), auth
        )

    return _make
