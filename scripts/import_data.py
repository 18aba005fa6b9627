import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipehub import loader, schemas  # noqa: E402
from recipehub.config import settings  # noqa: E402
from recipehub.db import SessionLocal, init_db  # noqa: E402


def _read(path, record_cls):
    if not path.exists():
        print(f'{path.name} not found, skipping')
        return []
    data = json.loads(path.read_text(encoding='utf-8'))
    return [record_cls.model_validate(r) for r in data]


def main():
    logging.basicConfig(level=settings.log_level)
    init_db()
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else (
        Path(__file__).resolve().parents[1] / 'data'
    )
    users = _read(data_dir / 'users.json', schemas.UserRecord)
    recipes = _read(data_dir / 'recipes.json', schemas.RecipeRecord)
    reviews = _read(data_dir / 'reviews.json', schemas.ReviewRecord)

    db = SessionLocal()
    try:
        added = loader.import_records(db, users, recipes, reviews)
    finally:
        db.close()
    print(
        f"Imported {added['users']} users, {added['recipes']} recipes, "
        f"{added['reviews']} reviews"
    )


if __name__ == '__main__':
    main()
