"""Test configuration."""
import os
from pathlib import Path
from typing import Generator

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).resolve().parents[3] / ".env.test"
load_dotenv(test_env_path)
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_vocabquiz.db")

# Import after environment setup
from sqlalchemy.orm import Session  # noqa: E402

from vocabquiz.models.base import engine, get_db, init_db  # noqa: E402
from vocabquiz.models.models import Group, Module, User, UserRole, Word  # noqa: E402

fake = Faker()

ANIMALS = [
    ("cat", "кот"),
    ("dog", "собака"),
    ("bird", "птица"),
    ("fish", "рыба"),
]


@pytest.fixture(autouse=True)
def setup_database():
    """Delete and recreate the database before each test."""
    # Close any existing connections
    engine.dispose()

    # Delete the database file if it exists
    db_path = engine.url.database
    if db_path and db_path != ":memory:" and os.path.exists(db_path):
        os.remove(db_path)

    # Create new database
    init_db()

    yield

    # Cleanup after test
    engine.dispose()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    yield from get_db()


@pytest.fixture
def make_user(db: Session):
    """Factory for users with a unique fake username."""
    def _make_user(role: UserRole = UserRole.STUDENT, group: Group = None) -> User:
        user = User(
            username=fake.unique.user_name(),
            role=role.value,
            group_id=group.id if group else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def teacher(make_user) -> User:
    """Create a test teacher."""
    return make_user(UserRole.TEACHER)


@pytest.fixture
def group(db: Session, teacher: User) -> Group:
    """Create a group owned by the test teacher."""
    group = Group(name=fake.word(), teacher_id=teacher.id)
    db.add(group)
    db.commit()
    db.refresh(group)
    return group


@pytest.fixture
def make_module(db: Session, teacher: User):
    """Factory for modules filled with (english, russian) pairs."""
    def _make_module(pairs=ANIMALS, title: str = None) -> Module:
        module = Module(title=title or fake.sentence(nb_words=2), owner_id=teacher.id)
        db.add(module)
        db.commit()
        db.add_all(Word(module_id=module.id, english=en, russian=ru) for en, ru in pairs)
        db.commit()
        db.refresh(module)
        return module
    return _make_module


@pytest.fixture
def animals_module(make_module) -> Module:
    """Create the four-word animals module."""
    return make_module(ANIMALS, title="Animals")
