"""
Pytest configuration and shared fixtures for Study Assistant tests.
"""

import tempfile
import shutil
from pathlib import Path
from typing import Generator

import pytest

from app.db import Database

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_db(temp_dir: Path) -> Generator[Database, None, None]:
    """Create a temporary database for tests."""
    db_path = temp_dir / "test.db"
    database = Database(db_path)
    database.initialize()
    yield database
    database.close()


def make_document(database: Database, user_id: str = USER_ID, name: str = "notes.pdf", **fields) -> dict:
    """Insert a document record without touching the file system."""
    return database.create_document(
        user_id=user_id,
        file_name=fields.pop("file_name", "stored.pdf"),
        original_name=name,
        file_path=fields.pop("file_path", "uploads/stored.pdf"),
        file_size=fields.pop("file_size", 1024),
        **fields,
    )


@pytest.fixture
def seeded_db(temp_db: Database) -> Database:
    """
    A database with a small library for user-1 and one document for user-2.

    user-1: "Abstract Algebra.pdf" (no summary), "Linear Algebra.pdf" and
    "Cooking.pdf"; a completed and a pending quiz; flashcards on algebra.
    """
    algebra = make_document(
        temp_db, name="Abstract Algebra.pdf",
        uploaded_at="2024-03-01T10:00:00.000000+00:00",
    )
    linear = make_document(
        temp_db, name="Linear Algebra.pdf", summary="Vectors, matrices and linear maps.",
        uploaded_at="2024-03-02T10:00:00.000000+00:00",
    )
    make_document(
        temp_db, name="Cooking.pdf", summary="Recipes for pasta.",
        uploaded_at="2024-03-03T10:00:00.000000+00:00",
    )
    make_document(
        temp_db, user_id=OTHER_USER_ID, name="Algebra for Others.pdf",
        uploaded_at="2024-03-04T10:00:00.000000+00:00",
    )

    questions = [
        {"question": "What is a group?", "options": ["A set", "A set with an operation"],
         "correct_answer": 1, "explanation": "Groups need an operation."},
        {"question": "Is Z a ring?", "options": ["Yes", "No"],
         "correct_answer": 0, "explanation": ""},
    ]
    completed = temp_db.create_quiz(
        algebra["id"], USER_ID, "Quiz: Abstract Algebra.pdf", questions,
        created_at="2024-03-05T10:00:00.000000+00:00",
    )
    temp_db.complete_quiz(
        completed["id"],
        [{**q, "user_answer": 1} for q in questions],
        score=1,
    )
    temp_db.create_quiz(
        linear["id"], USER_ID, "Quiz: Linear Algebra.pdf", questions,
        created_at="2024-03-06T10:00:00.000000+00:00",
    )

    temp_db.add_flashcards(algebra["id"], USER_ID, [
        {"question": "Define a field", "answer": "A commutative ring where division works",
         "created_at": "2024-03-07T10:00:00.000000+00:00"},
        {"question": "What is an ideal?", "answer": "A subring closed under multiplication by ring elements",
         "created_at": "2024-03-08T10:00:00.000000+00:00"},
    ])
    return temp_db


@pytest.fixture
def document_factory(temp_db: Database):
    """Insert documents into ``temp_db``."""
    def factory(name: str = "notes.pdf", user_id: str = USER_ID, **fields) -> dict:
        return make_document(temp_db, user_id=user_id, name=name, **fields)
    return factory
