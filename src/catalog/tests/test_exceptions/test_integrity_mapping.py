from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from catalog.exceptions.base import DuplicateError, RepositoryError
from catalog.exceptions.integrity_classifier import (
    CheckConstraintError,
    ForeignKeyConstraintError,
    NotNullConstraintError,
    UniqueConstraintError,
    UnknownIntegrityError,
    classify_integrity_error,
)
from catalog.exceptions.mapper import extract_columns_from_integrity, map_integrity_error


class FakePsycopgError(Exception):
    def __init__(self, message, pgcode, constraint_name=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint_name)


class FakeAsyncpgCause(Exception):
    def __init__(self, constraint_name):
        super().__init__("asyncpg")
        self.constraint_name = constraint_name


class FakeAsyncpgError(Exception):
    def __init__(self, message, sqlstate, constraint_name=None):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.__cause__ = FakeAsyncpgCause(constraint_name)


def integrity(orig) -> IntegrityError:
    return IntegrityError("INSERT INTO categories (title) VALUES (?)", {}, orig)


class TestClassify:

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("23505", UniqueConstraintError),
            ("23502", NotNullConstraintError),
            ("23503", ForeignKeyConstraintError),
            ("23514", CheckConstraintError),
            ("23P01", UnknownIntegrityError),
        ],
    )
    def test_sqlstate(self, code, expected):
        exc_cls, constraint = classify_integrity_error(
            integrity(FakePsycopgError("violation", code, constraint_name="some_constraint"))
        )

        assert exc_cls is expected
        assert constraint == "some_constraint"

    def test_asyncpg_constraint_name_comes_from_the_cause(self):
        exc_cls, constraint = classify_integrity_error(
            integrity(FakeAsyncpgError("duplicate key value", "23505", constraint_name="uq_categories_title"))
        )

        assert exc_cls is UniqueConstraintError
        assert constraint == "uq_categories_title"

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("UNIQUE constraint failed: categories.title", UniqueConstraintError),
            ("NOT NULL constraint failed: products.price", NotNullConstraintError),
            ("FOREIGN KEY constraint failed", ForeignKeyConstraintError),
            ("CHECK constraint failed: price_positive", CheckConstraintError),
            ("something else entirely", UnknownIntegrityError),
        ],
    )
    def test_message_fallback(self, message, expected):
        exc_cls, constraint = classify_integrity_error(integrity(Exception(message)))

        assert exc_cls is expected
        assert constraint is None


class TestExtractColumns:

    @pytest.mark.parametrize(
        "message, columns",
        [
            ("UNIQUE constraint failed: categories.title", ["title"]),
            ("UNIQUE constraint failed: t.a, t.b", ["a", "b"]),
            ('null value in column "price" of relation "products"', ["price"]),
            ("duplicate key value\nDETAIL:  Key (title)=(books) already exists.", ["title"]),
            ("Duplicate entry 'books' for key 'categories.title'", ["title"]),
        ],
    )
    def test_known_driver_messages(self, message, columns):
        assert extract_columns_from_integrity(integrity(Exception(message))) == columns

    def test_unknown_message(self):
        assert extract_columns_from_integrity(integrity(Exception("nope"))) is None


class TestMapIntegrityError:

    def test_unique_violation_becomes_duplicate(self):
        err = map_integrity_error(integrity(Exception("UNIQUE constraint failed: categories.title")), "Category")

        assert isinstance(err, DuplicateError)
        assert err.message == "Category already exists for field(s): title"
        assert err.fields == ["title"]
        assert err.http_status() == 409

    def test_unique_violation_without_columns(self):
        err = map_integrity_error(integrity(FakePsycopgError("duplicate", "23505", "uq_x")), "Category")

        assert isinstance(err, DuplicateError)
        assert err.message == "Category already exists"
        assert err.constraint == "uq_x"

    def test_other_violations_are_persistence_errors(self):
        err = map_integrity_error(integrity(Exception("NOT NULL constraint failed: products.price")), "Product")

        assert type(err) is RepositoryError
        assert err.http_status() == 500
        assert err.fields == ["price"]
        assert err.to_payload() == {"detail": "An unexpected error occurred."}
