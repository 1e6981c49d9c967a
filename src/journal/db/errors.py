"""Errors raised by the repository modules."""

from __future__ import annotations

import functools
import sqlite3
from typing import Callable, TypeVar

T = TypeVar("T")


class NotFoundError(Exception):
    """A requested row does not exist."""

    entity = "row"

    def __init__(self, **lookup: object):
        self.lookup = lookup
        details = ", ".join(f"{k}={v}" for k, v in lookup.items())
        super().__init__(f"{self.entity} not found" + (f" ({details})" if details else ""))


class UserNotFoundError(NotFoundError):
    entity = "user"


class CourseNotFoundError(NotFoundError):
    entity = "course"


class DisciplineNotFoundError(NotFoundError):
    entity = "discipline"


class AssignmentNotFoundError(NotFoundError):
    entity = "assignment"


class ExamNotFoundError(NotFoundError):
    entity = "exam"


class StorageError(Exception):
    """A SQL statement failed.

    Attributes:
        op: Repository operation that failed (e.g. "storage.courses.create_course")
        cause: Underlying sqlite3 (or integer overflow) error
    """

    def __init__(self, op: str, cause: Exception):
        self.op = op
        self.cause = cause
        super().__init__(f"{op}: {cause}")


def storage_op(op: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Wrap sqlite3 errors raised by a repository function into StorageError.

    OverflowError is wrapped too: sqlite3 raises it for integers outside the
    64-bit INTEGER range.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except (sqlite3.Error, OverflowError) as e:
                raise StorageError(op, e) from e

        return wrapper

    return decorator
