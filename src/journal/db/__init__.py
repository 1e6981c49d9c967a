"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for users, courses, disciplines, assignments,
  enrollments, exams and grades
"""

from journal.db.database import get_db, init_db
from journal.db.errors import NotFoundError, StorageError

__all__ = ["get_db", "init_db", "NotFoundError", "StorageError"]
