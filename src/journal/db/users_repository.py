"""Repository functions for users table.

Users are read-only over HTTP; insert_user() backs the `journal add-user`
operator command.
"""

from __future__ import annotations

import sqlite3

import structlog

from journal.core.models import AuthKey, Role, User, parse_role
from journal.db.database import get_db
from journal.db.errors import UserNotFoundError, storage_op

logger = structlog.get_logger(__name__)


@storage_op("storage.users.resolve_user_role")
def resolve_user_role(email: str) -> AuthKey:
    """Resolve the authorization descriptor for an email.

    Args:
        email: User email from the bearer token

    Returns:
        AuthKey with id, email and role

    Raises:
        UserNotFoundError: If no user has this email
        UnknownRoleError: If the stored role is not a known Role
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT id, email, role FROM users WHERE email = ?", (email,)
        ).fetchone()

    if row is None:
        raise UserNotFoundError(email=email)

    return AuthKey(id=row["id"], email=row["email"], role=parse_role(row["role"]))


@storage_op("storage.users.get_user")
def get_user(user_id: int) -> User:
    """Get user by ID.

    Raises:
        UserNotFoundError: If the user does not exist
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT id, last_name, first_name, patronymic FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()

    if row is None:
        raise UserNotFoundError(user_id=user_id)

    return _row_to_user(row)


@storage_op("storage.users.insert_user")
def insert_user(
    email: str,
    role: Role,
    last_name: str = "",
    first_name: str = "",
    patronymic: str = "",
) -> int:
    """Insert a new user record.

    Args:
        email: Unique login email
        role: User role
        last_name: Family name
        first_name: Given name
        patronymic: Patronymic (may be empty)

    Returns:
        New user id

    Raises:
        StorageError: If the email already exists
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO users (email, role, last_name, first_name, patronymic)
            VALUES (?, ?, ?, ?, ?)
            """,
            (email, role.value, last_name, first_name, patronymic),
        )
        user_id = cursor.lastrowid

    logger.debug("users.inserted", user_id=user_id, role=role.value)
    return user_id


def _row_to_user(row: sqlite3.Row) -> User:
    """Convert database row to User."""
    return User(
        id=row["id"],
        last_name=row["last_name"],
        first_name=row["first_name"],
        patronymic=row["patronymic"],
    )
