"""Repository functions for courses, disciplines, assignments and enrollments.

Write operations that touch several rows run inside a single get_db() block,
so a failure part-way through rolls back every row written by that call.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Sequence

import structlog

from journal.core.models import (
    Assignment,
    AssignmentRow,
    Course,
    Discipline,
    Enrollment,
    Subject,
    User,
)
from journal.db.database import get_db
from journal.db.errors import (
    AssignmentNotFoundError,
    CourseNotFoundError,
    DisciplineNotFoundError,
    storage_op,
)
from journal.db.users_repository import get_user

logger = structlog.get_logger(__name__)


# =============================================================================
# COURSES
# =============================================================================


@storage_op("storage.courses.create_course")
def create_course(name: str, number: int, subjects: Sequence[Subject] = ()) -> int:
    """Insert a course and one assignment per subject.

    Args:
        name: Course name
        number: Course number
        subjects: Teacher/discipline pairs taught in the course

    Returns:
        New course id

    Raises:
        StorageError: If any insert fails (e.g. unknown teacher or discipline);
            nothing is written in that case
    """
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO courses (num, name) VALUES (?, ?)", (number, name)
        )
        course_id = cursor.lastrowid

        conn.executemany(
            """
            INSERT INTO assignments (course_id, discipline_id, teacher_id)
            VALUES (?, ?, ?)
            """,
            [(course_id, s.discipline_id, s.teacher_id) for s in subjects],
        )

    logger.debug("courses.inserted", course_id=course_id, subjects=len(subjects))
    return course_id


@storage_op("storage.courses.get_course")
def get_course(course_id: int) -> Course:
    """Get course by ID.

    Raises:
        CourseNotFoundError: If the course does not exist
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT id, name, num FROM courses WHERE id = ?", (course_id,)
        ).fetchone()

    if row is None:
        raise CourseNotFoundError(course_id=course_id)

    return _row_to_course(row)


@storage_op("storage.courses.list_courses")
def list_courses() -> list[Course]:
    """Get all courses ordered by id."""
    with get_db() as conn:
        rows = conn.execute("SELECT id, name, num FROM courses ORDER BY id").fetchall()

    return [_row_to_course(row) for row in rows]


@storage_op("storage.courses.teacher_courses")
def teacher_courses(teacher_id: int) -> list[Course]:
    """Get the courses a teacher is assigned to.

    A course is listed once even if the teacher has several disciplines in it.

    Raises:
        CourseNotFoundError: If an assignment points at a missing course
    """
    assignments = assignments_by_teacher(teacher_id)
    return _fetch_courses(a.course_id for a in assignments)


@storage_op("storage.courses.student_courses")
def student_courses(student_id: int) -> list[Course]:
    """Get the courses a student is enrolled in.

    Raises:
        CourseNotFoundError: If an enrollment points at a missing course
    """
    enrollments = enrollments_by_student(student_id)
    return _fetch_courses(e.course_id for e in enrollments)


def _fetch_courses(course_ids: Iterable[int]) -> list[Course]:
    seen: set[int] = set()
    courses = []
    for course_id in course_ids:
        if course_id in seen:
            continue
        seen.add(course_id)
        courses.append(get_course(course_id))
    return courses


# =============================================================================
# DISCIPLINES
# =============================================================================


@storage_op("storage.courses.get_discipline")
def get_discipline(discipline_id: int) -> Discipline:
    """Get discipline by ID.

    Raises:
        DisciplineNotFoundError: If the discipline does not exist
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT id, name FROM disciplines WHERE id = ?", (discipline_id,)
        ).fetchone()

    if row is None:
        raise DisciplineNotFoundError(discipline_id=discipline_id)

    return Discipline(id=row["id"], name=row["name"])


@storage_op("storage.courses.list_disciplines")
def list_disciplines() -> list[Discipline]:
    """Get all disciplines ordered by name."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT id, name FROM disciplines ORDER BY name, id"
        ).fetchall()

    return [Discipline(id=row["id"], name=row["name"]) for row in rows]


@storage_op("storage.courses.insert_discipline")
def insert_discipline(name: str) -> int:
    """Insert a discipline and return its id."""
    with get_db() as conn:
        cursor = conn.execute("INSERT INTO disciplines (name) VALUES (?)", (name,))
        discipline_id = cursor.lastrowid

    logger.debug("disciplines.inserted", discipline_id=discipline_id)
    return discipline_id


@storage_op("storage.courses.course_disciplines")
def course_disciplines(course_id: int) -> list[Discipline]:
    """Get the disciplines taught in a course, in assignment order."""
    seen: set[int] = set()
    disciplines = []
    for assignment in assignments_by_course(course_id):
        if assignment.discipline_id in seen:
            continue
        seen.add(assignment.discipline_id)
        disciplines.append(get_discipline(assignment.discipline_id))
    return disciplines


@storage_op("storage.courses.discipline_teacher")
def discipline_teacher(course_id: int, discipline_id: int) -> list[User]:
    """Get the teachers assigned to a discipline within a course."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT teacher_id FROM assignments
            WHERE course_id = ? AND discipline_id = ?
            ORDER BY id
            """,
            (course_id, discipline_id),
        ).fetchall()

    return [get_user(row["teacher_id"]) for row in rows]


# =============================================================================
# ASSIGNMENTS
# =============================================================================


@storage_op("storage.courses.assignment_id")
def assignment_id(course_id: int, discipline_id: int, teacher_id: int) -> int:
    """Look up the assignment for an exact (course, discipline, teacher) triple.

    Raises:
        AssignmentNotFoundError: If no assignment matches
    """
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT id FROM assignments
            WHERE course_id = ? AND discipline_id = ? AND teacher_id = ?
            """,
            (course_id, discipline_id, teacher_id),
        ).fetchone()

    if row is None:
        raise AssignmentNotFoundError(
            course_id=course_id, discipline_id=discipline_id, teacher_id=teacher_id
        )

    return row["id"]


@storage_op("storage.courses.assignments_by_course")
def assignments_by_course(course_id: int) -> list[Assignment]:
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT id, course_id, discipline_id, teacher_id FROM assignments
            WHERE course_id = ? ORDER BY id
            """,
            (course_id,),
        ).fetchall()

    return [_row_to_assignment(row) for row in rows]


@storage_op("storage.courses.assignments_by_teacher")
def assignments_by_teacher(teacher_id: int) -> list[Assignment]:
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT id, course_id, discipline_id, teacher_id FROM assignments
            WHERE teacher_id = ? ORDER BY id
            """,
            (teacher_id,),
        ).fetchall()

    return [_row_to_assignment(row) for row in rows]


@storage_op("storage.courses.course_assignment_rows")
def course_assignment_rows(course_ids: Sequence[int]) -> list[AssignmentRow]:
    """Batch-fetch assignments of many courses with discipline and teacher.

    Args:
        course_ids: Courses to fetch

    Returns:
        Rows ordered by course id, then assignment id
    """
    if not course_ids:
        return []

    placeholders = ", ".join("?" for _ in course_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"""
            SELECT a.id, a.course_id, a.discipline_id, a.teacher_id,
                   d.name AS discipline_name,
                   u.last_name, u.first_name, u.patronymic
            FROM assignments a
            JOIN disciplines d ON d.id = a.discipline_id
            JOIN users u ON u.id = a.teacher_id
            WHERE a.course_id IN ({placeholders})
            ORDER BY a.course_id, a.id
            """,
            tuple(course_ids),
        ).fetchall()

    return [
        AssignmentRow(
            assignment=_row_to_assignment(row),
            discipline=Discipline(id=row["discipline_id"], name=row["discipline_name"]),
            teacher=User(
                id=row["teacher_id"],
                last_name=row["last_name"],
                first_name=row["first_name"],
                patronymic=row["patronymic"],
            ),
        )
        for row in rows
    ]


# =============================================================================
# ENROLLMENTS
# =============================================================================


@storage_op("storage.courses.enroll_students")
def enroll_students(enrollments: Sequence[Enrollment]) -> None:
    """Insert one enrollment row per (course_id, student_id) pair.

    Raises:
        StorageError: If any insert fails; nothing is written in that case
    """
    with get_db() as conn:
        conn.executemany(
            "INSERT INTO enrollments (course_id, student_id) VALUES (?, ?)",
            [(e.course_id, e.student_id) for e in enrollments],
        )

    logger.debug("enrollments.inserted", count=len(enrollments))


@storage_op("storage.courses.remove_students")
def remove_students(enrollments: Sequence[Enrollment]) -> int:
    """Delete enrollment rows matching each (course_id, student_id) pair.

    Pairs with no matching row are ignored.

    Returns:
        Number of rows deleted
    """
    with get_db() as conn:
        cursor = conn.executemany(
            "DELETE FROM enrollments WHERE course_id = ? AND student_id = ?",
            [(e.course_id, e.student_id) for e in enrollments],
        )
        deleted = max(cursor.rowcount, 0)

    logger.debug("enrollments.deleted", requested=len(enrollments), deleted=deleted)
    return deleted


@storage_op("storage.courses.enrollments_by_student")
def enrollments_by_student(student_id: int) -> list[Enrollment]:
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT id, course_id, student_id FROM enrollments
            WHERE student_id = ? ORDER BY id
            """,
            (student_id,),
        ).fetchall()

    return [_row_to_enrollment(row) for row in rows]


@storage_op("storage.courses.enrollments_by_course")
def enrollments_by_course(course_id: int) -> list[Enrollment]:
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT id, course_id, student_id FROM enrollments
            WHERE course_id = ? ORDER BY id
            """,
            (course_id,),
        ).fetchall()

    return [_row_to_enrollment(row) for row in rows]


# =============================================================================
# ROW CONVERSION
# =============================================================================


def _row_to_course(row: sqlite3.Row) -> Course:
    return Course(id=row["id"], name=row["name"], number=row["num"])


def _row_to_assignment(row: sqlite3.Row) -> Assignment:
    return Assignment(
        id=row["id"],
        course_id=row["course_id"],
        discipline_id=row["discipline_id"],
        teacher_id=row["teacher_id"],
    )


def _row_to_enrollment(row: sqlite3.Row) -> Enrollment:
    return Enrollment(
        id=row["id"], course_id=row["course_id"], student_id=row["student_id"]
    )
