"""Repository functions for exams and grades tables."""

from __future__ import annotations

from datetime import date

import structlog

from journal.core.models import Grade
from journal.db.database import get_db
from journal.db.errors import ExamNotFoundError, storage_op

logger = structlog.get_logger(__name__)


@storage_op("storage.exams.exam_sign_up")
def exam_sign_up(student_id: int, assignment_id: int, exam_date: date) -> int:
    """Sign a student up for an exam on an assignment.

    Args:
        student_id: Student taking the exam
        assignment_id: Course/discipline/teacher assignment examined
        exam_date: Day of the exam

    Returns:
        New exam id

    Raises:
        StorageError: If the student is already signed up for that day or the
            student/assignment does not exist
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO exams (student_id, assignment_id, exam_date)
            VALUES (?, ?, ?)
            """,
            (student_id, assignment_id, exam_date.isoformat()),
        )
        exam_id = cursor.lastrowid

    logger.debug("exams.inserted", exam_id=exam_id, student_id=student_id)
    return exam_id


@storage_op("storage.exams.exam_id")
def exam_id(student_id: int, assignment_id: int, exam_date: date) -> int:
    """Look up the exam of a student on an assignment and day.

    Raises:
        ExamNotFoundError: If the student is not signed up
    """
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT id FROM exams
            WHERE student_id = ? AND assignment_id = ? AND exam_date = ?
            """,
            (student_id, assignment_id, exam_date.isoformat()),
        ).fetchone()

    if row is None:
        raise ExamNotFoundError(
            student_id=student_id,
            assignment_id=assignment_id,
            exam_date=exam_date.isoformat(),
        )

    return row["id"]


@storage_op("storage.exams.exam_grade")
def exam_grade(exam_id: int, grader_id: int, value: int, grade_date: date) -> None:
    """Record the grade of an exam, replacing any previous grade.

    Args:
        exam_id: Graded exam
        grader_id: Teacher recording the grade
        value: Grade value
        grade_date: Day the grade was given
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO grades (exam_id, grader_id, grade, grade_date)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(exam_id) DO UPDATE SET
                grader_id = excluded.grader_id,
                grade = excluded.grade,
                grade_date = excluded.grade_date
            """,
            (exam_id, grader_id, value, grade_date.isoformat()),
        )

    logger.debug("grades.recorded", exam_id=exam_id, grader_id=grader_id)


@storage_op("storage.exams.student_grades")
def student_grades(student_id: int) -> list[Grade]:
    """Get every graded exam of a student.

    Returns:
        Grades ordered oldest first (grade_date, exam_date, exam id)
    """
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT e.id AS exam_id, e.assignment_id, e.exam_date,
                   g.grader_id, g.grade, g.grade_date
            FROM exams e
            JOIN grades g ON g.exam_id = e.id
            WHERE e.student_id = ?
            ORDER BY g.grade_date, e.exam_date, e.id
            """,
            (student_id,),
        ).fetchall()

    return [
        Grade(
            exam_id=row["exam_id"],
            assignment_id=row["assignment_id"],
            grader_id=row["grader_id"],
            value=row["grade"],
            exam_date=row["exam_date"],
            grade_date=row["grade_date"],
        )
        for row in rows
    ]
