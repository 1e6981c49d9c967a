"""Pydantic schemas for Web API.

Request bodies and the `{status, error?, ...data}` response envelopes.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated

from pydantic import BaseModel, Field

from journal.db.database import SQLITE_INT_MAX, SQLITE_INT_MIN

# Integers that fit an SQLite INTEGER column
DbInt = Annotated[int, Field(ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)]


# =============================================================================
# ENVELOPE
# =============================================================================


class Envelope(BaseModel):
    """Uniform response envelope. `status` is "OK" or "Error"."""

    status: str
    error: str | None = None


# =============================================================================
# COURSE SCHEMAS
# =============================================================================


class SubjectIn(BaseModel):
    teacher_id: DbInt
    discipline_id: DbInt


class CourseCreateRequest(BaseModel):
    """Request body for creating a course."""

    name: str
    number: DbInt
    subjects: list[SubjectIn] = Field(default_factory=list)


class CreateCourseResponse(Envelope):
    course_id: int | None = None


class EnrollmentIn(BaseModel):
    course_id: DbInt
    student_id: DbInt


class EnrollmentsRequest(BaseModel):
    """Request body for enrolling or removing students."""

    enrollments: list[EnrollmentIn]


class TeacherResponse(BaseModel):
    teacher_id: int
    last_name: str
    first_name: str
    patronymic: str
    assignment_id: int


class GradeResponse(BaseModel):
    exam_id: int
    assignment_id: int
    grader_id: int
    value: int
    exam_date: str
    grade_date: str


class CourseDisciplineResponse(BaseModel):
    discipline_id: int
    discipline_name: str
    teachers: list[TeacherResponse]
    grade: GradeResponse | None = None


class CourseResponse(BaseModel):
    """A course with its disciplines, teachers and (for students) grades."""

    course_id: int
    course_name: str
    course_number: int
    disciplines: list[CourseDisciplineResponse]


class CoursesResponse(Envelope):
    courses: list[CourseResponse] | None = None


# =============================================================================
# DISCIPLINE SCHEMAS
# =============================================================================


class DisciplineResponse(BaseModel):
    discipline_id: int
    discipline_name: str


class DisciplinesResponse(Envelope):
    disciplines: list[DisciplineResponse] | None = None


# =============================================================================
# EXAM SCHEMAS
# =============================================================================


class ExamSignUpRequest(BaseModel):
    """Request body for signing up for an exam.

    `student_id` is only read when a teacher signs a student up.
    """

    course_id: DbInt
    discipline_id: DbInt
    teacher_id: DbInt
    exam_date: date
    student_id: DbInt | None = None


class ExamSignUpResponse(Envelope):
    exam_id: int | None = None


class ExamGradeRequest(BaseModel):
    """Request body for grading an exam."""

    student_id: DbInt
    course_id: DbInt
    discipline_id: DbInt
    exam_date: date
    grade: int = Field(..., ge=0, le=SQLITE_INT_MAX)


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
