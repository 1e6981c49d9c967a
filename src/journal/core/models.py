"""Domain types for the academic records service.

Rows read from the database are converted into these dataclasses by the
repository modules; the web layer converts them into pydantic schemas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Closed set of user roles."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class UnknownRoleError(ValueError):
    """Raised when a stored or decoded role is not a known Role."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"unknown role: {value!r}")


def parse_role(value: object) -> Role:
    """Convert a raw role string into a Role.

    Raises:
        UnknownRoleError: If the value is not one of admin/teacher/student
    """
    try:
        return Role(value)
    except ValueError:
        raise UnknownRoleError(value) from None


@dataclass(frozen=True)
class AuthKey:
    """Authorization descriptor attached to every authenticated request."""

    id: int
    email: str
    role: Role

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "email": self.email, "role": self.role.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthKey:
        """Build from a dictionary produced by to_dict()."""
        return cls(
            id=int(data["id"]),
            email=str(data["email"]),
            role=parse_role(data["role"]),
        )


@dataclass
class User:
    """A user as seen by other users (no role, no email)."""

    id: int
    last_name: str
    first_name: str
    patronymic: str


@dataclass
class Course:
    id: int
    name: str
    number: int


@dataclass
class Discipline:
    id: int
    name: str


@dataclass
class Subject:
    """A teacher/discipline pair requested at course creation."""

    teacher_id: int
    discipline_id: int


@dataclass
class Assignment:
    """Binding of one teacher to one discipline within one course."""

    id: int
    course_id: int
    discipline_id: int
    teacher_id: int


@dataclass
class Enrollment:
    course_id: int
    student_id: int
    id: int | None = None


@dataclass
class Grade:
    """A grade recorded for one exam."""

    exam_id: int
    assignment_id: int
    grader_id: int
    value: int
    exam_date: str
    grade_date: str


@dataclass
class AssignmentRow:
    """An assignment joined with its discipline and teacher."""

    assignment: Assignment
    discipline: Discipline
    teacher: User


@dataclass
class TeacherView:
    teacher: User
    assignment_id: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "teacher_id": self.teacher.id,
            "last_name": self.teacher.last_name,
            "first_name": self.teacher.first_name,
            "patronymic": self.teacher.patronymic,
            "assignment_id": self.assignment_id,
        }


@dataclass
class DisciplineView:
    """A discipline of a course with its teachers and the latest grade."""

    discipline: Discipline
    teachers: list[TeacherView] = field(default_factory=list)
    grade: Grade | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "discipline_id": self.discipline.id,
            "discipline_name": self.discipline.name,
            "teachers": [t.to_dict() for t in self.teachers],
        }
        if self.grade is not None:
            result["grade"] = {
                "exam_id": self.grade.exam_id,
                "assignment_id": self.grade.assignment_id,
                "grader_id": self.grade.grader_id,
                "value": self.grade.value,
                "exam_date": self.grade.exam_date,
                "grade_date": self.grade.grade_date,
            }
        return result


@dataclass
class CourseView:
    """Nested course → disciplines → teachers view returned by GET /courses."""

    course: Course
    disciplines: list[DisciplineView] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course.id,
            "course_name": self.course.name,
            "course_number": self.course.number,
            "disciplines": [d.to_dict() for d in self.disciplines],
        }
