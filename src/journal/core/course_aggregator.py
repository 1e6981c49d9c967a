"""Course aggregation for "list my courses".

Builds the nested course → discipline → teacher view for the caller. Each
level is fetched with one batch query:

1. base course list, chosen by role
2. assignments of all those courses joined with discipline and teacher
3. (students only) every graded exam of the student

Any failure aborts the whole listing; no partial tree is returned.
"""

from __future__ import annotations

import structlog

from journal.core.models import (
    AuthKey,
    Course,
    CourseView,
    DisciplineView,
    Grade,
    Role,
    TeacherView,
)
from journal.db.courses_repository import (
    course_assignment_rows,
    list_courses,
    student_courses,
    teacher_courses,
)
from journal.db.exams_repository import student_grades

logger = structlog.get_logger(__name__)


def base_courses(key: AuthKey) -> list[Course]:
    """Resolve the courses visible to the caller.

    - teacher: courses with at least one assignment of the teacher
    - student: courses the student is enrolled in
    - admin: every course
    """
    if key.role is Role.TEACHER:
        return teacher_courses(key.id)
    elif key.role is Role.STUDENT:
        return student_courses(key.id)
    elif key.role is Role.ADMIN:
        return list_courses()
    raise ValueError(f"unhandled role: {key.role!r}")


def latest_grades_by_assignment(grades: list[Grade]) -> dict[int, Grade]:
    """Index grades by assignment id, keeping the most recent one.

    Grades must be ordered oldest first, as returned by student_grades().
    """
    latest: dict[int, Grade] = {}
    for grade in grades:
        latest[grade.assignment_id] = grade
    return latest


def list_user_courses(key: AuthKey) -> list[CourseView]:
    """Build the course tree for an authenticated user.

    Args:
        key: Authorization descriptor of the caller

    Returns:
        One CourseView per visible course. Student views carry the most
        recent grade of each discipline.

    Raises:
        NotFoundError, StorageError: If any stage fails
    """
    log = logger.bind(user_id=key.id, role=key.role.value)

    courses = base_courses(key)
    rows = course_assignment_rows([c.id for c in courses])

    grades: dict[int, Grade] = {}
    if key.role is Role.STUDENT:
        grades = latest_grades_by_assignment(student_grades(key.id))

    views = {c.id: CourseView(course=c) for c in courses}
    disciplines: dict[tuple[int, int], DisciplineView] = {}

    for row in rows:
        course_id = row.assignment.course_id
        slot = (course_id, row.discipline.id)

        view = disciplines.get(slot)
        if view is None:
            view = DisciplineView(discipline=row.discipline)
            disciplines[slot] = view
            views[course_id].disciplines.append(view)

        view.teachers.append(
            TeacherView(teacher=row.teacher, assignment_id=row.assignment.id)
        )

        grade = grades.get(row.assignment.id)
        if grade is not None and _is_newer(grade, view.grade):
            view.grade = grade

    log.debug(
        "courses.aggregated",
        courses=len(views),
        disciplines=len(disciplines),
        grades=len(grades),
    )
    return list(views.values())


def _is_newer(candidate: Grade, current: Grade | None) -> bool:
    if current is None:
        return True
    return (candidate.grade_date, candidate.exam_date, candidate.exam_id) > (
        current.grade_date,
        current.exam_date,
        current.exam_id,
    )
