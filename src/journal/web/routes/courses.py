"""Course endpoints: creation, enrollment and "my courses"."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from journal.core.course_aggregator import list_user_courses
from journal.core.models import AuthKey, Enrollment, Role, Subject
from journal.db.courses_repository import (
    create_course,
    enroll_students,
    remove_students,
)
from journal.db.database import SQLITE_INT_MAX, SQLITE_INT_MIN
from journal.db.errors import NotFoundError, StorageError
from journal.web import responses as resp
from journal.web.auth import authorize
from journal.web.schemas import (
    CourseCreateRequest,
    CoursesResponse,
    CreateCourseResponse,
    EnrollmentsRequest,
    Envelope,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["courses"])

ROUTE_CREATE = "/courses/create"
ROUTE_STUDENTS = "/courses/{courseID}/modify/students"
ROUTE_LIST = "/courses"

POLICY = {
    ROUTE_CREATE: (Role.ADMIN,),
    ROUTE_STUDENTS: (Role.ADMIN,),
    ROUTE_LIST: (Role.ADMIN, Role.TEACHER, Role.STUDENT),
}


@router.post(
    ROUTE_CREATE,
    response_model=CreateCourseResponse,
    response_model_exclude_none=True,
)
async def create(
    request: Request, key: AuthKey = Depends(authorize(ROUTE_CREATE))
) -> CreateCourseResponse:
    """Create a course and assign teachers to its disciplines."""
    log = logger.bind(fn="web.routes.courses.create", user_id=key.id)

    try:
        req = await resp.decode_body(request, CourseCreateRequest)
    except (resp.BadRequestError, ValidationError) as e:
        log.error("courses.decode_failed", error=str(e))
        return CreateCourseResponse(**resp.error("failed to decode request"))

    subjects = [
        Subject(teacher_id=s.teacher_id, discipline_id=s.discipline_id)
        for s in req.subjects
    ]

    try:
        course_id = create_course(req.name, req.number, subjects)
    except StorageError as e:
        log.error("courses.save_failed", error=str(e))
        return CreateCourseResponse(**resp.error("failed to save course"))

    log.info("courses.created", course_id=course_id, subjects=len(subjects))
    return CreateCourseResponse(**resp.ok(), course_id=course_id)


async def _decode_enrollments(
    request: Request, log
) -> tuple[list[Enrollment], Envelope | None]:
    """Parse the courseID path parameter and the enrollments body.

    Returns the enrollments, or an error envelope to send back instead.
    Every entry must target the course named in the path.
    """
    raw_id = request.path_params.get("courseID", "")
    try:
        course_id = int(raw_id)
    except ValueError:
        course_id = None
    if course_id is None or not SQLITE_INT_MIN <= course_id <= SQLITE_INT_MAX:
        log.info("courses.unknown_course_id", course_id=raw_id[:32])
        return [], Envelope(**resp.error("course not found"))

    try:
        req = await resp.decode_body(request, EnrollmentsRequest)
    except (resp.BadRequestError, ValidationError) as e:
        log.error("courses.decode_failed", course_id=course_id, error=str(e))
        return [], Envelope(**resp.error("failed to decode request"))

    foreign = [e.course_id for e in req.enrollments if e.course_id != course_id]
    if foreign:
        log.error("enrollments.course_mismatch", course_id=course_id, foreign=foreign)
        return [], Envelope(**resp.error("enrollment course_id does not match"))

    enrollments = [
        Enrollment(course_id=e.course_id, student_id=e.student_id)
        for e in req.enrollments
    ]
    return enrollments, None


@router.post(ROUTE_STUDENTS, response_model=Envelope, response_model_exclude_none=True)
async def enroll(
    request: Request, key: AuthKey = Depends(authorize(ROUTE_STUDENTS))
) -> Envelope:
    """Enroll students into a course."""
    log = logger.bind(fn="web.routes.courses.enroll", user_id=key.id)

    enrollments, failure = await _decode_enrollments(request, log)
    if failure is not None:
        return failure

    try:
        enroll_students(enrollments)
    except StorageError as e:
        log.error("enrollments.insert_failed", error=str(e))
        return Envelope(**resp.error("failed to enroll students"))

    log.info("enrollments.created", count=len(enrollments))
    return Envelope(**resp.ok())


@router.delete(
    ROUTE_STUDENTS, response_model=Envelope, response_model_exclude_none=True
)
async def remove(
    request: Request, key: AuthKey = Depends(authorize(ROUTE_STUDENTS))
) -> Envelope:
    """Remove students from a course. Pairs that are not enrolled are ignored."""
    log = logger.bind(fn="web.routes.courses.remove", user_id=key.id)

    enrollments, failure = await _decode_enrollments(request, log)
    if failure is not None:
        return failure

    try:
        deleted = remove_students(enrollments)
    except StorageError as e:
        log.error("enrollments.delete_failed", error=str(e))
        return Envelope(**resp.error("failed to remove students"))

    log.info("enrollments.removed", requested=len(enrollments), deleted=deleted)
    return Envelope(**resp.ok())


@router.get(ROUTE_LIST, response_model=CoursesResponse, response_model_exclude_none=True)
async def my_courses(key: AuthKey = Depends(authorize(ROUTE_LIST))) -> CoursesResponse:
    """List the caller's courses with disciplines, teachers and grades."""
    log = logger.bind(
        fn="web.routes.courses.my_courses", user_id=key.id, role=key.role.value
    )

    try:
        views = list_user_courses(key)
    except NotFoundError as e:
        log.error("courses.list_missing_data", error=str(e))
        return CoursesResponse(**resp.error("course not found"))
    except StorageError as e:
        log.error("courses.list_failed", error=str(e))
        return CoursesResponse(**resp.error("failed to list courses"))

    return CoursesResponse(**resp.ok(), courses=[v.to_dict() for v in views])
