"""Exam endpoints: sign-up and grading.

Both endpoints validate their body field by field and answer with a
validation envelope ("field X is a required field, ...") on failure.
"""

from __future__ import annotations

from datetime import date

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from journal.core.models import AuthKey, Role
from journal.db.courses_repository import assignment_id
from journal.db.errors import AssignmentNotFoundError, ExamNotFoundError, StorageError
from journal.db.exams_repository import exam_grade, exam_id, exam_sign_up
from journal.web import responses as resp
from journal.web.auth import authorize
from journal.web.schemas import (
    Envelope,
    ExamGradeRequest,
    ExamSignUpRequest,
    ExamSignUpResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/exams", tags=["exams"])

ROUTE_SIGN_UP = "/exams/sign-up"
ROUTE_GRADE = "/exams/grade"

POLICY = {
    ROUTE_SIGN_UP: (Role.STUDENT, Role.TEACHER),
    ROUTE_GRADE: (Role.TEACHER,),
}


@router.post(
    "/sign-up", response_model=ExamSignUpResponse, response_model_exclude_none=True
)
async def sign_up(
    request: Request, key: AuthKey = Depends(authorize(ROUTE_SIGN_UP))
) -> ExamSignUpResponse:
    """Sign up for an exam.

    Students always sign themselves up. Teachers sign up a student given by
    `student_id` for one of their own assignments.
    """
    log = logger.bind(fn="web.routes.exams.sign_up", user_id=key.id)

    try:
        req = await resp.decode_body(request, ExamSignUpRequest)
    except resp.BadRequestError as e:
        log.error("exams.decode_failed", error=str(e))
        return ExamSignUpResponse(**resp.error("failed to decode request"))
    except ValidationError as e:
        log.error("exams.invalid_request", error=str(e))
        return ExamSignUpResponse(**resp.validation_error(e))

    if key.role is Role.STUDENT:
        if req.student_id is not None and req.student_id != key.id:
            log.error("exams.sign_up_other_student", student_id=req.student_id)
            return ExamSignUpResponse(
                **resp.error("students can only sign up themselves")
            )
        student_id = key.id
    elif key.role is Role.TEACHER:
        if req.student_id is None:
            return ExamSignUpResponse(
                **resp.error("field student_id is a required field")
            )
        if req.teacher_id != key.id:
            log.error("exams.sign_up_other_teacher", teacher_id=req.teacher_id)
            return ExamSignUpResponse(**resp.error("assignment not found"))
        student_id = req.student_id
    else:
        raise ValueError(f"unhandled role: {key.role!r}")

    log = log.bind(
        student_id=student_id,
        course_id=req.course_id,
        discipline_id=req.discipline_id,
        teacher_id=req.teacher_id,
    )

    try:
        assignment = assignment_id(req.course_id, req.discipline_id, req.teacher_id)
    except AssignmentNotFoundError as e:
        log.error("exams.assignment_lookup_failed", error=str(e))
        return ExamSignUpResponse(**resp.error("assignment not found"))
    except StorageError as e:
        log.error("exams.assignment_lookup_failed", error=str(e))
        return ExamSignUpResponse(**resp.error("failed to sign up for the exam"))

    try:
        new_exam_id = exam_sign_up(student_id, assignment, req.exam_date)
    except StorageError as e:
        log.error("exams.sign_up_failed", error=str(e))
        return ExamSignUpResponse(**resp.error("failed to sign up for the exam"))

    log.info("exams.signed_up", exam_id=new_exam_id)
    return ExamSignUpResponse(**resp.ok(), exam_id=new_exam_id)


@router.post("/grade", response_model=Envelope, response_model_exclude_none=True)
async def grade(
    request: Request, key: AuthKey = Depends(authorize(ROUTE_GRADE))
) -> Envelope:
    """Grade a student's exam on one of the caller's assignments.

    Grading an already graded exam replaces the previous grade.
    """
    log = logger.bind(fn="web.routes.exams.grade", user_id=key.id)

    try:
        req = await resp.decode_body(request, ExamGradeRequest)
    except resp.BadRequestError as e:
        log.error("exams.decode_failed", error=str(e))
        return Envelope(**resp.error("failed to decode request"))
    except ValidationError as e:
        log.error("exams.invalid_request", error=str(e))
        return Envelope(**resp.validation_error(e))

    log = log.bind(
        student_id=req.student_id,
        course_id=req.course_id,
        discipline_id=req.discipline_id,
    )

    try:
        assignment = assignment_id(req.course_id, req.discipline_id, key.id)
        graded_exam = exam_id(req.student_id, assignment, req.exam_date)
        exam_grade(graded_exam, key.id, req.grade, date.today())
    except AssignmentNotFoundError as e:
        log.error("exams.assignment_lookup_failed", error=str(e))
        return Envelope(**resp.error("assignment not found"))
    except ExamNotFoundError as e:
        log.error("exams.exam_lookup_failed", error=str(e))
        return Envelope(**resp.error("exam not found"))
    except StorageError as e:
        log.error("exams.grade_failed", error=str(e))
        return Envelope(**resp.error("failed to grade the exam"))

    log.info("exams.graded", exam_id=graded_exam, grade=req.grade)
    return Envelope(**resp.ok())
