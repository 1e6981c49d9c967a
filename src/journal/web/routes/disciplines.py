"""Discipline catalog endpoint."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from journal.core.models import AuthKey, Role
from journal.db.courses_repository import list_disciplines
from journal.db.errors import StorageError
from journal.web import responses as resp
from journal.web.auth import authorize
from journal.web.schemas import DisciplineResponse, DisciplinesResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["disciplines"])

ROUTE_LIST = "/disciplines"

POLICY = {
    ROUTE_LIST: (Role.ADMIN, Role.TEACHER, Role.STUDENT),
}


@router.get(
    ROUTE_LIST, response_model=DisciplinesResponse, response_model_exclude_none=True
)
async def list_all(key: AuthKey = Depends(authorize(ROUTE_LIST))) -> DisciplinesResponse:
    """List every discipline, ordered by name."""
    log = logger.bind(fn="web.routes.disciplines.list_all", user_id=key.id)

    try:
        disciplines = list_disciplines()
    except StorageError as e:
        log.error("disciplines.list_failed", error=str(e))
        return DisciplinesResponse(**resp.error("failed to list disciplines"))

    return DisciplinesResponse(
        **resp.ok(),
        disciplines=[
            DisciplineResponse(discipline_id=d.id, discipline_name=d.name)
            for d in disciplines
        ],
    )
