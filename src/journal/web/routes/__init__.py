"""Route handlers for Web API."""

from journal.web.routes.health import router as health_router
from journal.web.routes.courses import router as courses_router
from journal.web.routes.disciplines import router as disciplines_router
from journal.web.routes.exams import router as exams_router

__all__ = [
    "health_router",
    "courses_router",
    "disciplines_router",
    "exams_router",
]
