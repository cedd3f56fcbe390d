"""Health domain router.

Health check endpoint for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from opsdesk.core.constants import Routes
from opsdesk.core.deps import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix=Routes.HEALTH.prefix, tags=[Routes.HEALTH.tag])


@router.get("")
async def health(session: SessionDep):
    """Liveness plus a ``SELECT 1`` against the profiles database."""
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Health check database error: %s", e)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "error"},
        )
    return {"status": "ok", "database": "ok"}
