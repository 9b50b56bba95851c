import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.config import get_settings
from leaveflow.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

DatabaseState = Literal["ok", "unreachable"]


class HealthResponse(BaseModel):
    """Service liveness plus the state of its database connection."""

    app: str
    status: Literal["ok", "degraded"]
    database: DatabaseState
    version: str
    environment: str


async def _probe_database(session: AsyncSession) -> DatabaseState:
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        return "unreachable"
    return "ok"


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report service status; the API is degraded when the database cannot be reached."""
    settings = get_settings()
    database = await _probe_database(session)
    return HealthResponse(
        app=settings.app_name,
        status="ok" if database == "ok" else "degraded",
        database=database,
        version=settings.app_version,
        environment=settings.environment,
    )
