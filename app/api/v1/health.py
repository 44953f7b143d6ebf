"""Health probe: store connectivity and audit writer state."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.audit import audit_dispatcher

router = APIRouter()

API_VERSION = "0.1.0"


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        version=API_VERSION,
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        audit="running" if audit_dispatcher.running else "stopped",
    )
