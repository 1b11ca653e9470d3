"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(request: Request, db: Session = Depends(get_db)) -> HealthResponse:
    """
    Return service health status and whether the user/session store is reachable.
    Used by load balancers and monitoring.
    """
    return HealthResponse(
        status="ok",
        environment=request.app.state.settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
    )
