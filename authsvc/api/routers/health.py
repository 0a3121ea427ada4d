from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from authsvc.api.deps import get_auth_repository
from authsvc.api.schemas.auth import HealthResponse
from authsvc.application.ports.auth_port import AuthPort
from authsvc.shared.config import get_settings


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(auth_port: AuthPort = Depends(get_auth_repository)):
    try:
        storage = "connected" if auth_port.ping() else "disconnected"
    except SQLAlchemyError:
        logger.warning("health: storage_ping_failed", exc_info=True)
        storage = "disconnected"
    return HealthResponse(
        message="Auth API is running",
        timestamp=datetime.now(timezone.utc),
        environment=get_settings().app_env,
        storage=storage,
    )
