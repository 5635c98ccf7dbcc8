"""
Liveness probe and integration status
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from datetime import datetime

from app.api.deps import UserContext, require_user
from app.config import get_settings
from app.connectors import get_transport
from app.models.base import ping
from app.scheduler import get_scheduled_jobs
from app.services.llm_service import LLMService
from app import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Public probe; 503 when the database does not answer"""
    database_ok = ping()
    body = {
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unreachable",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__,
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)


@router.get("/status")
async def get_status(ctx: UserContext = Depends(require_user)):
    """Which providers have credentials, and when background jobs run next"""
    settings = get_settings()
    return {
        "success": True,
        "data": {
            "app_name": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "integrations": {
                "whatsapp": get_transport("whatsapp").configured,
                "email": get_transport("email").configured,
                "llm": LLMService().is_available(),
            },
            "scheduler": {
                "enabled": settings.enable_scheduler,
                "jobs": get_scheduled_jobs(),
            },
        },
    }
