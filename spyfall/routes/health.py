"""
Module routes/health.py
Rôle:
- Endpoint de santé (service OK + sessions chargées).
"""
from fastapi import APIRouter

from spyfall.config.settings import settings
from spyfall.services.session_store import list_session_ids
from spyfall.services.ws_manager import WS

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health():
    """Renvoie un OK minimal avec le nom de service configuré."""
    return {
        "ok": True,
        "service": settings.APP_NAME,
        "sessions": len(list_session_ids()),
        "ws": WS.stats()["total"],
    }
