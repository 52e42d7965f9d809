"""
Application FastAPI : point d'entrée
==================================

Rôle
----
- Instancie l'app FastAPI, configure le CORS pour la vue locale,
- Monte les routeurs (REST + WebSocket),
- Configure le logging et liste les routes au démarrage.

Notes
-----
- ⚠️ Le middleware CORS doit être ajouté AVANT les include_router.
- Lancement local : `uvicorn spyfall.main:app --host 127.0.0.1 --port 8000`.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spyfall.config.settings import settings
from spyfall.routes.health import router as health_router
from spyfall.routes.scenarios import router as scenarios_router
from spyfall.routes.session import router as session_router
from spyfall.routes.websocket import router as ws_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# --- App FastAPI principale  ---
app = FastAPI(title=settings.APP_NAME)

# ===========================
# CORS (vue locale)
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===========================
# Montage des routers
# ===========================
app.include_router(health_router)
app.include_router(scenarios_router)
app.include_router(session_router)
app.include_router(ws_router)                  # WebSocket endpoint (/ws/session/{id})


# --- Racine utile pour "ping" simple (sans /health) ---
@app.get("/")
async def root():
    return {"ok": True, "service": "spyfall-backend"}


# --- Hook de démarrage ---
@app.on_event("startup")
async def list_routes():
    """Liste les routes (path + méthodes) dans les logs (diagnostic)."""
    logger.info("== Registered routes ==")
    for r in app.routes:
        methods = getattr(r, "methods", None)
        logger.info("%s %s", getattr(r, "path", "?"), sorted(methods) if methods else "")
