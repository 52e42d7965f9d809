"""
Configuration de l'application (Settings)
=========================================

Rôle
----
- Centraliser les paramètres du service local (nom, host/port, CORS) et les
  règles par défaut d'une partie (étiquette de l'espion, nombre d'espions,
  durée du timer, cadence des ticks).
- Les valeurs par défaut conviennent pour un usage local (un seul appareil).
- Les variables peuvent être surchargées via un fichier `.env` ou l'environnement.

Intégrations
------------
- `pydantic-settings` charge automatiquement les variables d'env et `.env`.
- Les services/routers importent `from spyfall.config.settings import settings`.

Exemples de `.env`
------------------
APP_NAME="Spyfall Local"
PORT=8080
IMPOSTOR_LABEL="Spy"
DEFAULT_TIMER_MINUTES=8
TICK_INTERVAL_SECONDS=1.0
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Nom du service (apparaît dans /health)
    APP_NAME: str = "Spyfall Backend"
    # Bind réseau (FastAPI / Uvicorn)
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Front local autorisé (la vue tourne sur le même appareil)
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Étiquette réservée au rôle d'imposteur (historiquement "Spia")
    IMPOSTOR_LABEL: str = "Spia"
    # Taille minimale du roster pour lancer une manche
    MIN_PLAYERS: int = 2
    # Nombre d'espions demandé si la vue n'en précise pas
    DEFAULT_IMPOSTOR_COUNT: int = 1
    # Durée par défaut du timer, en minutes
    DEFAULT_TIMER_MINUTES: int = 1
    # Intervalle entre deux ticks du timer (secondes) ; les tests le réduisent
    TICK_INTERVAL_SECONDS: float = 1.0

    # Paramétrage pydantic-settings :
    # - lit le fichier .env (UTF-8) si présent
    # - ignore les clés supplémentaires pour éviter les erreurs
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Instance unique importable partout : `settings`
settings = Settings()
