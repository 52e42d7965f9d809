"""
Service: round_clock.py
Rôle:
- Ordonnanceur externe du timer de manche : une tâche asyncio qui appelle
  `SessionController.tick(generation)` une fois par intervalle.

Notes:
- La génération de session est capturée au démarrage : après un reset, les
  ticks de l'ancienne tâche sont ignorés par le contrôleur (no-op silencieux).
- La tâche s'arrête d'elle-même quand le timer quitte RUNNING (tick → None ou 0).
- `stop()` annule la tâche (reset / arrêt manuel) ; l'annulation n'est jamais
  une "interruption" de l'état, seulement de l'ordonnanceur.

API:
- await CLOCK.start()  → None | NotReady
- await CLOCK.stop()
- CLOCK.cancel()
- CLOCK.running
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from spyfall.config.settings import settings
from spyfall.models.session import SessionPhase
from spyfall.services.errors import NotReady
from spyfall.services.session_controller import SessionController

logger = logging.getLogger(__name__)


@dataclass
class RoundClock:
    controller: SessionController
    interval: float = field(default_factory=lambda: settings.TICK_INTERVAL_SECONDS)
    _task: Optional[asyncio.Task] = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return bool(self._task and not self._task.done())

    async def start(self) -> Optional[NotReady]:
        """Démarre le timer du contrôleur puis la boucle de ticks non bloquante."""
        error = self.controller.start_timer()
        if error is not None:
            return error

        await self.stop()
        if self.controller.phase != SessionPhase.ROUND_IN_PROGRESS:
            # timer de 0 s : expiré dès le démarrage, rien à ordonnancer
            return None

        generation = self.controller.generation
        interval = self.interval
        controller = self.controller

        async def _runner():
            try:
                while True:
                    await asyncio.sleep(interval)
                    remaining = controller.tick(generation)
                    if remaining is None or remaining <= 0:
                        return
            except asyncio.CancelledError:
                return

        self._task = asyncio.create_task(_runner())
        logger.info("round clock started (session=%s, generation=%s)", controller.session_id, generation)
        return None

    async def stop(self) -> None:
        """Annule la boucle de ticks si nécessaire."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("round clock stopped (session=%s)", self.controller.session_id)
        self._task = None

    def cancel(self) -> None:
        """Demande l'annulation sans attendre (appel depuis du code sync)."""
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("round clock cancelled (session=%s)", self.controller.session_id)
        self._task = None

    async def wait(self) -> None:
        """Attend la fin naturelle de la boucle (utile pour les tests)."""
        if self._task is not None:
            await self._task
