"""
Utils: time_utils.py
Rôle:
- Conversions de durée pour le timer de manche.

Comportement:
- `minutes_to_seconds(m)` → durée en secondes (bornée à 0) ; la vue
  saisit le timer en minutes.
- `format_time(s)` → "m:ss" (ex: 75 → "1:15", 0 → "0:00").
"""
from typing import Union


def minutes_to_seconds(minutes: Union[int, float]) -> int:
    return max(0, int(round(float(minutes) * 60)))


def format_time(seconds: int) -> str:
    """Rend une durée en secondes sous la forme `m:ss` (valeurs négatives → 0)."""
    total = max(0, int(seconds))
    m, sec = divmod(total, 60)
    return f"{m}:{sec:02d}"
