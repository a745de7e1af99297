from __future__ import annotations

import math

from .constants import PLATE_INCREMENT_KG

KG_TO_LB = 2.20462


def round_to_plate(value: float, step: float = PLATE_INCREMENT_KG) -> float:
    """
    Round a load to the nearest plate increment, halves rounding up.

    Non-finite input yields 0.0 so callers can chain this on estimates that
    may be missing.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return float(math.floor(number / step + 0.5) * step)


def kg_to_lb(kg: float) -> float:
    return round(kg * KG_TO_LB, 2)


def lb_to_kg(lb: float) -> float:
    return round(lb / KG_TO_LB, 2)
