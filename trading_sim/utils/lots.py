"""Broker lot sizing helpers."""

from __future__ import annotations
import math


def round_volume(volume: float, step: float = 0.01, min_volume: float = 0.01) -> float:
    """Round down to lot step; return 0 if below min_volume."""
    if volume <= 0:
        return 0.0
    rounded = math.floor(volume / step + 1e-9) * step
    if rounded < min_volume:
        return 0.0
    return round(rounded, 8)


def broker_volume(risk_amount: float, price: float) -> float:
    """Lots for a bridge order: risk amount over 1% of price, in 0.01 lots."""
    if price <= 0:
        return 0.0
    return round_volume(risk_amount / (price * 0.01))
