"""Exponential smoothing of presentation values toward their per-tick targets."""

from typing import Optional

from ..config import DEFAULT_SMOOTHING_FACTOR


def smooth_toward(current: float, target: float, factor: Optional[float] = None) -> float:
    """Moves ``current`` a fraction ``factor`` of the way to ``target``."""
    factor = factor if factor is not None else DEFAULT_SMOOTHING_FACTOR
    if not 0.0 <= factor <= 1.0:
        raise ValueError(f"Smoothing factor {factor} outside [0, 1]")
    return current + (target - current) * factor


def smooth_opacity(current: float,
                   target: float,
                   factor: Optional[float] = None,
                   cap: Optional[float] = None) -> float:
    """
    Smoothed opacity, optionally held below a ceiling.

    With a ``cap`` the current value is capped before smoothing and the
    result afterwards, as for labels (LABEL_OPACITY_CAP) and orbit lines
    (ORBIT_LINE_OPACITY_CAP).
    """
    if cap is not None:
        current = min(current, cap)
    value = smooth_toward(current, target, factor)
    if cap is not None:
        value = min(value, cap)
    return min(max(value, 0.0), 1.0)
