"""
Distance-based visibility and label scaling.

``attenuate`` maps the observer's position into an opacity target for a body
and a scale target for its label. It is stateless: smoothing toward the
targets belongs to the presentation layer (see ``orrery.view.smoothing``).
"""

import logging
from typing import NamedTuple, Optional, Sequence

import numpy as np

from ..config import (
    DEFAULT_AU_SCALE,
    LABEL_MAX_CAMERA_DISTANCE,
    LABEL_MAX_SCALE,
    LABEL_MIN_CAMERA_DISTANCE,
    LABEL_MIN_SCALE,
    LABEL_OFFSET_DIVISOR,
    OPACITY_MAX_DISTANCE_FACTOR,
    OPACITY_MIN_DISTANCE_FACTOR,
    SELECTION_OPACITY_THRESHOLD,
    VISIBILITY_OPACITY_THRESHOLD
)
from ..exceptions import DegenerateThresholdError

logger = logging.getLogger(__name__)


class Attenuation(NamedTuple):
    """Target presentation values for one body."""
    opacity: float
    label_scale: float


def linear_ramp(value: float, near: float, far: float) -> float:
    """
    Fraction of the way from ``near`` to ``far``, clamped to [0, 1].

    Raises:
        DegenerateThresholdError: If ``far <= near``.
    """
    span = far - near
    if span <= 0.0:
        raise DegenerateThresholdError(f"Thresholds collapse: near={near}, far={far}")
    return float(np.clip((value - near) / span, 0.0, 1.0))


def fade_opacity(distance: float, min_distance: float, max_distance: float) -> float:
    """
    Opacity for an observer distance.

    1 at or below ``min_distance``, 0 at or beyond ``max_distance``, linear in
    between. Collapsed thresholds fall back to a step at ``min_distance``.
    """
    try:
        return 1.0 - linear_ramp(distance, min_distance, max_distance)
    except DegenerateThresholdError as e:
        logger.debug(f"Opacity fade degenerate ({e}); using step function")
        return 1.0 if distance <= min_distance else 0.0


def label_scale(camera_distance: float,
                min_distance: Optional[float] = None,
                max_distance: Optional[float] = None,
                min_scale: Optional[float] = None,
                max_scale: Optional[float] = None) -> float:
    """Label scale interpolated between the configured camera-distance thresholds."""
    min_distance = min_distance if min_distance is not None else LABEL_MIN_CAMERA_DISTANCE
    max_distance = max_distance if max_distance is not None else LABEL_MAX_CAMERA_DISTANCE
    min_scale = min_scale if min_scale is not None else LABEL_MIN_SCALE
    max_scale = max_scale if max_scale is not None else LABEL_MAX_SCALE

    try:
        fraction = linear_ramp(camera_distance, min_distance, max_distance)
    except DegenerateThresholdError as e:
        logger.debug(f"Label scale degenerate ({e}); using step function")
        fraction = 0.0 if camera_distance <= min_distance else 1.0

    return min_scale + fraction * (max_scale - min_scale)


def attenuate(body_position: Sequence[float],
              observer_position: Sequence[float],
              semi_major_axis: float,
              au_scale: Optional[float] = None,
              min_factor: Optional[float] = None,
              max_factor: Optional[float] = None) -> Attenuation:
    """
    Computes the opacity and label-scale targets for a body.

    Args:
        body_position: Body's inertial position (world units).
        observer_position: Observer/camera position (world units), read-only.
        semi_major_axis: Body's semi-major axis (AU).
        au_scale: World units per AU. Uses DEFAULT_AU_SCALE if None.
        min_factor: Fully visible below a * au_scale * min_factor.
            Uses OPACITY_MIN_DISTANCE_FACTOR if None.
        max_factor: Fully transparent beyond a * au_scale * max_factor.
            Uses OPACITY_MAX_DISTANCE_FACTOR if None.

    Returns:
        Attenuation(opacity in [0, 1], label_scale).
    """
    au_scale = au_scale if au_scale is not None else DEFAULT_AU_SCALE
    min_factor = min_factor if min_factor is not None else OPACITY_MIN_DISTANCE_FACTOR
    max_factor = max_factor if max_factor is not None else OPACITY_MAX_DISTANCE_FACTOR

    body = np.asarray(body_position, dtype=float)
    observer = np.asarray(observer_position, dtype=float)

    distance = float(np.linalg.norm(observer - body))
    reference = semi_major_axis * au_scale

    opacity = fade_opacity(distance, reference * min_factor, reference * max_factor)
    scale = label_scale(float(np.linalg.norm(observer)))

    return Attenuation(opacity=opacity, label_scale=scale)


def label_offset(body_position: Sequence[float],
                 semi_major_axis: float,
                 au_scale: Optional[float] = None) -> np.ndarray:
    """Label offset from the body, along its radial direction, a * au_scale / LABEL_OFFSET_DIVISOR long."""
    au_scale = au_scale if au_scale is not None else DEFAULT_AU_SCALE

    position = np.asarray(body_position, dtype=float)
    norm = np.linalg.norm(position)
    if norm == 0.0:
        return np.zeros(3)
    return position / norm * (semi_major_axis * au_scale / LABEL_OFFSET_DIVISOR)


def is_visible(opacity: float) -> bool:
    return opacity > VISIBILITY_OPACITY_THRESHOLD


def is_selectable(opacity: float) -> bool:
    return opacity > SELECTION_OPACITY_THRESHOLD
