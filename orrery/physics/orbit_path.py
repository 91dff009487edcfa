"""
Orbit trace sampling.

Samples the geometric shape of an orbit at its epoch elements, for display.
The result is a snapshot: regenerate it when the epoch elements change.
"""

import logging
from typing import Optional

import numpy as np

from .elements import OrbitalElements
from .kepler import OrbitRegime, solve_kepler_array
from .propagation import anomaly_to_polar, perifocal_to_inertial
from ..config import (
    DEFAULT_AU_SCALE,
    HYPERBOLIC_PATH_MEAN_ANOMALY_STEP,
    HYPERBOLIC_PATH_SEGMENTS,
    KEPLER_LOGGING_PRECISION,
    ORBIT_PATH_SEGMENTS
)

logger = logging.getLogger(__name__)


def path_mean_anomalies(regime: OrbitRegime,
                        segment_count: Optional[int] = None,
                        open_segment_count: Optional[int] = None,
                        open_step: Optional[float] = None) -> np.ndarray:
    """
    Mean anomalies swept by the orbit path.

    Elliptical orbits get ``segment_count + 1`` samples uniformly over
    [0, 2*pi], so the last point closes the loop. Open orbits get
    ``open_segment_count + 1`` samples symmetric about periapsis.
    """
    segment_count = segment_count if segment_count is not None else ORBIT_PATH_SEGMENTS
    open_segment_count = open_segment_count if open_segment_count is not None else HYPERBOLIC_PATH_SEGMENTS
    open_step = open_step if open_step is not None else HYPERBOLIC_PATH_MEAN_ANOMALY_STEP

    if segment_count < 1 or open_segment_count < 1:
        raise ValueError("Orbit path segment counts must be positive")

    if regime is OrbitRegime.ELLIPTICAL:
        idx = np.arange(segment_count + 1)
        return 2.0 * np.pi * idx / segment_count

    idx = np.arange(open_segment_count + 1)
    return (idx - open_segment_count / 2.0) * open_step


def sample_orbit_path(elements: OrbitalElements,
                      segment_count: Optional[int] = None,
                      au_scale: Optional[float] = None) -> np.ndarray:
    """
    Samples a polyline approximating the orbit at the given (epoch) elements.

    Samples for which Kepler's equation fails are skipped, so the path
    degrades gracefully instead of aborting.

    Args:
        elements: Epoch orbital elements (not the time-drifted live state).
        segment_count: Segments of a closed elliptical loop. Uses
            ORBIT_PATH_SEGMENTS if None. Open orbits use HYPERBOLIC_PATH_SEGMENTS.
        au_scale: World units per AU. Uses DEFAULT_AU_SCALE if None.

    Returns:
        Array of shape (N, 3) of inertial positions in world units.
    """
    au_scale = au_scale if au_scale is not None else DEFAULT_AU_SCALE

    regime = elements.regime
    angles = elements.to_radians()
    e = elements.eccentricity

    M = path_mean_anomalies(regime, segment_count)
    E, converged = solve_kepler_array(M, e)

    n_skipped = int(np.sum(~converged))
    if n_skipped:
        logger.warning(f"Skipped {n_skipped}/{len(M)} orbit path samples that did not converge "
                       f"(e={e:.{KEPLER_LOGGING_PRECISION}f}, M={M[~converged]})")

    nu, r = anomaly_to_polar(E[converged], e, elements.semi_major_axis, regime)
    x_orb = r * np.cos(nu)
    y_orb = r * np.sin(nu)

    return perifocal_to_inertial(x_orb, y_orb, angles) * au_scale
