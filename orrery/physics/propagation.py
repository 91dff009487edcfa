"""
Keplerian propagation from orbital elements to inertial-frame positions.

Pipeline per call:
    1. Mean anomaly at the simulated time (M = M0 + n*t)
    2. Hyperbolic sign convention (M takes the sign of t)
    3. Kepler solve (ConvergenceError propagates to the caller)
    4. True anomaly and radius for the orbit regime
    5. Orbital-plane coordinates
    6. Rotation into the inertial frame by (Omega, i, omega)
    7. Scaling from AU to world units
    8. Orbital orientation as a scipy Rotation

The hyperbolic sign convention in step 2 is a modelling choice: it makes a
hyperbolic body approach periapsis for t < 0 and recede from it for t > 0,
symmetrically, whatever its mean anomaly at epoch.

Dependencies:
    numpy: Vectorized trigonometry (shared with the orbit path sampler)
    scipy: Euler-angle composition of the orbital orientation
"""

import logging
import math
from typing import NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.spatial.transform import Rotation

from .elements import ElementsRad, OrbitalElements
from .kepler import OrbitRegime, solve_kepler
from ..config import DEFAULT_AU_SCALE, ORBITAL_EULER_ORDER

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


class PropagationResult(NamedTuple):
    """Instantaneous state of a body produced by ``propagate``."""
    position: np.ndarray          # inertial position, world units
    orbital_plane: np.ndarray     # (x_orb, y_orb) in AU, before rotation
    true_anomaly: float           # radians
    radius: float                 # AU
    mean_anomaly: float           # radians
    eccentric_anomaly: float      # radians (parabolic anomaly D for e ~ 1)
    orientation: Rotation         # composed (i, Omega, omega) rotation


def mean_anomaly_at(mean_anomaly_at_epoch_rad: float,
                    mean_motion: float,
                    elapsed_simulated_seconds: float,
                    regime: OrbitRegime) -> float:
    """Mean anomaly at the simulated time, with the hyperbolic sign convention applied."""
    M = mean_anomaly_at_epoch_rad + mean_motion * elapsed_simulated_seconds

    if regime is OrbitRegime.HYPERBOLIC and elapsed_simulated_seconds != 0:
        M = math.copysign(abs(M), elapsed_simulated_seconds)

    return M


def anomaly_to_polar(anomaly: ArrayLike,
                     eccentricity: float,
                     semi_major_axis: float,
                     regime: OrbitRegime) -> Tuple[ArrayLike, ArrayLike]:
    """
    Converts the solved anomaly into true anomaly and radius.

    Args:
        anomaly: Eccentric, parabolic (D) or hyperbolic anomaly in radians.
        eccentricity: Orbital eccentricity.
        semi_major_axis: Semi-major axis in AU (periapsis distance when parabolic).
        regime: Orbit regime the anomaly was solved for.

    Returns:
        Tuple (true_anomaly_rad, radius_au).
    """
    e = eccentricity
    a = semi_major_axis

    if regime is OrbitRegime.ELLIPTICAL:
        nu = 2.0 * np.arctan2(np.sqrt(1.0 + e) * np.sin(anomaly / 2.0),
                              np.sqrt(1.0 - e) * np.cos(anomaly / 2.0))
        r = a * (1.0 - e * np.cos(anomaly))
    elif regime is OrbitRegime.PARABOLIC:
        nu = 2.0 * np.arctan(anomaly)
        r = a * (1.0 + anomaly ** 2)
    elif regime is OrbitRegime.HYPERBOLIC:
        nu = 2.0 * np.arctan2(np.sqrt(e + 1.0) * np.sinh(anomaly / 2.0),
                              np.sqrt(e - 1.0) * np.cosh(anomaly / 2.0))
        r = a * (e * np.cosh(anomaly) - 1.0)
    else:
        raise ValueError(f"Unknown orbit regime: {regime}")

    return nu, r


def perifocal_to_inertial(x_orb: ArrayLike, y_orb: ArrayLike, angles: ElementsRad) -> np.ndarray:
    """
    Rotates orbital-plane coordinates into the inertial frame.

    Returns an array of shape (3,) for scalar input or (N, 3) for arrays.
    """
    cos_O = np.cos(angles.longitude_of_ascending_node)
    sin_O = np.sin(angles.longitude_of_ascending_node)
    cos_i = np.cos(angles.inclination)
    sin_i = np.sin(angles.inclination)
    cos_w = np.cos(angles.argument_of_periapsis)
    sin_w = np.sin(angles.argument_of_periapsis)

    x = (cos_O * cos_w - sin_O * sin_w * cos_i) * x_orb + (-cos_O * sin_w - sin_O * cos_w * cos_i) * y_orb
    y = (sin_O * cos_w + cos_O * sin_w * cos_i) * x_orb + (-sin_O * sin_w + cos_O * cos_w * cos_i) * y_orb
    z = sin_w * sin_i * x_orb + cos_w * sin_i * y_orb

    return np.stack([x, y, z], axis=-1)


def orbital_orientation(angles: ElementsRad) -> Rotation:
    """Rotation composed of (i, Omega, omega) as intrinsic Euler angles in ORBITAL_EULER_ORDER."""
    return Rotation.from_euler(
        ORBITAL_EULER_ORDER,
        [angles.inclination, angles.longitude_of_ascending_node, angles.argument_of_periapsis]
    )


def rotate_spin_axis(axis: Sequence[float], orientation: Rotation) -> np.ndarray:
    """Expresses a body-frame spin axis in the inertial frame as a unit vector."""
    axis = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(axis)
    if norm == 0.0:
        return np.zeros(3)
    return orientation.apply(axis / norm)


def propagate(elements: OrbitalElements,
              mean_motion: float,
              elapsed_simulated_seconds: float,
              au_scale: Optional[float] = None) -> PropagationResult:
    """
    Derives the instantaneous inertial position of a body.

    Args:
        elements: Current (drifted) orbital elements.
        mean_motion: Mean motion in rad/s (see ``elements.mean_motion``).
        elapsed_simulated_seconds: Simulated time since epoch.
        au_scale: World units per AU. Uses DEFAULT_AU_SCALE if None.

    Returns:
        PropagationResult with position, anomalies and orientation.

    Raises:
        ConvergenceError: If Kepler's equation cannot be solved. The caller
            keeps its previous position for this tick.
    """
    au_scale = au_scale if au_scale is not None else DEFAULT_AU_SCALE

    regime = elements.regime
    angles = elements.to_radians()

    M = mean_anomaly_at(angles.mean_anomaly_at_epoch, mean_motion, elapsed_simulated_seconds, regime)
    E = solve_kepler(M, elements.eccentricity)

    nu, r = anomaly_to_polar(E, elements.eccentricity, elements.semi_major_axis, regime)
    nu = float(nu)
    r = float(r)

    orbital_plane = np.array([r * math.cos(nu), r * math.sin(nu)])
    position = perifocal_to_inertial(orbital_plane[0], orbital_plane[1], angles) * au_scale

    return PropagationResult(
        position=position,
        orbital_plane=orbital_plane,
        true_anomaly=nu,
        radius=r,
        mean_anomaly=M,
        eccentric_anomaly=E,
        orientation=orbital_orientation(angles),
    )
