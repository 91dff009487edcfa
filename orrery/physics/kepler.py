"""
Kepler's equation for elliptical, parabolic and hyperbolic orbits.

This module converts a mean anomaly into the auxiliary anomaly that
parameterizes the body's position on its conic, with vectorized numpy
iterations and explicit convergence reporting.

Functions:
    classify_regime: Classifies an eccentricity into an OrbitRegime
    regime_eccentricity_bounds: Eccentricity interval belonging to one regime
    solve_kepler: Solves Kepler's equation, raising ConvergenceError on failure
    solve_kepler_array: Vectorized solve returning a per-sample convergence mask
    kepler_residual: Evaluates the regime's Kepler equation at a candidate anomaly

Dependencies:
    numpy: Vectorized numerical operations
    logging: Convergence diagnostics
"""

import logging
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from ..config import (
    DEFAULT_KEPLER_TOLERANCE,
    DEFAULT_KEPLER_MAX_ITERATIONS,
    HIGH_ECCENTRICITY_THRESHOLD,
    HIGH_E_COEFFICIENT,
    HYPERBOLIC_GUESS_OFFSET,
    KEPLER_LOGGING_PRECISION,
    MIN_ECCENTRICITY,
    PARABOLIC_ECCENTRICITY_TOLERANCE
)
from ..exceptions import ConfigurationError, ConvergenceError

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi


class OrbitRegime(Enum):
    """Conic section traced by a body, derived from its eccentricity."""
    ELLIPTICAL = "elliptical"
    PARABOLIC = "parabolic"
    HYPERBOLIC = "hyperbolic"


def classify_regime(eccentricity: float,
                    parabolic_tol: Optional[float] = None) -> OrbitRegime:
    """
    Classifies an eccentricity into its orbit regime.

    Eccentricities within ``parabolic_tol`` of 1 are treated as parabolic so
    that the elliptical and hyperbolic formulas never see their singular
    ``sqrt(1 - e)`` / ``sqrt(e - 1)`` factors.

    Args:
        eccentricity: Orbital eccentricity (>= 0).
        parabolic_tol: Half-width of the parabolic band around e = 1.
            Uses PARABOLIC_ECCENTRICITY_TOLERANCE if None.

    Returns:
        The OrbitRegime for this eccentricity.

    Raises:
        ConfigurationError: If the eccentricity is negative or not finite.
    """
    parabolic_tol = parabolic_tol if parabolic_tol is not None else PARABOLIC_ECCENTRICITY_TOLERANCE

    if not np.isfinite(eccentricity) or eccentricity < MIN_ECCENTRICITY:
        raise ConfigurationError(f"Eccentricity {eccentricity} outside valid domain [{MIN_ECCENTRICITY}, inf)")

    if abs(eccentricity - 1.0) <= parabolic_tol:
        return OrbitRegime.PARABOLIC
    if eccentricity < 1.0:
        return OrbitRegime.ELLIPTICAL
    return OrbitRegime.HYPERBOLIC


def regime_eccentricity_bounds(regime: OrbitRegime,
                               parabolic_tol: Optional[float] = None) -> Tuple[float, float]:
    """
    Closed eccentricity interval that classifies as ``regime``.

    The band edges are stepped one ulp toward the regime so that clamping an
    eccentricity into these bounds never changes its classification.
    """
    parabolic_tol = parabolic_tol if parabolic_tol is not None else PARABOLIC_ECCENTRICITY_TOLERANCE

    lower_edge = 1.0 - parabolic_tol
    upper_edge = 1.0 + parabolic_tol

    if regime is OrbitRegime.ELLIPTICAL:
        return MIN_ECCENTRICITY, float(np.nextafter(lower_edge, 0.0))
    if regime is OrbitRegime.PARABOLIC:
        return float(np.nextafter(lower_edge, 1.0)), float(np.nextafter(upper_edge, 1.0))
    return float(np.nextafter(upper_edge, np.inf)), np.inf


def kepler_residual(anomaly: Union[float, np.ndarray],
                    mean_anomaly: Union[float, np.ndarray],
                    eccentricity: float) -> Union[float, np.ndarray]:
    """
    Evaluates the regime's Kepler equation f(E) = 0 at a candidate anomaly.

    - Elliptical: E - e*sin(E) - M
    - Parabolic (Barker): D + D**3/3 - M
    - Hyperbolic: e*sinh(E) - E - M
    """
    regime = classify_regime(eccentricity)
    if regime is OrbitRegime.ELLIPTICAL:
        return anomaly - eccentricity * np.sin(anomaly) - mean_anomaly
    if regime is OrbitRegime.PARABOLIC:
        return anomaly + anomaly ** 3 / 3.0 - mean_anomaly
    return eccentricity * np.sinh(anomaly) - anomaly - mean_anomaly


def _newton(E: np.ndarray,
            M: np.ndarray,
            e: float,
            f,
            f_prime,
            tol: float,
            max_iter: int) -> Tuple[np.ndarray, np.ndarray]:
    # Tolerance scales with |M| so large hyperbolic anomalies stay reachable
    scale = np.maximum(1.0, np.abs(M))

    with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
        for _ in range(max_iter):
            residual = f(E, M, e)
            converged = np.abs(residual) < tol * scale
            if np.all(converged):
                break
            E = np.where(converged, E, E - residual / f_prime(E, e))
        else:
            residual = f(E, M, e)
            converged = np.abs(residual) < tol * scale

    converged &= np.isfinite(E)
    return E, converged


def _elliptic_f(E, M, e):
    return E - e * np.sin(E) - M


def _elliptic_f_prime(E, e):
    return 1.0 - e * np.cos(E)


def _hyperbolic_f(E, M, e):
    return e * np.sinh(E) - E - M


def _hyperbolic_f_prime(E, e):
    return e * np.cosh(E) - 1.0


def _solve_elliptic(M: np.ndarray, e: float, tol: float, max_iter: int) -> Tuple[np.ndarray, np.ndarray]:
    # Reduce M to [-pi, pi] and restore the whole revolutions afterwards
    revolutions = np.round(M / TWO_PI)
    M_reduced = M - revolutions * TWO_PI

    if e < HIGH_ECCENTRICITY_THRESHOLD:
        E = M_reduced.copy()
    else:
        E = M_reduced + HIGH_E_COEFFICIENT * e * np.sign(np.sin(M_reduced))

    E, converged = _newton(E, M_reduced, e, _elliptic_f, _elliptic_f_prime, tol, max_iter)
    return E + revolutions * TWO_PI, converged


def _solve_hyperbolic(M: np.ndarray, e: float, tol: float, max_iter: int) -> Tuple[np.ndarray, np.ndarray]:
    E = np.sign(M) * np.log(2.0 * np.abs(M) / e + HYPERBOLIC_GUESS_OFFSET)
    return _newton(E, M, e, _hyperbolic_f, _hyperbolic_f_prime, tol, max_iter)


def _solve_parabolic(M: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # Barker's equation D + D^3/3 = M has the closed form D = s - 1/s.
    # Solved on |M| to avoid cancellation for negative anomalies.
    abs_M = np.abs(M)
    s = np.cbrt(1.5 * abs_M + np.sqrt(2.25 * abs_M ** 2 + 1.0))
    D = np.sign(M) * (s - 1.0 / s)
    return D, np.isfinite(D)


def solve_kepler_array(M_rad: Union[float, np.ndarray],
                       e: float,
                       tol: Optional[float] = None,
                       max_iter: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized Kepler solve that reports convergence per sample.

    Args:
        M_rad: Mean anomaly in radians, scalar or array.
        e: Eccentricity (>= 0).
        tol: Residual tolerance. Uses DEFAULT_KEPLER_TOLERANCE if None.
        max_iter: Iteration cap. Uses DEFAULT_KEPLER_MAX_ITERATIONS if None.

    Returns:
        Tuple (anomaly, converged) of arrays shaped like M_rad. ``anomaly`` is
        the eccentric anomaly (elliptical), the parabolic anomaly
        D = tan(nu/2) (parabolic) or the hyperbolic anomaly (hyperbolic).
        Entries with ``converged == False`` must not be used.

    Raises:
        ConvergenceError: If the eccentricity is not a finite number.
        ConfigurationError: If the eccentricity is negative.
    """
    tol = tol if tol is not None else DEFAULT_KEPLER_TOLERANCE
    max_iter = max_iter if max_iter is not None else DEFAULT_KEPLER_MAX_ITERATIONS

    if not np.isfinite(e):
        raise ConvergenceError(f"Eccentricity is not a finite number: {e}", eccentricity=e)

    regime = classify_regime(e)

    M = np.array(M_rad, dtype=float, ndmin=1)
    original_shape = np.shape(M_rad)
    M = M.flatten()

    finite = np.isfinite(M)
    M_safe = np.where(finite, M, 0.0)

    if regime is OrbitRegime.ELLIPTICAL:
        E, converged = _solve_elliptic(M_safe, e, tol, max_iter)
    elif regime is OrbitRegime.PARABOLIC:
        E, converged = _solve_parabolic(M_safe)
    else:
        E, converged = _solve_hyperbolic(M_safe, e, tol, max_iter)

    converged &= finite

    n_failed = int(np.sum(~converged))
    if n_failed:
        logger.debug(f"Kepler solve failed for {n_failed}/{len(M)} samples "
                     f"(e={e:.{KEPLER_LOGGING_PRECISION}f}, regime={regime.value})")

    return E.reshape(original_shape), converged.reshape(original_shape)


def solve_kepler(M_rad: Union[float, np.ndarray],
                 e: float,
                 tol: Optional[float] = None,
                 max_iter: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Solves Kepler's equation for the anomaly matching the orbit regime.

    - Elliptical: M = E - e*sin(E), Newton-Raphson from E0 = M (shifted by
      0.85*e*sign(sin M) for high eccentricities).
    - Hyperbolic: M = e*sinh(E) - E, Newton-Raphson from
      E0 = sign(M)*ln(2|M|/e + 1.8).
    - Parabolic: Barker's equation M = D + D**3/3, closed form.

    The function has no hidden state: its result depends only on the inputs
    and the tolerance / iteration-cap configuration.

    Args:
        M_rad: Mean anomaly in radians. Can be a scalar or numpy array.
        e: Eccentricity of the orbit (>= 0).
        tol: Residual tolerance. Uses DEFAULT_KEPLER_TOLERANCE if None.
        max_iter: Maximum number of iterations. Uses DEFAULT_KEPLER_MAX_ITERATIONS if None.

    Returns:
        The anomaly in radians. Python float for scalar input, array otherwise.

    Raises:
        ConvergenceError: If any sample fails to converge within the iteration
            cap or an input is not a finite number. Nothing is substituted.
        ConfigurationError: If the eccentricity is negative.
    """
    input_is_scalar = np.isscalar(M_rad)

    E, converged = solve_kepler_array(M_rad, e, tol=tol, max_iter=max_iter)

    if not np.all(converged):
        bad_M = np.asarray(M_rad, dtype=float)[~converged] if not input_is_scalar else M_rad
        raise ConvergenceError(
            f"Kepler's equation did not converge for M={bad_M}, e={e:.{KEPLER_LOGGING_PRECISION}f}",
            mean_anomaly=M_rad,
            eccentricity=e
        )

    if input_is_scalar:
        return float(E.item())
    return E
