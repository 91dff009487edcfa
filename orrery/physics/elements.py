"""
Keplerian orbital elements and their secular drift.

The elements are immutable value objects: ``integrate`` returns a new
OrbitalElements instead of mutating shared storage, and the caller owns
replacing its stored state. Angles are stored in degrees and converted to
radians once per call through ``to_radians``.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import NamedTuple

import numpy as np

from .kepler import OrbitRegime, classify_regime, regime_eccentricity_bounds
from ..config import MIN_ECCENTRICITY, MIN_SEMIMAJOR_AXIS_AU, SECONDS_PER_DAY
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ElementsRad(NamedTuple):
    """Angular elements converted to radians."""
    inclination: float
    longitude_of_ascending_node: float
    argument_of_periapsis: float
    mean_anomaly_at_epoch: float


@dataclass(frozen=True)
class OrbitalElements:
    """
    Keplerian orbital elements for one body.

    Attributes:
        semi_major_axis: Semi-major axis (AU). For the parabolic regime this
            field carries the periapsis distance q.
        eccentricity: Eccentricity (>= 0).
        inclination: Inclination (degrees).
        longitude_of_ascending_node: Longitude of the ascending node (degrees).
        argument_of_periapsis: Argument of periapsis (degrees).
        mean_anomaly_at_epoch: Mean anomaly at epoch (degrees).
    """
    semi_major_axis: float
    eccentricity: float
    inclination: float = 0.0
    longitude_of_ascending_node: float = 0.0
    argument_of_periapsis: float = 0.0
    mean_anomaly_at_epoch: float = 0.0

    @property
    def regime(self) -> OrbitRegime:
        """Regime derived from the current eccentricity on every access."""
        return classify_regime(self.eccentricity)

    def to_radians(self) -> ElementsRad:
        return ElementsRad(
            math.radians(self.inclination),
            math.radians(self.longitude_of_ascending_node),
            math.radians(self.argument_of_periapsis),
            math.radians(self.mean_anomaly_at_epoch),
        )


@dataclass(frozen=True)
class SecularRates:
    """Linear drift of each orbital element, per simulated day."""
    semi_major_axis: float = 0.0
    eccentricity: float = 0.0
    inclination: float = 0.0
    longitude_of_ascending_node: float = 0.0
    argument_of_periapsis: float = 0.0
    mean_anomaly_at_epoch: float = 0.0

    def scaled(self, factor: float) -> 'SecularRates':
        """Returns the rates multiplied by ``factor`` (unit conversion)."""
        return SecularRates(
            self.semi_major_axis * factor,
            self.eccentricity * factor,
            self.inclination * factor,
            self.longitude_of_ascending_node * factor,
            self.argument_of_periapsis * factor,
            self.mean_anomaly_at_epoch * factor,
        )


@dataclass(frozen=True)
class PropagatedState:
    """Live, time-drifted elements of one body plus its current opacity."""
    elements: OrbitalElements
    opacity: float = 0.0

    def with_opacity(self, opacity: float) -> 'PropagatedState':
        return replace(self, opacity=min(max(opacity, 0.0), 1.0))


def validate_elements(elements: OrbitalElements) -> OrbitalElements:
    """
    Rejects elements outside the valid domain before any propagation begins.

    Raises:
        ConfigurationError: For a non-positive or non-finite semi-major axis,
            a negative or non-finite eccentricity, or a non-finite angle.
    """
    a = elements.semi_major_axis
    if not math.isfinite(a) or a <= MIN_SEMIMAJOR_AXIS_AU:
        raise ConfigurationError(f"Semi-major axis {a} AU must be a finite value > {MIN_SEMIMAJOR_AXIS_AU}")

    e = elements.eccentricity
    if not math.isfinite(e) or e < MIN_ECCENTRICITY:
        raise ConfigurationError(f"Eccentricity {e} outside valid domain [{MIN_ECCENTRICITY}, inf)")

    for name in ('inclination', 'longitude_of_ascending_node',
                 'argument_of_periapsis', 'mean_anomaly_at_epoch'):
        value = getattr(elements, name)
        if not math.isfinite(value):
            raise ConfigurationError(f"Orbital element '{name}' is not finite: {value}")

    return elements


def integrate(previous: OrbitalElements,
              rates: SecularRates,
              elapsed_simulated_days: float) -> OrbitalElements:
    """
    Advances every element linearly by its secular rate.

    ``element' = element + rate * elapsed_simulated_days``. Eccentricity drift
    never changes the regime of ``previous``: it is clamped at zero and just
    outside the edges of the parabolic band. The input is left untouched.

    Args:
        previous: Elements before the step.
        rates: Secular rates, per simulated day.
        elapsed_simulated_days: Simulated time covered by the step.

    Returns:
        A new OrbitalElements instance.
    """
    dt = elapsed_simulated_days
    eccentricity = previous.eccentricity + rates.eccentricity * dt
    low, high = regime_eccentricity_bounds(previous.regime)
    if not low <= eccentricity <= high:
        clamped = min(max(eccentricity, low), high)
        logger.debug(f"Eccentricity drift clamped at {clamped} (was {eccentricity}, "
                     f"regime {previous.regime.value})")
        eccentricity = clamped

    return OrbitalElements(
        semi_major_axis=previous.semi_major_axis + rates.semi_major_axis * dt,
        eccentricity=eccentricity,
        inclination=previous.inclination + rates.inclination * dt,
        longitude_of_ascending_node=previous.longitude_of_ascending_node + rates.longitude_of_ascending_node * dt,
        argument_of_periapsis=previous.argument_of_periapsis + rates.argument_of_periapsis * dt,
        mean_anomaly_at_epoch=previous.mean_anomaly_at_epoch + rates.mean_anomaly_at_epoch * dt,
    )


def mean_motion(orbital_period_days: float) -> float:
    """Mean motion in rad/s for an orbital period given in days."""
    if not np.isfinite(orbital_period_days) or orbital_period_days <= 0:
        raise ConfigurationError(f"Orbital period {orbital_period_days} days must be a finite value > 0")
    return 2.0 * np.pi / (orbital_period_days * SECONDS_PER_DAY)
