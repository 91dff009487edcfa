"""
Per-body tick driver.

A Body owns the PropagatedState of one catalog entry. Each tick it integrates
the secular rates, propagates the position, and computes the presentation
targets. A tick whose Kepler solve fails leaves the state and outputs of the
previous tick untouched.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..config import DEFAULT_AU_SCALE, LABEL_MIN_SCALE, SECONDS_PER_DAY
from ..data.catalog import BodyDefinition, validate_definition
from ..exceptions import ConfigurationError, ConvergenceError
from ..physics.elements import OrbitalElements, PropagatedState, integrate, validate_elements
from ..physics.orbit_path import sample_orbit_path
from ..physics.propagation import PropagationResult, propagate, rotate_spin_axis
from ..view.attenuation import attenuate, is_selectable, is_visible, label_offset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    """Outputs of one tick, consumed by the rendering layer."""
    position: np.ndarray        # world units
    opacity: float              # target opacity in [0, 1]
    label_scale: float
    spin_axis: np.ndarray       # unit vector, inertial frame
    spin_angle: float           # radians to rotate about spin_axis this tick
    label_offset: np.ndarray    # world units, relative to position
    visible: bool
    selectable: bool


class Body:
    """
    A catalog body driven by the host loop.

    Args:
        definition: Static body configuration.
        au_scale: World units per AU. Uses DEFAULT_AU_SCALE if None.

    Raises:
        ConfigurationError: If the definition is invalid or the body cannot
            be placed at its epoch.
    """

    def __init__(self, definition: BodyDefinition, au_scale: Optional[float] = None):
        self.definition = validate_definition(definition)
        self.au_scale = au_scale if au_scale is not None else DEFAULT_AU_SCALE
        self._reset(definition.elements)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def epoch_elements(self) -> OrbitalElements:
        return self._epoch_elements

    def _reset(self, elements: OrbitalElements):
        # Nothing is assigned until the epoch placement has succeeded
        try:
            initial = propagate(elements, self.definition.mean_motion, 0.0, self.au_scale)
        except ConvergenceError as e:
            raise ConfigurationError(f"Body '{self.name}' cannot be placed at its epoch: {e}") from e
        orbit_path = sample_orbit_path(elements, au_scale=self.au_scale)

        self._epoch_elements = elements
        self.state = PropagatedState(elements, opacity=0.0)
        self.simulated_time = 0.0
        self.failed_ticks = 0
        self.orbit_path = orbit_path
        self.last_propagation = initial
        self.last_result = TickResult(
            position=initial.position,
            opacity=0.0,
            label_scale=LABEL_MIN_SCALE,
            spin_axis=rotate_spin_axis(self.definition.rotation_axis, initial.orientation),
            spin_angle=0.0,
            label_offset=label_offset(initial.position, elements.semi_major_axis, self.au_scale),
            visible=False,
            selectable=False,
        )

    def set_epoch_elements(self, elements: OrbitalElements):
        """Replaces the epoch elements, resetting the live state and regenerating the orbit path."""
        self._reset(validate_elements(elements))

    def tick(self,
             delta_real_seconds: float,
             speed_factor: float,
             observer_position: Sequence[float]) -> TickResult:
        """
        Advances the body by one host tick.

        Args:
            delta_real_seconds: Real time elapsed since the previous tick.
            speed_factor: Simulated seconds per real second (0 pauses).
            observer_position: Camera position in world units, read-only.

        Returns:
            The new TickResult, or the previous one if the Kepler solve failed.
        """
        self.simulated_time += delta_real_seconds * speed_factor

        # Drift is measured from the epoch so a skipped tick loses none of it
        elements = integrate(self._epoch_elements, self.definition.rates,
                             self.simulated_time / SECONDS_PER_DAY)

        try:
            result: PropagationResult = propagate(
                elements, self.definition.mean_motion, self.simulated_time, self.au_scale
            )
        except (ConvergenceError, ConfigurationError) as e:
            self.failed_ticks += 1
            logger.warning(f"Skipping tick for '{self.name}' at t={self.simulated_time:.1f}s: {e}")
            return self.last_result

        targets = attenuate(result.position, observer_position, elements.semi_major_axis, self.au_scale)

        self.state = PropagatedState(elements).with_opacity(targets.opacity)
        self.last_propagation = result
        self.last_result = TickResult(
            position=result.position,
            opacity=self.state.opacity,
            label_scale=targets.label_scale,
            spin_axis=rotate_spin_axis(self.definition.rotation_axis, result.orientation),
            spin_angle=self.definition.rotation_speed * delta_real_seconds,
            label_offset=label_offset(result.position, elements.semi_major_axis, self.au_scale),
            visible=is_visible(self.state.opacity),
            selectable=is_selectable(self.state.opacity),
        )
        return self.last_result
