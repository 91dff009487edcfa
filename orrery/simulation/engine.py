"""
Multi-body simulation driven by a host loop.

The engine holds the global speed multiplier and ticks every body with the
same elapsed time and read-only observer position. Bodies share no mutable
state, so the order in which they are ticked does not matter.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .body import Body, TickResult
from ..config import CLI_COORDINATE_PRECISION, DEFAULT_SPEED_FACTOR, SECONDS_PER_DAY
from ..data.catalog import BodyDefinition

log = logging.getLogger(__name__)


class OrrerySimulation:
    """
    Ticks a set of bodies under a global speed multiplier.

    Setting the speed factor to 0 is the only pause mechanism: no drift or
    anomaly advance accumulates while paused.
    """

    def __init__(self, bodies: Iterable[Body], speed_factor: Optional[float] = None):
        self.bodies: List[Body] = list(bodies)
        names = [body.name for body in self.bodies]
        if len(set(names)) != len(names):
            raise ValueError("Body names must be unique within a simulation")
        self.speed_factor = speed_factor if speed_factor is not None else DEFAULT_SPEED_FACTOR
        self.ticks = 0

    @classmethod
    def from_definitions(cls,
                         definitions: Iterable[BodyDefinition],
                         speed_factor: Optional[float] = None,
                         au_scale: Optional[float] = None) -> 'OrrerySimulation':
        return cls([Body(definition, au_scale=au_scale) for definition in definitions], speed_factor)

    @property
    def speed_factor(self) -> float:
        return self._speed_factor

    @speed_factor.setter
    def speed_factor(self, value: float):
        if not np.isfinite(value):
            raise ValueError(f"Speed factor must be finite, got {value}")
        self._speed_factor = float(value)

    @property
    def paused(self) -> bool:
        return self._speed_factor == 0.0

    def pause(self):
        self.speed_factor = 0.0

    def resume(self, speed_factor: Optional[float] = None):
        self.speed_factor = speed_factor if speed_factor is not None else DEFAULT_SPEED_FACTOR

    @property
    def failed_ticks(self) -> int:
        """Skipped body ticks over the lifetime of the simulation."""
        return sum(body.failed_ticks for body in self.bodies)

    def body(self, name: str) -> Body:
        for body in self.bodies:
            if body.name == name:
                return body
        raise KeyError(f"No body named '{name}'")

    def tick(self, delta_real_seconds: float, observer_position: Sequence[float]) -> Dict[str, TickResult]:
        """Advances every body by one tick and returns their outputs keyed by name."""
        observer = np.array(observer_position, dtype=float)
        observer.setflags(write=False)

        results = {body.name: body.tick(delta_real_seconds, self._speed_factor, observer)
                   for body in self.bodies}
        self.ticks += 1
        return results

    def run(self,
            n_ticks: int,
            delta_real_seconds: float,
            observer_position: Sequence[float]) -> Dict[str, TickResult]:
        """Runs ``n_ticks`` ticks and returns the outputs of the last one."""
        failed_before = self.failed_ticks
        results = {body.name: body.last_result for body in self.bodies}
        for _ in range(n_ticks):
            results = self.tick(delta_real_seconds, observer_position)

        failed = self.failed_ticks - failed_before
        if failed:
            log.warning(f"{failed} body ticks were skipped after solver failures")
        return results

    def snapshot(self) -> pd.DataFrame:
        """Current state of every body as a DataFrame, one row per body."""
        rows = []
        for body in self.bodies:
            result = body.last_result
            elements = body.state.elements
            x, y, z = np.round(result.position, CLI_COORDINATE_PRECISION)
            rows.append({
                'name': body.name,
                'type': body.definition.type,
                'regime': elements.regime.value,
                'simulated_days': body.simulated_time / SECONDS_PER_DAY,
                'x': x,
                'y': y,
                'z': z,
                'true_anomaly_deg': np.degrees(body.last_propagation.true_anomaly),
                'radius_au': body.last_propagation.radius,
                'eccentricity': elements.eccentricity,
                'opacity': result.opacity,
                'label_scale': result.label_scale,
                'visible': result.visible,
                'failed_ticks': body.failed_ticks,
            })
        return pd.DataFrame(rows)
