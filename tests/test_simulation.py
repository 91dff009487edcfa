import logging

import pytest
import numpy as np
import pandas as pd
from unittest.mock import patch

from orrery.data.catalog import BodyDefinition
from orrery.physics.elements import OrbitalElements, SecularRates, integrate
from orrery.simulation.body import Body, TickResult
from orrery.simulation.engine import OrrerySimulation
from orrery.exceptions import ConfigurationError, ConvergenceError
from orrery.config import SECONDS_PER_DAY

OBSERVER = (0.0, 0.0, 250.0)


@pytest.fixture
def earth_definition():
    return BodyDefinition(
        name='Earth',
        elements=OrbitalElements(1.0, 0.0167, 0.0, 0.0, 102.9, 357.5),
        orbital_period=365.256,
        rates=SecularRates(eccentricity=-1e-9, argument_of_periapsis=1e-5),
        rotation_speed=7.29e-5,
        rotation_axis=(0.397789, 0.917477, 0.0)
    )


@pytest.fixture
def mars_definition():
    return BodyDefinition(
        name='Mars',
        elements=OrbitalElements(1.5237, 0.0934, 1.85, 49.56, 286.5, 19.39),
        orbital_period=686.98,
    )


class TestBody:
    """Test the per-body tick driver."""

    def test_initial_state(self, earth_definition):
        body = Body(earth_definition, au_scale=100.0)

        assert body.state.opacity == 0.0
        assert body.state.elements == earth_definition.elements
        assert body.simulated_time == 0.0
        assert body.orbit_path.shape[1] == 3
        assert isinstance(body.last_result, TickResult)
        assert body.last_result.visible is False

    def test_invalid_definition_aborts_creation(self):
        definition = BodyDefinition('Broken', OrbitalElements(-1.0, 0.1), orbital_period=100.0)
        with pytest.raises(ConfigurationError, match="Broken"):
            Body(definition)

    def test_tick_moves_body_and_sets_opacity(self, earth_definition):
        body = Body(earth_definition, au_scale=100.0)
        start = body.last_result.position.copy()

        result = body.tick(1.0, 86400.0 * 30, OBSERVER)

        assert not np.allclose(result.position, start)
        assert np.linalg.norm(result.position) == pytest.approx(100.0, rel=0.02)
        assert 0.0 <= result.opacity <= 1.0
        assert body.state.opacity == result.opacity
        assert body.simulated_time == pytest.approx(86400.0 * 30)

    def test_rates_drift_elements(self, earth_definition):
        body = Body(earth_definition)

        body.tick(1.0, 86400.0 * 1000, OBSERVER)

        assert body.state.elements.argument_of_periapsis == pytest.approx(102.9 + 1e-2)
        assert body.epoch_elements == earth_definition.elements

    def test_pause_freezes_state_and_position(self, earth_definition):
        """With speed 0, ticks separated by any real time are identical."""
        body = Body(earth_definition)
        body.tick(0.5, 86400.0, OBSERVER)

        first = body.tick(0.016, 0.0, OBSERVER)
        state_first = body.state
        second = body.tick(1000.0, 0.0, OBSERVER)

        assert body.state == state_first
        assert np.array_equal(first.position, second.position)
        assert first.opacity == second.opacity

    def test_spin_uses_real_time(self, earth_definition):
        body = Body(earth_definition)

        result = body.tick(2.0, 0.0, OBSERVER)

        assert result.spin_angle == pytest.approx(7.29e-5 * 2.0)
        assert np.linalg.norm(result.spin_axis) == pytest.approx(1.0)

    def test_convergence_failure_retains_previous_outputs(self, earth_definition, caplog):
        """A failed solve leaves the state and outputs of the previous tick."""
        body = Body(earth_definition)
        previous = body.tick(1.0, 86400.0, OBSERVER)
        state_before = body.state

        with patch('orrery.simulation.body.propagate',
                   side_effect=ConvergenceError("no convergence", 1.0, 0.0167)):
            with caplog.at_level(logging.WARNING):
                result = body.tick(1.0, 86400.0, OBSERVER)

        assert result is previous
        assert body.state is state_before
        assert body.failed_ticks == 1
        assert "Skipping tick for 'Earth'" in caplog.text

        recovered = body.tick(1.0, 86400.0, OBSERVER)
        assert recovered is not previous
        assert np.all(np.isfinite(recovered.position))

    def test_failed_tick_loses_no_drift(self, earth_definition):
        """Drift skipped by a failed tick is recovered on the next successful one."""
        body = Body(earth_definition)
        body.tick(1.0, 86400.0, OBSERVER)
        with patch('orrery.simulation.body.propagate',
                   side_effect=ConvergenceError("no convergence", 1.0, 0.0167)):
            body.tick(1.0, 86400.0, OBSERVER)
        body.tick(1.0, 86400.0, OBSERVER)

        assert body.simulated_time == pytest.approx(3 * 86400.0)
        assert body.state.elements == integrate(earth_definition.elements, earth_definition.rates, 3.0)
        assert body.state.elements.argument_of_periapsis == pytest.approx(102.9 + 3e-5)

    @pytest.mark.parametrize("e0, rate", [(0.999997, 1e-6), (1.000003, -1e-6)])
    def test_position_is_continuous_as_drift_reaches_parabolic_band(self, e0, rate):
        """A body drifting toward e = 1 from either side moves smoothly at the band edge."""
        definition = BodyDefinition(
            name='Comet', type='comet',
            elements=OrbitalElements(1.0, e0, mean_anomaly_at_epoch=180.0),
            orbital_period=1e6,
            rates=SecularRates(eccentricity=rate)
        )
        body = Body(definition, au_scale=1.0)

        radii = [np.linalg.norm(body.tick(1.0, SECONDS_PER_DAY, OBSERVER).position) for _ in range(8)]

        assert body.failed_ticks == 0
        assert body.state.elements.regime is definition.elements.regime
        assert np.all(np.abs(np.diff(radii)) < 1e-3 * radii[0])

    def test_failed_set_epoch_elements_leaves_body_untouched(self, earth_definition):
        body = Body(earth_definition)
        body.tick(1.0, 86400.0 * 10, OBSERVER)
        path, result, time = body.orbit_path, body.last_result, body.simulated_time

        with patch('orrery.simulation.body.propagate',
                   side_effect=ConvergenceError("no convergence", 0.0, 0.5)):
            with pytest.raises(ConfigurationError, match="cannot be placed"):
                body.set_epoch_elements(OrbitalElements(2.0, 0.5))

        assert body.epoch_elements == earth_definition.elements
        assert body.orbit_path is path
        assert body.last_result is result
        assert body.simulated_time == time

    def test_set_epoch_elements_regenerates_path(self, earth_definition):
        body = Body(earth_definition, au_scale=100.0)
        body.tick(1.0, 86400.0 * 10, OBSERVER)
        old_path = body.orbit_path

        body.set_epoch_elements(OrbitalElements(2.0, 0.1))

        assert body.simulated_time == 0.0
        assert not np.allclose(body.orbit_path, old_path)
        assert np.max(np.linalg.norm(body.orbit_path, axis=1)) == pytest.approx(220.0, rel=1e-3)

    def test_set_epoch_elements_validates(self, earth_definition):
        body = Body(earth_definition)
        with pytest.raises(ConfigurationError):
            body.set_epoch_elements(OrbitalElements(1.0, -0.5))

    def test_hyperbolic_body(self):
        definition = BodyDefinition(
            name='Oumuamua', type='comet',
            elements=OrbitalElements(1.2723, 1.20113, 122.74, 24.597, 241.81, 0.0),
            orbital_period=524.2
        )
        body = Body(definition)

        result = body.tick(1.0, 86400.0 * 50, OBSERVER)

        assert body.last_propagation.true_anomaly > 0
        assert np.all(np.isfinite(result.position))


class TestOrrerySimulation:
    """Test the multi-body engine."""

    @pytest.fixture
    def simulation(self, earth_definition, mars_definition):
        return OrrerySimulation.from_definitions([earth_definition, mars_definition],
                                                 speed_factor=86400.0, au_scale=100.0)

    def test_tick_returns_result_per_body(self, simulation):
        results = simulation.tick(1.0, OBSERVER)

        assert set(results) == {'Earth', 'Mars'}
        assert simulation.ticks == 1

    def test_pause_and_resume(self, simulation):
        simulation.tick(1.0, OBSERVER)
        simulation.pause()
        assert simulation.paused

        before = {name: r.position.copy() for name, r in simulation.tick(1.0, OBSERVER).items()}
        after = simulation.run(10, 5.0, OBSERVER)
        for name in before:
            assert np.array_equal(before[name], after[name].position)

        simulation.resume(3600.0)
        assert simulation.speed_factor == 3600.0
        moved = simulation.tick(1.0, OBSERVER)
        assert not np.array_equal(moved['Earth'].position, before['Earth'])

    def test_observer_is_not_modified(self, simulation):
        observer = np.array(OBSERVER)
        simulation.tick(1.0, observer)
        assert np.array_equal(observer, OBSERVER)

    def test_bodies_are_independent(self, earth_definition, mars_definition):
        """Ticking a body alone or alongside others gives the same result."""
        alone = Body(earth_definition, au_scale=100.0)
        together = OrrerySimulation.from_definitions([earth_definition, mars_definition],
                                                     speed_factor=86400.0, au_scale=100.0)
        for _ in range(5):
            expected = alone.tick(1.0, 86400.0, OBSERVER)
            results = together.tick(1.0, OBSERVER)
        assert np.allclose(expected.position, results['Earth'].position)

    def test_run_reports_only_its_own_failures(self, simulation, caplog):
        with patch('orrery.simulation.body.propagate',
                   side_effect=ConvergenceError("no convergence")):
            with caplog.at_level(logging.WARNING):
                simulation.run(1, 1.0, OBSERVER)
        assert "2 body ticks were skipped" in caplog.text
        assert simulation.failed_ticks == 2

        caplog.clear()
        with caplog.at_level(logging.WARNING):
            simulation.run(3, 1.0, OBSERVER)

        assert "were skipped" not in caplog.text
        assert simulation.failed_ticks == 2

    def test_duplicate_names_rejected(self, earth_definition):
        with pytest.raises(ValueError, match="unique"):
            OrrerySimulation.from_definitions([earth_definition, earth_definition])

    def test_invalid_speed_factor(self, simulation):
        with pytest.raises(ValueError):
            simulation.speed_factor = float('nan')

    def test_body_lookup(self, simulation):
        assert simulation.body('Mars').name == 'Mars'
        with pytest.raises(KeyError):
            simulation.body('Vulcan')

    def test_snapshot(self, simulation):
        simulation.run(3, 1.0, OBSERVER)

        df = simulation.snapshot()

        assert isinstance(df, pd.DataFrame)
        assert list(df['name']) == ['Earth', 'Mars']
        assert set(['x', 'y', 'z', 'opacity', 'label_scale', 'regime']).issubset(df.columns)
        assert (df['regime'] == 'elliptical').all()
        assert df['simulated_days'].iloc[0] == pytest.approx(3.0)
