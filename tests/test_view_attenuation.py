import pytest
import numpy as np

from orrery.view.attenuation import (
    Attenuation,
    attenuate,
    fade_opacity,
    is_selectable,
    is_visible,
    label_offset,
    label_scale,
    linear_ramp
)
from orrery.view.smoothing import smooth_opacity, smooth_toward
from orrery.exceptions import DegenerateThresholdError
from orrery.config import (
    LABEL_MAX_CAMERA_DISTANCE,
    LABEL_MAX_SCALE,
    LABEL_MIN_CAMERA_DISTANCE,
    LABEL_MIN_SCALE,
    LABEL_OPACITY_CAP,
    ORBIT_LINE_OPACITY_CAP
)

AU_SCALE = 100.0
A = 1.0                    # semi-major axis in AU
MIN_D = A * AU_SCALE * 4   # 400 world units
MAX_D = A * AU_SCALE * 10  # 1000 world units


def _opacity_at(distance):
    body = np.array([100.0, 0.0, 0.0])
    observer = body + np.array([0.0, 0.0, distance])
    return attenuate(body, observer, A, au_scale=AU_SCALE).opacity


class TestOpacity:
    """Test distance-based opacity targets."""

    def test_fully_visible_inside_min_distance(self):
        assert _opacity_at(0.0) == 1.0
        assert _opacity_at(MIN_D * 0.5) == 1.0
        assert _opacity_at(MIN_D) == 1.0

    def test_fully_transparent_beyond_max_distance(self):
        assert _opacity_at(MAX_D) == 0.0
        assert _opacity_at(MAX_D * 3) == 0.0

    def test_linear_fade_midpoint(self):
        assert _opacity_at((MIN_D + MAX_D) / 2) == pytest.approx(0.5)

    def test_opacity_is_non_increasing_with_distance(self):
        distances = np.linspace(0.0, 2 * MAX_D, 500)
        opacities = np.array([_opacity_at(d) for d in distances])

        assert np.all(np.diff(opacities) <= 0.0)
        assert np.all((opacities >= 0.0) & (opacities <= 1.0))

    def test_returns_attenuation_tuple(self):
        result = attenuate([0, 0, 0], [0, 0, 10], A, au_scale=AU_SCALE)
        assert isinstance(result, Attenuation)

    def test_custom_factors(self):
        result = attenuate([0, 0, 0], [0, 0, 150], A, au_scale=AU_SCALE, min_factor=1.0, max_factor=2.0)
        assert result.opacity == pytest.approx(0.5)


class TestDegenerateThresholds:
    """Collapsed thresholds become a step function instead of dividing by zero."""

    def test_linear_ramp_raises(self):
        with pytest.raises(DegenerateThresholdError):
            linear_ramp(5.0, 10.0, 10.0)

    def test_fade_step_function(self):
        assert fade_opacity(9.0, 10.0, 10.0) == 1.0
        assert fade_opacity(10.0, 10.0, 10.0) == 1.0
        assert fade_opacity(10.5, 10.0, 10.0) == 0.0

    def test_attenuate_with_equal_factors(self):
        near = attenuate([0, 0, 0], [0, 0, 399], A, au_scale=AU_SCALE, min_factor=4.0, max_factor=4.0)
        far = attenuate([0, 0, 0], [0, 0, 401], A, au_scale=AU_SCALE, min_factor=4.0, max_factor=4.0)
        assert near.opacity == 1.0
        assert far.opacity == 0.0

    def test_label_scale_step_function(self):
        assert label_scale(5.0, 10.0, 10.0) == LABEL_MIN_SCALE
        assert label_scale(50.0, 10.0, 10.0) == LABEL_MAX_SCALE


class TestLabelScale:
    """Test camera-distance label scaling."""

    def test_minimum_below_near_threshold(self):
        assert label_scale(0.0) == LABEL_MIN_SCALE
        assert label_scale(LABEL_MIN_CAMERA_DISTANCE) == LABEL_MIN_SCALE

    def test_maximum_beyond_far_threshold(self):
        assert label_scale(LABEL_MAX_CAMERA_DISTANCE) == LABEL_MAX_SCALE
        assert label_scale(LABEL_MAX_CAMERA_DISTANCE * 10) == LABEL_MAX_SCALE

    def test_linear_between_thresholds(self):
        midpoint = (LABEL_MIN_CAMERA_DISTANCE + LABEL_MAX_CAMERA_DISTANCE) / 2
        assert label_scale(midpoint) == pytest.approx((LABEL_MIN_SCALE + LABEL_MAX_SCALE) / 2)

    def test_attenuate_uses_observer_distance_from_origin(self):
        """Label scale depends on the camera distance, not on the body position."""
        observer = [0.0, 0.0, 6005.0]
        near_body = attenuate([0, 0, 6000], observer, A, au_scale=AU_SCALE)
        far_body = attenuate([0, 0, -6000], observer, A, au_scale=AU_SCALE)
        assert near_body.label_scale == far_body.label_scale == pytest.approx(label_scale(6005.0))


class TestLabelPlacement:

    def test_label_offset_along_radial_direction(self):
        offset = label_offset([0.0, 300.0, 0.0], A, au_scale=AU_SCALE)
        assert np.allclose(offset, [0.0, 5.0, 0.0])

    def test_label_offset_at_origin(self):
        assert np.allclose(label_offset([0.0, 0.0, 0.0], A, au_scale=AU_SCALE), 0.0)

    @pytest.mark.parametrize("opacity, expected", [(0.0, False), (0.05, False), (0.051, True), (1.0, True)])
    def test_visibility_and_selection_thresholds(self, opacity, expected):
        assert is_visible(opacity) is expected
        assert is_selectable(opacity) is expected


class TestSmoothing:
    """Test presentation-layer smoothing helpers."""

    def test_smooth_toward_default_factor(self):
        assert smooth_toward(0.0, 1.0) == pytest.approx(0.1)
        assert smooth_toward(1.0, 0.0) == pytest.approx(0.9)

    def test_smooth_toward_converges(self):
        value = 0.0
        for _ in range(200):
            value = smooth_toward(value, 1.0)
        assert value == pytest.approx(1.0, abs=1e-6)

    def test_smooth_toward_rejects_bad_factor(self):
        with pytest.raises(ValueError):
            smooth_toward(0.0, 1.0, factor=1.5)

    def test_smooth_opacity_caps(self):
        assert smooth_opacity(1.0, 1.0, cap=ORBIT_LINE_OPACITY_CAP) == ORBIT_LINE_OPACITY_CAP
        assert smooth_opacity(0.9, 1.0, cap=LABEL_OPACITY_CAP) <= LABEL_OPACITY_CAP

    def test_smooth_opacity_without_cap(self):
        assert smooth_opacity(0.5, 1.0, factor=0.5) == pytest.approx(0.75)
