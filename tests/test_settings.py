"""Tests for autozoom.settings — clamping and the constraints mapping."""

import math

import pytest

from autozoom.constraints import ZoomConstraints
from autozoom.models import InputEvent, MOUSE_DOWN, BUTTON_LEFT
from autozoom.planner import plan_camera
from autozoom.settings import (
    AutoZoomSettings,
    FOLLOW_SMOOTHING,
    constraints_for_settings,
)


class TestClamping:
    def test_defaults_are_in_range(self) -> None:
        s = AutoZoomSettings()
        assert s.clamped() == s
        assert s.is_enabled

    def test_intensity_clamped(self) -> None:
        assert AutoZoomSettings(intensity=1.5).clamped().intensity == 1.0
        assert AutoZoomSettings(intensity=-0.3).clamped().intensity == 0.0

    def test_interval_clamped(self) -> None:
        assert AutoZoomSettings(minimum_keyframe_interval=0.001).clamped().minimum_keyframe_interval == pytest.approx(1 / 60)
        assert AutoZoomSettings(minimum_keyframe_interval=1.0).clamped().minimum_keyframe_interval == pytest.approx(0.1)

    def test_non_finite_values_reset(self) -> None:
        s = AutoZoomSettings(intensity=math.nan, minimum_keyframe_interval=math.inf).clamped()
        assert s.intensity == 1.0
        assert s.minimum_keyframe_interval == pytest.approx(1 / 30)

    def test_labels(self) -> None:
        s = AutoZoomSettings(intensity=0.42, minimum_keyframe_interval=0.05)
        assert s.intensity_label == "42%"
        assert s.keyframe_interval_label == "50 ms"

    def test_dict_roundtrip(self) -> None:
        s = AutoZoomSettings(is_enabled=False, intensity=0.3, minimum_keyframe_interval=0.02)
        d = s.to_dict()
        assert set(d) == {"isEnabled", "intensity", "minimumKeyframeInterval"}
        assert AutoZoomSettings.from_dict(d) == s

    def test_from_empty_dict(self) -> None:
        assert AutoZoomSettings.from_dict({}) == AutoZoomSettings()


class TestConstraintsForSettings:
    def test_full_intensity(self) -> None:
        c = constraints_for_settings(AutoZoomSettings())
        base = ZoomConstraints()
        assert c.max_zoom == pytest.approx(base.max_zoom)
        assert c.idle_zoom == pytest.approx(base.idle_zoom)
        assert c.max_pan_speed == pytest.approx(base.max_pan_speed * FOLLOW_SMOOTHING)

    def test_half_intensity(self) -> None:
        c = constraints_for_settings(AutoZoomSettings(intensity=0.5))
        assert c.max_zoom == pytest.approx(1.75)
        assert c.idle_zoom == pytest.approx(1.025)
        assert c.click_intensity == pytest.approx(0.5)
        assert c.dwell_intensity == pytest.approx(0.35)
        assert c.motion_intensity == pytest.approx(0.125)
        assert c.max_pan_speed == pytest.approx(1050.0)
        assert c.max_pan_acceleration == pytest.approx(2700.0)

    def test_interval_passed_through_clamped(self) -> None:
        c = constraints_for_settings(AutoZoomSettings(minimum_keyframe_interval=5.0))
        assert c.minimum_keyframe_interval == pytest.approx(0.1)

    def test_zero_intensity_never_zooms(self, session_events) -> None:
        c = constraints_for_settings(AutoZoomSettings(intensity=0.0))
        events = session_events + [
            InputEvent(type=MOUSE_DOWN, timestamp=4.5, x=100, y=100, button=BUTTON_LEFT),
        ]
        plan = plan_camera(events, (1920.0, 1080.0), 5.0, c)
        assert all(k.zoom == pytest.approx(1.0) for k in plan.keyframes)
