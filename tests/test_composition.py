"""Tests for autozoom.composition — base transform and ramp timeline."""

import numpy as np
import pytest
from PySide6.QtCore import QPointF
from PySide6.QtGui import QTransform

from autozoom.composition import (
    CompositionBuilder,
    TransformRamp,
    base_transform,
    build_composition,
    camera_transform,
    interpolate_transform,
    to_affine_matrix,
)
from autozoom.models import CameraKeyframe, CameraPlan
from autozoom.planner import plan_camera


HD = (1920.0, 1080.0)
ROTATE_90 = QTransform(0, 1, -1, 0, 1080, 0)


def _map(t: QTransform, x: float, y: float) -> tuple:
    p = t.map(QPointF(x, y))
    return (p.x(), p.y())


def _plan(*keyframes: CameraKeyframe, size=HD, duration: float = 10.0) -> CameraPlan:
    return CameraPlan(source_size=size, keyframes=tuple(keyframes), duration=duration)


def _kf(t: float, zoom: float, center=(960.0, 540.0)) -> CameraKeyframe:
    return CameraKeyframe(time=t, center=center, zoom=zoom)


# ── Nothing to compose ──────────────────────────────────────────────


class TestNoComposition:
    def test_degenerate_render_size(self) -> None:
        assert build_composition(HD, QTransform(), (0.0, 1080.0), 30, 5.0) is None
        assert build_composition(HD, QTransform(), (1920.0, -1.0), 30, 5.0, _plan(_kf(0, 1))) is None

    def test_passthrough_track(self) -> None:
        assert build_composition(HD, QTransform(), HD, 30, 5.0) is None

    def test_empty_plan_is_no_plan(self) -> None:
        assert build_composition(HD, QTransform(), HD, 30, 5.0, _plan()) is None


# ── Static base transform ──────────────────────────────────────────


class TestBaseTransform:
    def test_downscale(self) -> None:
        comp = build_composition(HD, QTransform(), (1280.0, 720.0), 30, 5.0)
        assert comp is not None
        assert len(comp.ramps) == 1
        ramp = comp.ramps[0]
        assert (ramp.start_time, ramp.end_time) == (0.0, 5.0)
        assert ramp.is_static
        assert _map(comp.initial_transform, 1920, 1080) == pytest.approx((1280.0, 720.0))
        assert _map(comp.initial_transform, 0, 0) == pytest.approx((0.0, 0.0))

    def test_letterbox_centers(self) -> None:
        base = base_transform(QTransform(), (1000.0, 1000.0), (2000.0, 1000.0))
        assert _map(base, 0, 0) == pytest.approx((500.0, 0.0))
        assert _map(base, 1000, 1000) == pytest.approx((1500.0, 1000.0))

    def test_rotation_uses_oriented_size(self) -> None:
        comp = build_composition(HD, ROTATE_90, (1080.0, 1920.0), 30, 2.0)
        assert comp is not None
        assert _map(comp.initial_transform, 0, 0) == pytest.approx((1080.0, 0.0))
        assert _map(comp.initial_transform, 1920, 1080) == pytest.approx((0.0, 1920.0))

    def test_rotation_alone_needs_composition(self) -> None:
        comp = build_composition(HD, ROTATE_90, HD, 30, 2.0)
        assert comp is not None
        # portrait 1080×1920 fit into 1920×1080: 0.5625 scale, pillarboxed
        assert _map(comp.initial_transform, 0, 0) == pytest.approx((1920.0 - 656.25, 0.0))

    def test_negative_duration_clamped(self) -> None:
        comp = build_composition(HD, QTransform(), (1280.0, 720.0), 30, -1.0)
        assert comp.duration == 0.0


# ── Camera transforms ───────────────────────────────────────────────


class TestCameraTransform:
    def test_center_maps_to_source_center(self) -> None:
        t = camera_transform(_kf(0, 2.0, center=(400.0, 300.0)), HD)
        assert _map(t, 400, 300) == pytest.approx((960.0, 540.0))
        assert _map(t, 410, 300) == pytest.approx((980.0, 540.0))

    def test_zoom_below_one_is_lifted(self) -> None:
        t = camera_transform(_kf(0, 0.5), HD)
        assert t.isIdentity()

    def test_camera_applies_in_source_space(self) -> None:
        """On a 4K source rendered at HD the keyframe center lands mid-frame."""
        uhd = (3840.0, 2160.0)
        plan = _plan(_kf(0, 2.0), _kf(4, 2.0), size=uhd, duration=4.0)
        comp = build_composition(uhd, QTransform(), HD, 30, 4.0, plan)
        assert _map(comp.initial_transform, 960, 540) == pytest.approx((960.0, 540.0))
        assert _map(comp.initial_transform, 1060, 540) == pytest.approx((1060.0, 540.0))

    def test_idle_plan_transform(self) -> None:
        plan = plan_camera([], HD, 10.0)
        comp = build_composition(HD, QTransform(), HD, 30, 10.0, plan)
        assert len(comp.ramps) == 1
        ramp = comp.ramps[0]
        assert (ramp.start_time, ramp.end_time) == (0.0, 10.0)
        assert _map(ramp.start_transform, 0, 0) == pytest.approx((-48.0, -27.0))


# ── Ramp timeline ───────────────────────────────────────────────────


def _assert_gapless(comp, duration: float) -> None:
    assert comp.ramps[0].start_time == 0.0
    assert comp.ramps[-1].end_time == pytest.approx(duration)
    for a, b in zip(comp.ramps, comp.ramps[1:]):
        assert b.start_time == a.end_time
    for r in comp.ramps:
        assert r.end_time > r.start_time


class TestRamps:
    def test_unsorted_keyframes(self) -> None:
        plan = _plan(_kf(5, 2.0), _kf(0, 1.0), _kf(10, 1.5))
        comp = build_composition(HD, QTransform(), HD, 30, 10.0, plan)
        assert [(r.start_time, r.end_time) for r in comp.ramps] == [(0.0, 5.0), (5.0, 10.0)]
        assert comp.ramps[0].start_transform.m11() == pytest.approx(1.0)
        assert comp.ramps[0].end_transform.m11() == pytest.approx(2.0)

    def test_holds_fill_gaps(self) -> None:
        plan = _plan(_kf(2, 2.0), _kf(6, 1.0))
        comp = build_composition(HD, QTransform(), HD, 30, 10.0, plan)
        assert [(r.start_time, r.end_time) for r in comp.ramps] == [
            (0.0, 2.0), (2.0, 6.0), (6.0, 10.0),
        ]
        assert comp.ramps[0].is_static
        assert comp.ramps[2].is_static
        assert comp.initial_transform == comp.ramps[0].start_transform
        _assert_gapless(comp, 10.0)

    def test_keyframes_past_duration_are_clamped(self) -> None:
        plan = _plan(_kf(0, 1.0), _kf(5, 2.0), _kf(15, 1.0))
        comp = build_composition(HD, QTransform(), HD, 30, 10.0, plan)
        assert [(r.start_time, r.end_time) for r in comp.ramps] == [(0.0, 5.0), (5.0, 10.0)]
        _assert_gapless(comp, 10.0)

    def test_single_keyframe_holds(self) -> None:
        comp = build_composition(HD, QTransform(), HD, 30, 3.0, _plan(_kf(0, 2.0)))
        assert len(comp.ramps) == 1
        assert comp.ramps[0].is_static
        _assert_gapless(comp, 3.0)

    def test_planned_session_is_gapless(self, session_events) -> None:
        plan = plan_camera(session_events, HD, 5.0)
        comp = build_composition(HD, QTransform(), (1280.0, 720.0), 60, 5.0, plan)
        _assert_gapless(comp, 5.0)

    def test_frame_duration_rounds_rate(self) -> None:
        plan = _plan(_kf(0, 1.0), _kf(1, 2.0))
        assert build_composition(HD, QTransform(), HD, 29.97, 1.0, plan).frame_duration == pytest.approx(1 / 30)
        assert build_composition(HD, QTransform(), HD, 0, 1.0, plan).frame_duration == 1.0

    def test_builder_wrapper(self) -> None:
        plan = _plan(_kf(0, 1.0), _kf(1, 2.0))
        a = CompositionBuilder().build(HD, QTransform(), HD, 30, 1.0, plan)
        b = build_composition(HD, QTransform(), HD, 30, 1.0, plan)
        assert [(r.start_time, r.end_time) for r in a.ramps] == [(r.start_time, r.end_time) for r in b.ramps]
        assert a.initial_transform == b.initial_transform


# ── Sampling ────────────────────────────────────────────────────────


class TestSampling:
    @pytest.fixture
    def zoom_in(self):
        plan = _plan(_kf(0, 1.0), _kf(10, 2.0))
        return build_composition(HD, QTransform(), HD, 30, 10.0, plan)

    def test_transform_at_midpoint(self, zoom_in) -> None:
        t = zoom_in.transform_at(5.0)
        assert t.m11() == pytest.approx(1.5)
        assert t.dx() == pytest.approx(-480.0)

    def test_transform_at_bounds(self, zoom_in) -> None:
        assert zoom_in.transform_at(-1.0) == zoom_in.initial_transform
        assert zoom_in.transform_at(20.0).m11() == pytest.approx(2.0)

    def test_interpolate_clamps_progress(self) -> None:
        a, b = QTransform(), QTransform.fromScale(3, 3)
        assert interpolate_transform(a, b, -1.0) == a
        assert interpolate_transform(a, b, 2.0).m11() == pytest.approx(3.0)

    def test_affine_matrix_layout(self) -> None:
        m = to_affine_matrix(QTransform(1, 2, 3, 4, 5, 6))
        np.testing.assert_allclose(m, [[1, 3, 5], [2, 4, 6]])

    def test_frame_matrices_shape(self) -> None:
        plan = _plan(_kf(0, 1.0), _kf(1, 2.0), duration=1.0)
        comp = build_composition(HD, QTransform(), HD, 30, 1.0, plan)
        assert comp.frame_matrices().shape == (30, 2, 3)

    def test_frame_matrices_match_transform_at(self, zoom_in) -> None:
        matrices = zoom_in.frame_matrices()
        times = zoom_in.frame_times()
        assert len(matrices) == len(times) == 300
        for i in (0, 1, 149, 150, 299):
            expected = to_affine_matrix(zoom_in.transform_at(float(times[i])))
            np.testing.assert_allclose(matrices[i], expected, atol=1e-9)

    def test_static_frame_matrices(self) -> None:
        comp = build_composition(HD, QTransform(), (1280.0, 720.0), 30, 1.0)
        matrices = comp.frame_matrices()
        expected = to_affine_matrix(comp.initial_transform)
        for m in matrices:
            np.testing.assert_allclose(m, expected)

    def test_ramp_duration(self) -> None:
        r = TransformRamp(1.0, 3.5, QTransform(), QTransform())
        assert r.duration == 2.5
        assert r.is_static
