"""Zoom/pan constraints — camera limits plus the geometry that enforces them.

:class:`ZoomConstraints` is an immutable value: planners and builders
read it, never mutate it, so one instance can be shared freely between
threads.  Use :func:`default_constraints` for the stock tuning and
:meth:`ZoomConstraints.replace` to derive variants.
"""

from dataclasses import dataclass, fields, replace as _dc_replace

from .models import Point, Size


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class ZoomConstraints:
    """Limits for the virtual camera and the attention heuristics."""
    max_zoom: float = 2.5
    min_visible_area_fraction: float = 0.4   # 0.01-1, caps zoom at 1/fraction
    safe_margin_fraction: float = 0.1        # 0-0.25 of the frame / viewport
    dwell_duration: float = 0.35             # seconds below speed threshold
    dwell_speed_threshold: float = 40.0      # px/s (smoothed)
    velocity_smoothing_alpha: float = 0.2    # EMA factor, 1 = no smoothing
    max_pan_speed: float = 1400.0            # px/s
    max_pan_acceleration: float = 3600.0     # px/s²
    idle_zoom: float = 1.05
    base_zoom: float = 1.0
    minimum_keyframe_interval: float = 1.0 / 30.0  # seconds
    motion_intensity: float = 0.25
    dwell_intensity: float = 0.7
    click_intensity: float = 1.0

    # ── derived limits ──────────────────────────────────────────────

    @property
    def allowed_max_zoom(self) -> float:
        """Upper zoom bound after applying the visible-area rule."""
        min_area = _clamp(self.min_visible_area_fraction, 0.01, 1.0)
        return min(self.max_zoom, 1.0 / min_area)

    @property
    def safe_margin(self) -> float:
        return _clamp(self.safe_margin_fraction, 0.0, 0.25)

    # ── geometry ────────────────────────────────────────────────────

    def clamped_zoom(self, zoom: float) -> float:
        """Clamp *zoom* to ``[1, min(max_zoom, 1 / min_visible_area)]``."""
        return min(max(zoom, 1.0), self.allowed_max_zoom)

    def clamped_target(self, point: Point, source_size: Size) -> Point:
        """Pull a focus point into the safe-margin inset of the source."""
        width, height = source_size
        if width <= 0 or height <= 0:
            return point
        inset_x = width * self.safe_margin
        inset_y = height * self.safe_margin
        return (
            _clamp(point[0], inset_x, width - inset_x),
            _clamp(point[1], inset_y, height - inset_y),
        )

    def clamp_view_center(self, center: Point, source_size: Size, zoom: float) -> Point:
        """Clamp *center* so the zoomed viewport stays inside the source."""
        width, height = source_size
        if width <= 0 or height <= 0:
            return center
        zoomed = self.clamped_zoom(zoom)
        half_w = width / zoomed / 2
        half_h = height / zoomed / 2
        return (
            _clamp(center[0], half_w, width - half_w),
            _clamp(center[1], half_h, height - half_h),
        )

    def bias_view_center_toward_target(
        self, target: Point, source_size: Size, zoom: float,
    ) -> Point:
        """View center that keeps *target* inside the viewport's safe window.

        The allowed centers are the intersection of the hard bounds
        (viewport fully inside the source) and the band where *target*
        sits at least one safe margin away from the viewport edge.  The
        center closest to *target* inside that band wins.  When the two
        regions do not overlap the hard bounds alone apply.
        """
        width, height = source_size
        if width <= 0 or height <= 0:
            return target
        zoomed = self.clamped_zoom(zoom)
        view_w = width / zoomed
        view_h = height / zoomed
        half_w = view_w / 2
        half_h = view_h / 2

        inner_half_w = max(0.0, half_w - view_w * self.safe_margin)
        inner_half_h = max(0.0, half_h - view_h * self.safe_margin)

        min_x = max(half_w, target[0] - inner_half_w)
        max_x = min(width - half_w, target[0] + inner_half_w)
        min_y = max(half_h, target[1] - inner_half_h)
        max_y = min(height - half_h, target[1] + inner_half_h)

        if min_x > max_x or min_y > max_y:
            return self.clamp_view_center(target, source_size, zoom)

        return (_clamp(target[0], min_x, max_x), _clamp(target[1], min_y, max_y))

    # ── config plumbing ─────────────────────────────────────────────

    def replace(self, **overrides) -> "ZoomConstraints":
        """Return a copy with the given fields changed."""
        return _dc_replace(self, **overrides)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @staticmethod
    def from_dict(d: dict) -> "ZoomConstraints":
        """Reconstruct from a dict, ignoring unknown keys for forward compat."""
        known = {f.name for f in fields(ZoomConstraints)}
        return ZoomConstraints(**{k: v for k, v in d.items() if k in known})


def default_constraints() -> ZoomConstraints:
    """The stock tuning used when callers pass no constraints."""
    return ZoomConstraints()
