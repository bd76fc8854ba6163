"""User-facing auto-zoom settings and their mapping onto camera constraints.

The editor exposes three knobs: an on/off switch, an intensity slider
(0-100%) and the minimum keyframe interval.  :func:`constraints_for_settings`
translates them into a full :class:`ZoomConstraints`.
"""

import math
from dataclasses import dataclass, replace

from .constraints import ZoomConstraints, default_constraints

INTENSITY_RANGE = (0.0, 1.0)
KEYFRAME_INTERVAL_RANGE = (1.0 / 60.0, 1.0 / 10.0)  # seconds
DEFAULT_KEYFRAME_INTERVAL = 1.0 / 30.0

# Pan speed / acceleration multiplier applied to the raw limits; the
# camera trails the cursor instead of snapping to it.
FOLLOW_SMOOTHING = 0.75


@dataclass(frozen=True)
class AutoZoomSettings:
    """Per-project auto-zoom preferences."""
    is_enabled: bool = True
    intensity: float = 1.0
    minimum_keyframe_interval: float = DEFAULT_KEYFRAME_INTERVAL

    def clamped(self) -> "AutoZoomSettings":
        """Copy with every value pulled into its supported range."""
        intensity = self.intensity if math.isfinite(self.intensity) else 1.0
        interval = (
            self.minimum_keyframe_interval
            if math.isfinite(self.minimum_keyframe_interval)
            else DEFAULT_KEYFRAME_INTERVAL
        )
        lo_i, hi_i = INTENSITY_RANGE
        lo_k, hi_k = KEYFRAME_INTERVAL_RANGE
        return replace(
            self,
            intensity=min(max(intensity, lo_i), hi_i),
            minimum_keyframe_interval=min(max(interval, lo_k), hi_k),
        )

    @property
    def intensity_label(self) -> str:
        return f"{int(round(self.intensity * 100))}%"

    @property
    def keyframe_interval_label(self) -> str:
        return f"{int(round(self.minimum_keyframe_interval * 1000))} ms"

    def to_dict(self) -> dict:
        return {
            "isEnabled": self.is_enabled,
            "intensity": self.intensity,
            "minimumKeyframeInterval": self.minimum_keyframe_interval,
        }

    @staticmethod
    def from_dict(d: dict) -> "AutoZoomSettings":
        """Reconstruct from a dict; missing keys fall back to defaults."""
        return AutoZoomSettings(
            is_enabled=d.get("isEnabled", True),
            intensity=d.get("intensity", 1.0),
            minimum_keyframe_interval=d.get("minimumKeyframeInterval", DEFAULT_KEYFRAME_INTERVAL),
        )


def constraints_for_settings(settings: AutoZoomSettings) -> ZoomConstraints:
    """Scale the default constraints by the user's intensity setting.

    Intensity 0 keeps the camera at 1× with zero-weight samples;
    intensity 1 uses the stock zoom range.
    """
    s = settings.clamped()
    base = default_constraints()
    k = s.intensity
    return base.replace(
        minimum_keyframe_interval=s.minimum_keyframe_interval,
        max_pan_speed=base.max_pan_speed * FOLLOW_SMOOTHING,
        max_pan_acceleration=base.max_pan_acceleration * FOLLOW_SMOOTHING,
        max_zoom=1.0 + (base.max_zoom - 1.0) * k,
        idle_zoom=1.0 + (base.idle_zoom - 1.0) * k,
        motion_intensity=base.motion_intensity * k,
        dwell_intensity=base.dwell_intensity * k,
        click_intensity=base.click_intensity * k,
    )
