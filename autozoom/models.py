"""Core data models for auto-zoom planning.

Defines the dataclasses shared by the attention extractor, the camera
planner and the composition builder: recorded input events, attention
samples, camera keyframes and plans.  Persisted models support JSON
serialization via ``to_dict()`` / ``from_dict()`` (or ``to_json()`` /
``from_json()`` for the top-level event log).

Times are in seconds since recording start, positions in capture pixels.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import json

Point = Tuple[float, float]
Size = Tuple[float, float]

# Input event types
CURSOR_MOVED = "cursorMoved"
MOUSE_DOWN = "mouseDown"
MOUSE_UP = "mouseUp"
EVENT_TYPES = (CURSOR_MOVED, MOUSE_DOWN, MOUSE_UP)

# Mouse buttons
BUTTON_LEFT = "left"
BUTTON_RIGHT = "right"
BUTTON_OTHER = "other"
BUTTONS = (BUTTON_LEFT, BUTTON_RIGHT, BUTTON_OTHER)

EVENT_LOG_SCHEMA_VERSION = 1


@dataclass
class InputEvent:
    """A single cursor move or mouse button transition.

    Coordinates are in **capture pixels** with a top-left origin once
    mapped (see :func:`autozoom.plan_cache.map_events_to_capture_space`).
    """
    type: str
    timestamp: float  # seconds since recording start
    x: float
    y: float
    button: Optional[str] = None

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    @property
    def is_button(self) -> bool:
        return self.type in (MOUSE_DOWN, MOUSE_UP)

    def to_dict(self) -> dict:
        """Serialize to a plain dict for JSON storage."""
        d = {
            "type": self.type,
            "timestamp": self.timestamp,
            "position": {"x": self.x, "y": self.y},
        }
        if self.button:
            d["button"] = self.button
        return d

    @staticmethod
    def from_dict(d: dict) -> "InputEvent":
        """Reconstruct from a dict produced by ``to_dict()``."""
        event_type = d["type"]
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown input event type: {event_type!r}")
        button = d.get("button")
        if button is not None and button not in BUTTONS:
            raise ValueError(f"Unknown mouse button: {button!r}")
        pos = d["position"]
        return InputEvent(
            type=event_type,
            timestamp=float(d["timestamp"]),
            x=float(pos["x"]),
            y=float(pos["y"]),
            button=button,
        )


@dataclass
class InputEventLog:
    """Versioned container for the events captured in one recording."""
    events: List[InputEvent]
    schema_version: int = EVENT_LOG_SCHEMA_VERSION

    def to_json(self) -> str:
        """Serialize the log to a pretty-printed JSON string."""
        data = {
            "schemaVersion": self.schema_version,
            "events": [e.to_dict() for e in self.events],
        }
        return json.dumps(data, indent=2, sort_keys=True)

    @staticmethod
    def from_json(s: str) -> "InputEventLog":
        """Reconstruct a log from its JSON representation."""
        d = json.loads(s)
        return InputEventLog(
            events=[InputEvent.from_dict(e) for e in d["events"]],
            schema_version=d.get("schemaVersion", EVENT_LOG_SCHEMA_VERSION),
        )


@dataclass(frozen=True)
class AttentionSample:
    """A time-stamped, weighted focus point derived from input events."""
    time: float
    position: Point
    intensity: float  # 0-1
    is_click: bool = False
    is_dwell: bool = False


@dataclass(frozen=True)
class CameraKeyframe:
    """Virtual camera state at one instant: view center and zoom factor."""
    time: float
    center: Point  # source pixels
    zoom: float    # >= 1

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "center": {"x": self.center[0], "y": self.center[1]},
            "zoom": self.zoom,
        }

    @staticmethod
    def from_dict(d: dict) -> "CameraKeyframe":
        c = d["center"]
        return CameraKeyframe(
            time=d["time"], center=(c["x"], c["y"]), zoom=d["zoom"],
        )


@dataclass(frozen=True)
class CameraPlan:
    """Ordered keyframes describing virtual pan/zoom over a whole clip.

    Keyframe times are strictly increasing, start at 0 and end at
    ``duration`` when produced by the planner.
    """
    source_size: Size
    keyframes: Tuple[CameraKeyframe, ...]
    duration: float

    @property
    def is_empty(self) -> bool:
        return not self.keyframes

    def to_dict(self) -> dict:
        return {
            "sourceSize": {"width": self.source_size[0], "height": self.source_size[1]},
            "keyframes": [k.to_dict() for k in self.keyframes],
            "duration": self.duration,
        }

    @staticmethod
    def from_dict(d: dict) -> "CameraPlan":
        size = d["sourceSize"]
        return CameraPlan(
            source_size=(size["width"], size["height"]),
            keyframes=tuple(CameraKeyframe.from_dict(k) for k in d["keyframes"]),
            duration=d["duration"],
        )


# ── Capture metadata ───────────────────────────────────────────────

CAPTURE_DISPLAY = "display"
CAPTURE_WINDOW = "window"


@dataclass(frozen=True)
class CaptureRect:
    """Captured content rectangle in screen points (bottom-left origin)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @staticmethod
    def from_dict(d: dict) -> "CaptureRect":
        return CaptureRect(x=d["x"], y=d["y"], width=d["width"], height=d["height"])


@dataclass(frozen=True)
class CaptureMetadata:
    """Where the recording came from and how points map to pixels."""
    source: str
    content_rect: CaptureRect
    pixel_scale: float

    @property
    def pixel_size(self) -> Size:
        return (
            self.content_rect.width * self.pixel_scale,
            self.content_rect.height * self.pixel_scale,
        )

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "contentRect": self.content_rect.to_dict(),
            "pixelScale": self.pixel_scale,
        }

    @staticmethod
    def from_dict(d: dict) -> "CaptureMetadata":
        return CaptureMetadata(
            source=d.get("source", CAPTURE_DISPLAY),
            content_rect=CaptureRect.from_dict(d["contentRect"]),
            pixel_scale=d.get("pixelScale", 1.0),
        )
