"""Plan caching support and capture-space event mapping.

Planning is a pure function of (events, settings, duration, source
size), so the editor keeps the last plan and reuses it while those
inputs are unchanged.  Events are fingerprinted with a 64-bit FNV-1a
combine over their exact float bit patterns; duration and size are
rounded so jitter from asset metadata does not bust the cache.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from .models import (
    CameraPlan,
    CaptureMetadata,
    InputEvent,
    Size,
    BUTTON_LEFT,
    BUTTON_OTHER,
    BUTTON_RIGHT,
    CURSOR_MOVED,
    MOUSE_DOWN,
    MOUSE_UP,
)
from .planner import VirtualCameraPlanner
from .settings import AutoZoomSettings, constraints_for_settings

logger = logging.getLogger(__name__)

FNV_OFFSET_BASIS = 0xCBF29CE484222325
FNV_PRIME = 0x100000001B3
_MASK_64 = 0xFFFFFFFFFFFFFFFF

_EVENT_TYPE_CODES = {CURSOR_MOVED: 1, MOUSE_DOWN: 2, MOUSE_UP: 3}
_BUTTON_CODES = {None: 0, BUTTON_LEFT: 1, BUTTON_RIGHT: 2, BUTTON_OTHER: 3}

DURATION_ROUNDING = 1000  # 1 ms
SIZE_ROUNDING = 100       # 0.01 px


def _float_bits(value: float) -> int:
    return struct.unpack("<Q", struct.pack("<d", float(value)))[0]


def _fnv_combine(h: int, value: int) -> int:
    return ((h ^ value) * FNV_PRIME) & _MASK_64


def events_signature(events: Iterable[InputEvent]) -> int:
    """64-bit fingerprint of an event list (order-sensitive)."""
    h = FNV_OFFSET_BASIS
    for event in events:
        h = _fnv_combine(h, _EVENT_TYPE_CODES.get(event.type, 0))
        h = _fnv_combine(h, _BUTTON_CODES.get(event.button, 0))
        h = _fnv_combine(h, _float_bits(event.timestamp))
        h = _fnv_combine(h, _float_bits(event.x))
        h = _fnv_combine(h, _float_bits(event.y))
    return h


def _rounded(value: float, scale: int) -> float:
    return round(value * scale) / scale


@dataclass(frozen=True)
class CameraPlanCacheKey:
    """Identity of one planning request."""
    events_signature: int
    settings: AutoZoomSettings
    duration: float
    source_size: Size


def make_cache_key(
    events: Iterable[InputEvent],
    settings: AutoZoomSettings,
    duration: float,
    source_size: Size,
) -> CameraPlanCacheKey:
    return CameraPlanCacheKey(
        events_signature=events_signature(events),
        settings=settings.clamped(),
        duration=_rounded(duration, DURATION_ROUNDING),
        source_size=(
            _rounded(source_size[0], SIZE_ROUNDING),
            _rounded(source_size[1], SIZE_ROUNDING),
        ),
    )


def map_events_to_capture_space(
    events: List[InputEvent],
    metadata: CaptureMetadata,
    source_size: Size,
) -> List[InputEvent]:
    """Convert screen points (bottom-left origin) to source pixels.

    Points are made relative to the captured content rect, flipped to a
    top-left origin, scaled by the display's pixel scale and then by the
    ratio between the video's size and the captured pixel size.  Results
    are clamped into the source frame.
    """
    rect = metadata.content_rect
    if rect.width <= 0 or rect.height <= 0:
        return list(events)

    scale = max(0.01, metadata.pixel_scale)
    pixel_w, pixel_h = metadata.pixel_size
    scale_x = source_size[0] / pixel_w if pixel_w > 0 else 1.0
    scale_y = source_size[1] / pixel_h if pixel_h > 0 else 1.0
    max_x = max(0.0, source_size[0])
    max_y = max(0.0, source_size[1])

    mapped: List[InputEvent] = []
    for event in events:
        x = (event.x - rect.x) * scale * scale_x
        y = (rect.max_y - event.y) * scale * scale_y
        mapped.append(InputEvent(
            type=event.type,
            timestamp=event.timestamp,
            x=min(max(x, 0.0), max_x),
            y=min(max(y, 0.0), max_y),
            button=event.button,
        ))
    return mapped


class CameraPlanCache:
    """Remembers the most recent plan and the key it was built for."""

    def __init__(self) -> None:
        self.key: Optional[CameraPlanCacheKey] = None
        self.plan: Optional[CameraPlan] = None

    def lookup(self, key: CameraPlanCacheKey) -> Optional[CameraPlan]:
        if self.key is not None and self.key == key:
            return self.plan
        return None

    def store(self, key: CameraPlanCacheKey, plan: Optional[CameraPlan]) -> None:
        self.key = key
        self.plan = plan

    def clear(self) -> None:
        self.key = None
        self.plan = None

    def get_or_plan(
        self,
        key: CameraPlanCacheKey,
        make_plan: Callable[[], CameraPlan],
    ) -> CameraPlan:
        """Return the cached plan for *key*, building it on a miss."""
        cached = self.lookup(key)
        if cached is not None:
            logger.debug("Plan cache hit (%016x)", key.events_signature)
            return cached
        plan = make_plan()
        self.store(key, plan)
        return plan


def make_camera_plan(
    events: List[InputEvent],
    settings: AutoZoomSettings,
    duration: float,
    source_size: Size,
    metadata: Optional[CaptureMetadata] = None,
    cache: Optional[CameraPlanCache] = None,
    planner: Optional[VirtualCameraPlanner] = None,
) -> Optional[CameraPlan]:
    """Plan the camera for a recording as the editor does.

    Returns ``None`` when auto-zoom is switched off or the video has no
    usable size.  Raw screen-space events are mapped into source pixels
    when capture *metadata* is given, and *cache* is consulted before
    planning.
    """
    s = settings.clamped()
    if not s.is_enabled:
        return None
    if source_size[0] <= 0 or source_size[1] <= 0:
        logger.debug("No camera plan: source size %s", source_size)
        return None

    if metadata is not None:
        events = map_events_to_capture_space(events, metadata, source_size)
    planner = planner or VirtualCameraPlanner()

    def build() -> CameraPlan:
        return planner.plan(events, source_size, duration, constraints_for_settings(s))

    if cache is None:
        return build()
    return cache.get_or_plan(make_cache_key(events, s, duration, source_size), build)
