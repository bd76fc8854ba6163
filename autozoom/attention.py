"""Turn recorded input events into weighted attention samples.

Three kinds of activity are recognised:

1. **Clicks** — a mouse press is the strongest signal.  The matching
   release (same button, close in time and space) is folded into the
   press so one click yields one sample.  A release that does not pair
   up (the end of a drag, a release without a press) is reported on its
   own because the drop point is where the user looks next.

2. **Dwells** — the cursor's speed, exponentially smoothed, stays below
   the dwell threshold for at least ``dwell_duration`` seconds.  One
   sample is emitted when the run qualifies, placed at the mean cursor
   position of the run.  Nothing more is reported until the cursor
   speeds up again.

3. **Motion** — everything else.  Moves are down-weighted and thinned to
   one sample per ``MOTION_SAMPLE_INTERVAL`` so a busy cursor does not
   flood the planner with keyframes.

Samples are returned sorted by time with unique timestamps; samples that
collide are merged keeping click > dwell > motion, then the higher
intensity, then the later one.
"""

import logging
import math
from typing import Iterable, List, Optional

from .constraints import ZoomConstraints, default_constraints
from .models import (
    AttentionSample,
    InputEvent,
    Point,
    CURSOR_MOVED,
    MOUSE_DOWN,
    MOUSE_UP,
)

logger = logging.getLogger(__name__)


# ── Tuning constants ────────────────────────────────────────────────

CLICK_MAX_INTERVAL = 0.5       # press→release gap still counted as one click (s)
CLICK_MAX_DISTANCE = 8.0       # press→release travel still counted as one click (px)
MOTION_SAMPLE_INTERVAL = 0.2   # at most one motion sample per this many seconds
MIN_DELTA_TIME = 0.0001        # floor for speed computation (s)


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _stable_sort(events: Iterable[InputEvent]) -> List[InputEvent]:
    """Sort by timestamp; events sharing a timestamp keep input order."""
    return sorted(events, key=lambda e: e.timestamp)


def _sample_priority(sample: AttentionSample) -> int:
    if sample.is_click:
        return 2
    if sample.is_dwell:
        return 1
    return 0


def _merge_samples(first: AttentionSample, second: AttentionSample) -> AttentionSample:
    """Pick the stronger of two samples sharing a timestamp."""
    p1, p2 = _sample_priority(first), _sample_priority(second)
    if p2 != p1:
        return second if p2 > p1 else first
    return second if second.intensity >= first.intensity else first


def coalesce_samples(samples: List[AttentionSample]) -> List[AttentionSample]:
    """Merge time-sorted samples that share an identical timestamp."""
    if not samples:
        return []
    result: List[AttentionSample] = []
    current = samples[0]
    for sample in samples[1:]:
        if sample.time == current.time:
            current = _merge_samples(current, sample)
        else:
            result.append(current)
            current = sample
    result.append(current)
    return result


class AttentionExtractor:
    """Classifies input activity into click / dwell / motion samples.

    The instance only carries read-only tuning values, so it can be
    shared between planners and threads.
    """

    def __init__(
        self,
        click_max_interval: float = CLICK_MAX_INTERVAL,
        click_max_distance: float = CLICK_MAX_DISTANCE,
        motion_sample_interval: float = MOTION_SAMPLE_INTERVAL,
    ) -> None:
        self.click_max_interval = click_max_interval
        self.click_max_distance = click_max_distance
        self.motion_sample_interval = motion_sample_interval

    def _is_release_of(self, press: InputEvent, release: InputEvent) -> bool:
        return (
            press.button == release.button
            and release.timestamp - press.timestamp <= self.click_max_interval
            and _distance(press.position, release.position) <= self.click_max_distance
        )

    def samples(
        self,
        events: Iterable[InputEvent],
        constraints: Optional[ZoomConstraints] = None,
    ) -> List[AttentionSample]:
        """Return time-ordered attention samples for *events*."""
        c = constraints or default_constraints()
        ordered = _stable_sort(events)
        if not ordered:
            return []

        alpha = _unit(c.velocity_smoothing_alpha)
        threshold = max(0.01, c.dwell_speed_threshold)
        click_intensity = _unit(c.click_intensity)
        dwell_intensity = _unit(c.dwell_intensity)
        motion_intensity = _unit(c.motion_intensity)

        samples: List[AttentionSample] = []
        pending_press: Optional[InputEvent] = None

        previous_move: Optional[InputEvent] = None
        smoothed_speed = 0.0
        run_start: Optional[float] = None
        run_sum_x = run_sum_y = 0.0
        run_count = 0
        dwell_reported = False
        last_motion_time: Optional[float] = None

        n_clicks = n_dwells = n_motion = 0

        for event in ordered:
            if event.type == MOUSE_DOWN:
                samples.append(AttentionSample(
                    time=event.timestamp, position=event.position,
                    intensity=click_intensity, is_click=True,
                ))
                pending_press = event
                n_clicks += 1
                continue

            if event.type == MOUSE_UP:
                press, pending_press = pending_press, None
                if press is not None and self._is_release_of(press, event):
                    continue
                samples.append(AttentionSample(
                    time=event.timestamp, position=event.position,
                    intensity=click_intensity, is_click=True,
                ))
                n_clicks += 1
                continue

            if event.type != CURSOR_MOVED:
                continue

            if previous_move is not None:
                dt = max(event.timestamp - previous_move.timestamp, MIN_DELTA_TIME)
                speed = _distance(previous_move.position, event.position) / dt
                smoothed_speed = alpha * speed + (1.0 - alpha) * smoothed_speed
            previous_move = event

            if smoothed_speed < threshold:
                if run_start is None:
                    run_start = event.timestamp
                    run_sum_x = run_sum_y = 0.0
                    run_count = 0
                run_sum_x += event.x
                run_sum_y += event.y
                run_count += 1
                if dwell_reported:
                    continue
                if event.timestamp - run_start >= c.dwell_duration:
                    dwell_reported = True
                    samples.append(AttentionSample(
                        time=event.timestamp,
                        position=(run_sum_x / run_count, run_sum_y / run_count),
                        intensity=dwell_intensity, is_dwell=True,
                    ))
                    n_dwells += 1
                    continue
            else:
                run_start = None
                dwell_reported = False

            if (
                last_motion_time is None
                or event.timestamp - last_motion_time >= self.motion_sample_interval
            ):
                last_motion_time = event.timestamp
                samples.append(AttentionSample(
                    time=event.timestamp, position=event.position,
                    intensity=motion_intensity,
                ))
                n_motion += 1

        result = coalesce_samples(samples)
        logger.debug(
            "Attention: %d events -> %d samples (%d click, %d dwell, %d motion)",
            len(ordered), len(result), n_clicks, n_dwells, n_motion,
        )
        return result


def extract_samples(
    events: Iterable[InputEvent],
    constraints: Optional[ZoomConstraints] = None,
) -> List[AttentionSample]:
    """Shortcut for ``AttentionExtractor().samples(events, constraints)``."""
    return AttentionExtractor().samples(events, constraints)
