"""Virtual camera planner — turns input activity into a camera plan.

Pipeline for one clip:

1. Extract attention samples (clicks, dwells, thinned motion).
2. Map samples to focus targets and pin the timeline with anchors at
   ``t = 0`` and ``t = duration`` so the plan always covers the clip.
3. Debounce: targets closer than ``minimum_keyframe_interval`` collapse
   to the strongest one (anchor > click > dwell > motion, then
   intensity, then the later target).
4. Synthesize a keyframe per target: zoom grows with intensity, the
   view center keeps the target inside the viewport's safe window.
5. Limit pan speed and acceleration with a left-to-right fold over
   ``(previous keyframe, previous velocity)``.

The planner has no state besides its extractor; ``plan()`` is a pure
function of its arguments, so results may be cached by input hash.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, List, NamedTuple, Optional

from .attention import AttentionExtractor
from .constraints import ZoomConstraints, default_constraints
from .models import (
    AttentionSample,
    CameraKeyframe,
    CameraPlan,
    InputEvent,
    Point,
    Size,
)

logger = logging.getLogger(__name__)

MIN_DELTA_TIME = 0.0001  # floor for Δt in the pan fold (s)


@dataclass(frozen=True)
class FocusTarget:
    """A candidate point of interest on the timeline."""
    time: float
    position: Point
    intensity: float
    is_click: bool = False
    is_dwell: bool = False
    is_anchor: bool = False

    @staticmethod
    def from_sample(sample: AttentionSample) -> "FocusTarget":
        return FocusTarget(
            time=max(sample.time, 0.0),
            position=sample.position,
            intensity=sample.intensity,
            is_click=sample.is_click,
            is_dwell=sample.is_dwell,
        )

    def as_anchor(self) -> "FocusTarget":
        return replace(self, is_anchor=True)


def _midpoint(source_size: Size) -> Point:
    return (source_size[0] / 2, source_size[1] / 2)


# ── Anchors ─────────────────────────────────────────────────────────


def anchor_targets(
    targets: List[FocusTarget],
    source_size: Size,
    duration: float,
    minimum_interval: float,
) -> List[FocusTarget]:
    """Force anchor targets at ``t = 0`` and ``t = duration``.

    The start anchor copies the first target only when that target is
    within one keyframe interval of zero, otherwise it is a neutral,
    centered anchor.  The end anchor always copies the last target's
    position and intensity but keeps its click/dwell flags only when the
    target is within one interval of the end.
    """
    if not targets:
        return []
    targets = list(targets)

    first = targets[0]
    if first.time == 0:
        targets[0] = first.as_anchor()
    elif first.time <= minimum_interval:
        targets.insert(0, replace(first, time=0.0, is_anchor=True))
    else:
        targets.insert(0, FocusTarget(
            time=0.0, position=_midpoint(source_size), intensity=0.0, is_anchor=True,
        ))

    last = targets[-1]
    if last.time == duration:
        targets[-1] = last.as_anchor()
    else:
        near_end = duration - last.time <= minimum_interval
        targets.append(FocusTarget(
            time=duration,
            position=last.position,
            intensity=last.intensity,
            is_click=last.is_click if near_end else False,
            is_dwell=last.is_dwell if near_end else False,
            is_anchor=True,
        ))

    logger.debug("Anchored %d targets over %.3fs", len(targets), duration)
    return targets


# ── Debounce ────────────────────────────────────────────────────────


def _target_priority(target: FocusTarget) -> int:
    if target.is_anchor:
        return 3
    if target.is_click:
        return 2
    if target.is_dwell:
        return 1
    return 0


def pick_best_target(first: FocusTarget, second: FocusTarget) -> FocusTarget:
    """Stronger of two targets; on a full tie the later (*second*) wins."""
    p1, p2 = _target_priority(first), _target_priority(second)
    if p2 != p1:
        return second if p2 > p1 else first
    return second if second.intensity >= first.intensity else first


def coalesce_targets(targets: List[FocusTarget]) -> List[FocusTarget]:
    """Merge time-sorted targets that share an identical timestamp."""
    if not targets:
        return []
    result: List[FocusTarget] = []
    current = targets[0]
    for target in targets[1:]:
        if target.time == current.time:
            current = pick_best_target(current, target)
        else:
            result.append(current)
            current = target
    result.append(current)
    return result


def reduce_targets(targets: List[FocusTarget], minimum_interval: float) -> List[FocusTarget]:
    """Keep one target per ``minimum_interval`` bucket, then coalesce.

    A bucket opens at its first target and takes every following target
    less than ``minimum_interval`` later.  An anchor never joins a bucket
    already held by the other anchor, so a clip shorter than one interval
    still keeps both ends.
    """
    if minimum_interval <= 0:
        return coalesce_targets(targets)
    if not targets:
        return []

    reduced: List[FocusTarget] = []
    bucket_start = targets[0].time
    bucket_best = targets[0]

    for target in targets[1:]:
        both_anchors = (
            target.is_anchor and bucket_best.is_anchor and target.time != bucket_best.time
        )
        if target.time - bucket_start < minimum_interval and not both_anchors:
            bucket_best = pick_best_target(bucket_best, target)
        else:
            reduced.append(bucket_best)
            bucket_start = target.time
            bucket_best = target
    reduced.append(bucket_best)

    result = coalesce_targets(reduced)
    logger.debug("Debounce: %d targets -> %d", len(targets), len(result))
    return result


# ── Keyframe synthesis ──────────────────────────────────────────────


def make_keyframe(
    target: FocusTarget, source_size: Size, constraints: ZoomConstraints,
) -> CameraKeyframe:
    """Zoom by intensity and frame the target inside the safe window."""
    base_zoom = max(1.0, constraints.base_zoom)
    max_zoom = constraints.clamped_zoom(constraints.max_zoom)
    intensity = min(max(target.intensity, 0.0), 1.0)
    zoom = constraints.clamped_zoom(base_zoom + (max_zoom - base_zoom) * intensity)
    focus = constraints.clamped_target(target.position, source_size)
    center = constraints.bias_view_center_toward_target(focus, source_size, zoom)
    return CameraKeyframe(time=target.time, center=center, zoom=zoom)


# ── Pan / acceleration limiting ─────────────────────────────────────


class PanState(NamedTuple):
    """Accumulator of the pan fold: last emitted keyframe and its velocity."""
    keyframe: CameraKeyframe
    velocity: Point  # px/s


def _scaled_to(vec: Point, length: float) -> Point:
    magnitude = math.hypot(vec[0], vec[1])
    if magnitude <= 0:
        return (0.0, 0.0)
    factor = length / magnitude
    return (vec[0] * factor, vec[1] * factor)


def initial_pan_state(
    keyframe: CameraKeyframe, source_size: Size, constraints: ZoomConstraints,
) -> PanState:
    center = constraints.clamp_view_center(keyframe.center, source_size, keyframe.zoom)
    return PanState(replace(keyframe, center=center), (0.0, 0.0))


def pan_step(
    state: PanState,
    keyframe: CameraKeyframe,
    source_size: Size,
    constraints: ZoomConstraints,
) -> PanState:
    """Move from ``state`` toward *keyframe* within speed/acceleration limits."""
    previous, previous_velocity = state
    dt = max(keyframe.time - previous.time, MIN_DELTA_TIME)
    px, py = previous.center

    delta = (keyframe.center[0] - px, keyframe.center[1] - py)
    max_distance = constraints.max_pan_speed * dt
    if math.hypot(delta[0], delta[1]) > max_distance:
        delta = _scaled_to(delta, max_distance)
    desired = (px + delta[0], py + delta[1])

    velocity = (delta[0] / dt, delta[1] / dt)
    dv = (velocity[0] - previous_velocity[0], velocity[1] - previous_velocity[1])
    max_dv = constraints.max_pan_acceleration * dt
    if math.hypot(dv[0], dv[1]) > max_dv:
        limited = _scaled_to(dv, max_dv)
        velocity = (previous_velocity[0] + limited[0], previous_velocity[1] + limited[1])
        desired = (px + velocity[0] * dt, py + velocity[1] * dt)

    center = constraints.clamp_view_center(desired, source_size, keyframe.zoom)
    return PanState(replace(keyframe, center=center), velocity)


def apply_pan_constraints(
    keyframes: List[CameraKeyframe],
    source_size: Size,
    constraints: ZoomConstraints,
) -> List[CameraKeyframe]:
    """Fold :func:`pan_step` over *keyframes*, collecting every state."""
    if not keyframes:
        return []
    state = initial_pan_state(keyframes[0], source_size, constraints)
    adjusted = [state.keyframe]
    for keyframe in keyframes[1:]:
        state = pan_step(state, keyframe, source_size, constraints)
        adjusted.append(state.keyframe)
    return adjusted


# ── Planner ─────────────────────────────────────────────────────────


def idle_keyframes(source_size: Size, duration: float, zoom: float) -> List[CameraKeyframe]:
    """Static centered camera for clips without any attention signal."""
    center = _midpoint(source_size)
    keyframes = [CameraKeyframe(time=0.0, center=center, zoom=zoom)]
    if duration > 0:
        keyframes.append(CameraKeyframe(time=duration, center=center, zoom=zoom))
    return keyframes


class VirtualCameraPlanner:
    """Builds :class:`CameraPlan` objects from recorded input events."""

    def __init__(self, extractor: Optional[AttentionExtractor] = None) -> None:
        self.extractor = extractor or AttentionExtractor()

    def plan(
        self,
        events: Iterable[InputEvent],
        source_size: Size,
        duration: float,
        constraints: Optional[ZoomConstraints] = None,
    ) -> CameraPlan:
        """Plan the camera for a whole clip.  Never raises on odd input."""
        c = constraints or default_constraints()
        events = list(events)
        effective_duration = max(duration, max((e.timestamp for e in events), default=0.0))
        samples = self.extractor.samples(events, c)

        if not samples:
            keyframes = idle_keyframes(
                source_size, effective_duration, c.clamped_zoom(c.idle_zoom),
            )
            logger.info(
                "Camera plan: no attention in %d events, idle plan over %.3fs",
                len(events), effective_duration,
            )
            return CameraPlan(source_size, tuple(keyframes), effective_duration)

        minimum_interval = max(0.0, c.minimum_keyframe_interval)
        targets = anchor_targets(
            [FocusTarget.from_sample(s) for s in samples],
            source_size, effective_duration, minimum_interval,
        )
        reduced = reduce_targets(targets, minimum_interval)
        raw = [make_keyframe(t, source_size, c) for t in reduced]
        keyframes = apply_pan_constraints(raw, source_size, c)

        logger.info(
            "Camera plan: %d events, %d samples, %d targets -> %d keyframes over %.3fs",
            len(events), len(samples), len(targets), len(keyframes), effective_duration,
        )
        return CameraPlan(source_size, tuple(keyframes), effective_duration)


def plan_camera(
    events: Iterable[InputEvent],
    source_size: Size,
    duration: float,
    constraints: Optional[ZoomConstraints] = None,
) -> CameraPlan:
    """Shortcut for ``VirtualCameraPlanner().plan(...)``."""
    return VirtualCameraPlanner().plan(events, source_size, duration, constraints)
