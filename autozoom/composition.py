"""Composition builder — maps a camera plan onto a transform timeline.

The output is what a video compositor consumes: the transform in effect
at ``t = 0`` followed by ordered, non-overlapping, gapless linear ramps
between affine transforms.  Transforms are :class:`QTransform` values
and follow Qt's convention: ``a * b`` applies ``a`` first, then ``b``.

Per keyframe the layer transform is::

    camera(k) * base

``camera(k)`` works in source pixels: it moves ``k.center`` to the
source center and scales by ``k.zoom`` around it.  ``base`` orients the
track, aspect-fits it into the render size and centers it.

The builder never performs I/O; track metadata (natural size, preferred
transform, duration) is loaded by the caller beforehand.
"""

import bisect
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from PySide6.QtCore import QRectF
from PySide6.QtGui import QTransform

from .models import CameraKeyframe, CameraPlan, Size

logger = logging.getLogger(__name__)


@dataclass
class TransformRamp:
    """Linear interpolation between two transforms over ``[start, end]``."""
    start_time: float
    end_time: float
    start_transform: QTransform
    end_transform: QTransform

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def is_static(self) -> bool:
        return self.start_transform == self.end_transform


@dataclass
class VideoComposition:
    """Transform timeline for a single video track."""
    render_size: Size
    frame_duration: float  # seconds per output frame
    duration: float
    initial_transform: QTransform
    ramps: List[TransformRamp] = field(default_factory=list)

    def transform_at(self, time: float) -> QTransform:
        """Transform in effect at *time*, interpolating inside a ramp."""
        if not self.ramps or time <= self.ramps[0].start_time:
            return QTransform(self.initial_transform)
        starts = [r.start_time for r in self.ramps]
        idx = bisect.bisect_right(starts, time) - 1
        ramp = self.ramps[idx]
        if time >= ramp.end_time or ramp.duration <= 0:
            return QTransform(ramp.end_transform)
        progress = (time - ramp.start_time) / ramp.duration
        return interpolate_transform(ramp.start_transform, ramp.end_transform, progress)

    def frame_times(self) -> np.ndarray:
        """Presentation times of every output frame over ``[0, duration)``."""
        n_frames = max(1, int(math.ceil(self.duration / self.frame_duration - 1e-9)))
        return np.arange(n_frames, dtype=np.float64) * self.frame_duration

    def frame_matrices(self) -> np.ndarray:
        """Per-frame 2×3 affine matrices, shape ``(n_frames, 2, 3)``.

        Matrices use the column-vector layout ``[[a, c, tx], [b, d, ty]]``
        expected by renderers that warp frames themselves.
        """
        times = self.frame_times()
        if not self.ramps:
            return np.repeat(to_affine_matrix(self.initial_transform)[None], len(times), axis=0)

        starts = np.array([r.start_time for r in self.ramps])
        spans = np.array([r.duration for r in self.ramps])
        m_start = np.stack([to_affine_matrix(r.start_transform) for r in self.ramps])
        m_end = np.stack([to_affine_matrix(r.end_transform) for r in self.ramps])

        idx = np.clip(np.searchsorted(starts, times, side="right") - 1, 0, len(self.ramps) - 1)
        safe_spans = np.where(spans[idx] > 0, spans[idx], 1.0)
        progress = np.where(spans[idx] > 0, (times - starts[idx]) / safe_spans, 1.0)
        progress = np.clip(progress, 0.0, 1.0)[:, None, None]
        return m_start[idx] + (m_end[idx] - m_start[idx]) * progress


# ── Transform helpers ───────────────────────────────────────────────


def to_affine_matrix(t: QTransform) -> np.ndarray:
    """``QTransform`` → 2×3 numpy matrix (column-vector layout)."""
    return np.array([
        [t.m11(), t.m21(), t.dx()],
        [t.m12(), t.m22(), t.dy()],
    ], dtype=np.float64)


def interpolate_transform(a: QTransform, b: QTransform, progress: float) -> QTransform:
    """Component-wise linear blend of two affine transforms."""
    f = min(max(progress, 0.0), 1.0)

    def lerp(x: float, y: float) -> float:
        return x + (y - x) * f

    return QTransform(
        lerp(a.m11(), b.m11()), lerp(a.m12(), b.m12()),
        lerp(a.m21(), b.m21()), lerp(a.m22(), b.m22()),
        lerp(a.dx(), b.dx()), lerp(a.dy(), b.dy()),
    )


def camera_transform(keyframe: CameraKeyframe, source_size: Size) -> QTransform:
    """Window centered on ``keyframe.center`` at ``keyframe.zoom``, in source pixels."""
    zoom = max(1.0, keyframe.zoom)
    cx, cy = keyframe.center
    return (
        QTransform.fromTranslate(-cx, -cy)
        * QTransform.fromScale(zoom, zoom)
        * QTransform.fromTranslate(source_size[0] / 2, source_size[1] / 2)
    )


def base_transform(
    preferred_transform: QTransform, natural_size: Size, render_size: Size,
) -> QTransform:
    """Orient the track, then aspect-fit and center it in *render_size*."""
    oriented = preferred_transform.mapRect(QRectF(0, 0, natural_size[0], natural_size[1]))
    ow, oh = oriented.width(), oriented.height()
    rw, rh = render_size
    if ow <= 0 or oh <= 0:
        return QTransform(preferred_transform)

    scale = min(rw / ow, rh / oh)
    tx = (rw - ow * scale) / 2
    ty = (rh - oh * scale) / 2
    return (
        preferred_transform
        * QTransform.fromTranslate(-oriented.x(), -oriented.y())
        * QTransform.fromScale(scale, scale)
        * QTransform.fromTranslate(tx, ty)
    )


def _clamp_time(time: float, duration: float) -> float:
    return min(max(time, 0.0), max(duration, 0.0))


# ── Builder ─────────────────────────────────────────────────────────


def build_composition(
    natural_size: Size,
    preferred_transform: QTransform,
    render_size: Size,
    frame_rate: float,
    track_duration: float,
    plan: Optional[CameraPlan] = None,
) -> Optional[VideoComposition]:
    """Build the transform timeline for one track.

    Returns ``None`` when there is nothing to compose: a degenerate
    render size, or no plan on a track that already matches the render
    size with identity orientation.
    """
    if render_size[0] <= 0 or render_size[1] <= 0:
        logger.debug("Composition skipped: render size %s", render_size)
        return None

    has_plan = plan is not None and not plan.is_empty
    needs_scaling = tuple(natural_size) != tuple(render_size)
    needs_orientation = not preferred_transform.isIdentity()
    if not has_plan and not needs_scaling and not needs_orientation:
        return None

    base = base_transform(preferred_transform, natural_size, render_size)
    frame_duration = 1.0 / max(1, int(round(frame_rate)))
    duration = max(track_duration, 0.0)

    if not has_plan:
        logger.info("Composition: static transform over %.3fs", duration)
        return VideoComposition(
            render_size=render_size,
            frame_duration=frame_duration,
            duration=duration,
            initial_transform=base,
            ramps=[TransformRamp(0.0, duration, base, base)],
        )

    keyframes = sorted(plan.keyframes, key=lambda k: k.time)
    transforms = [camera_transform(k, natural_size) * base for k in keyframes]

    ramps: List[TransformRamp] = []
    first_time = _clamp_time(keyframes[0].time, duration)
    if first_time > 0:
        ramps.append(TransformRamp(0.0, first_time, transforms[0], transforms[0]))

    for i in range(1, len(keyframes)):
        start = _clamp_time(keyframes[i - 1].time, duration)
        end = _clamp_time(keyframes[i].time, duration)
        if end <= start:
            continue
        ramps.append(TransformRamp(start, end, transforms[i - 1], transforms[i]))

    covered = ramps[-1].end_time if ramps else 0.0
    if covered < duration:
        tail = ramps[-1].end_transform if ramps else transforms[0]
        ramps.append(TransformRamp(covered, duration, tail, tail))

    logger.info(
        "Composition: %d keyframes -> %d ramps over %.3fs at %s",
        len(keyframes), len(ramps), duration, render_size,
    )
    return VideoComposition(
        render_size=render_size,
        frame_duration=frame_duration,
        duration=duration,
        initial_transform=transforms[0],
        ramps=ramps,
    )


class CompositionBuilder:
    """Callable wrapper around :func:`build_composition` for renderers."""

    def build(
        self,
        natural_size: Size,
        preferred_transform: QTransform,
        render_size: Size,
        frame_rate: float,
        track_duration: float,
        plan: Optional[CameraPlan] = None,
    ) -> Optional[VideoComposition]:
        return build_composition(
            natural_size, preferred_transform, render_size,
            frame_rate, track_duration, plan,
        )
