"""Shared pytest fixtures for autozoom tests."""

import pytest

from autozoom.constraints import ZoomConstraints, default_constraints
from autozoom.models import (
    InputEvent,
    CURSOR_MOVED,
    MOUSE_DOWN,
    MOUSE_UP,
    BUTTON_LEFT,
)


def move(t: float, x: float, y: float) -> InputEvent:
    return InputEvent(type=CURSOR_MOVED, timestamp=t, x=x, y=y)


def press(t: float, x: float, y: float, button: str = BUTTON_LEFT) -> InputEvent:
    return InputEvent(type=MOUSE_DOWN, timestamp=t, x=x, y=y, button=button)


def release(t: float, x: float, y: float, button: str = BUTTON_LEFT) -> InputEvent:
    return InputEvent(type=MOUSE_UP, timestamp=t, x=x, y=y, button=button)


# ── Geometry / config ───────────────────────────────────────────────

@pytest.fixture
def source_size() -> tuple:
    """A 1920×1080 capture."""
    return (1920.0, 1080.0)


@pytest.fixture
def constraints() -> ZoomConstraints:
    return default_constraints()


# ── Event streams ───────────────────────────────────────────────────

@pytest.fixture
def stationary_track() -> list[InputEvent]:
    """Cursor resting at (300, 200), sampled at 60 Hz for 1s."""
    return [move(i / 60.0, 300.0, 200.0) for i in range(61)]


@pytest.fixture
def fast_sweep() -> list[InputEvent]:
    """Cursor sweeping right at 1200 px/s, sampled at 60 Hz for 1s."""
    return [move(i / 60.0, 100.0 + i * 20.0, 540.0) for i in range(61)]


@pytest.fixture
def session_events() -> list[InputEvent]:
    """4s session: sweep, settle and dwell, click, sweep back."""
    events: list[InputEvent] = []
    for i in range(60):                       # 0-1s sweep to the right
        events.append(move(i / 60.0, 200.0 + i * 25.0, 300.0))
    for i in range(60, 150):                  # 1-2.5s resting at (1675, 300)
        events.append(move(i / 60.0, 1675.0, 300.0))
    events.append(press(2.5, 1675.0, 300.0))
    events.append(release(2.58, 1676.0, 301.0))
    for i in range(156, 240):                 # 2.6-4s sweep down-left
        t = i / 60.0
        events.append(move(t, 1675.0 - (i - 156) * 15.0, 300.0 + (i - 156) * 8.0))
    return events


@pytest.fixture
def click_pair() -> list[InputEvent]:
    """A single left click at (500, 400) around 1s."""
    return [press(1.0, 500.0, 400.0), release(1.08, 501.0, 401.0)]
