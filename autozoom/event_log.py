"""Input event log files — save / load the ``events.json`` of a recording.

The file is a JSON object::

    {"schemaVersion": 1, "events": [{"type": ..., "timestamp": ..., "position": {...}}]}

Events with a type this version does not know are skipped with a
warning so logs from newer recorders still plan.
"""

import json
import logging
import os

from .models import EVENT_LOG_SCHEMA_VERSION, InputEvent, InputEventLog

logger = logging.getLogger(__name__)

EVENT_LOG_NAME = "events.json"


def save_event_log(output_path: str, log: InputEventLog) -> str:
    """Write *log* to *output_path* atomically.  Returns the path."""
    tmp_path = output_path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(log.to_json())
    os.replace(tmp_path, output_path)
    return output_path


def load_event_log(input_path: str) -> InputEventLog:
    """Read an event log written by :func:`save_event_log`.

    Raises ``ValueError`` if the file is not a valid event log.
    """
    with open(input_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Not a valid event log: {input_path}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("events"), list):
        raise ValueError(f"Event log missing events: {input_path}")

    version = data.get("schemaVersion", EVENT_LOG_SCHEMA_VERSION)
    if not isinstance(version, int) or version > EVENT_LOG_SCHEMA_VERSION:
        raise ValueError(f"Unsupported event log schema version: {version!r}")

    events = []
    skipped = 0
    for raw in data["events"]:
        try:
            events.append(InputEvent.from_dict(raw))
        except (KeyError, TypeError, ValueError) as exc:
            skipped += 1
            logger.warning("Skipping malformed event %r: %s", raw, exc)

    logger.info(
        "Loaded %d events from %s (%d skipped)", len(events), input_path, skipped,
    )
    return InputEventLog(events=events, schema_version=version)
