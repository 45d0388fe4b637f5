"""
TIC link health file for container healthchecks.

The meter emits a frame every couple of seconds, so the file answers two
questions a probe cares about: is the link still delivering records
(``last_record_ts``), and is the broker taking them (``last_publish_ts``).
``dropped_frames`` is the running total of frames that produced no record;
it climbs even when no record gets through, which is the signature of a
noisy line or a wrong separator setting.

The document is replaced atomically, so a probe never reads a torn file.

CHANGELOG:
- 2026-10-18: Initial creation
- 2026-10-18: Single update() call per event, atomic replace, drop-only updates

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class HealthWriter:
    """Keeps the health JSON file in step with the read loop.

    Args:
        path: Health file location. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._state: dict[str, Any] = {
            "last_record_ts": None,
            "last_publish_ts": None,
            "dropped_frames": 0,
        }

    @property
    def state(self) -> dict[str, Any]:
        """Copy of the document last written (or about to be)."""
        return dict(self._state)

    def update(
        self,
        *,
        record: bool = False,
        published: bool = False,
        dropped_frames: int | None = None,
    ) -> bool:
        """Apply one read-loop event and rewrite the file once.

        Args:
            record: A record was decoded now.
            published: That record was accepted by the broker.
            dropped_frames: New running total of dropped frames, if known.

        Returns:
            True if the file was rewritten, False if nothing changed.
        """
        now = datetime.now(tz=UTC).isoformat()
        changed = False
        if record:
            self._state["last_record_ts"] = now
            changed = True
        if published:
            self._state["last_publish_ts"] = now
            changed = True
        if dropped_frames is not None and dropped_frames != self._state["dropped_frames"]:
            self._state["dropped_frames"] = dropped_frames
            changed = True

        if changed:
            self._write()
        return changed

    def _write(self) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(self._state))
        tmp.replace(self.path)
