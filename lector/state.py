"""
Persisted speech process handle.

Every ``lector`` CLI call runs in a fresh interpreter, so the handle of the
speech process started by ``lector speak`` is written to a small JSON file
that later ``pause``/``resume``/``stop`` calls load again.  The file lives
under the XDG state directory (``~/.local/state/lector`` by default).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from lector.config import STATE_DIR, STATE_FILE_NAME
from lector.exceptions import StateCorruptedError
from lector.process_controller import ProcessHandle, ProcessState

logger = logging.getLogger(__name__)

# Current state schema version.  Bump when the serialised format changes
# in a backwards-incompatible way.
STATE_SCHEMA_VERSION = 1


@dataclass
class HandleRecord:
    """Serialisable form of a ProcessHandle."""

    version: int
    pid: int
    state: str
    spill_path: str | None
    started_at: str

    @classmethod
    def from_handle(cls, handle: ProcessHandle) -> HandleRecord:
        return cls(
            version=STATE_SCHEMA_VERSION,
            pid=handle.pid,
            state=handle.state.value,
            spill_path=handle.spill_path,
            started_at=handle.started_at,
        )

    def to_handle(self) -> ProcessHandle:
        return ProcessHandle(
            pid=self.pid,
            state=ProcessState(self.state),
            spill_path=self.spill_path,
            started_at=self.started_at,
        )


class HandleStore:
    """Load and save the speech process handle as JSON.

    Usage::

        store = HandleStore()
        controller = ProcessController(store=store)
    """

    def __init__(self, state_dir: str | Path | None = None) -> None:
        self.path = self._resolve_state_dir(state_dir) / STATE_FILE_NAME

    @staticmethod
    def _resolve_state_dir(override: str | Path | None) -> Path:
        """Return the state directory, respecting XDG and overrides."""
        if override is not None:
            return Path(override).expanduser()
        if STATE_DIR is not None:
            return Path(STATE_DIR).expanduser()
        xdg = os.environ.get("XDG_STATE_HOME")
        if xdg:
            return Path(xdg) / "lector"
        return Path.home() / ".local" / "state" / "lector"

    def save(self, handle: ProcessHandle) -> None:
        """Atomically write the handle to disk.

        Uses write-to-tmp + ``os.replace`` to avoid partial writes.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(HandleRecord.from_handle(handle)), indent=2))
        os.replace(tmp, self.path)
        logger.debug("Handle saved: %s", self.path)

    def load(self) -> ProcessHandle | None:
        """Load the saved handle, or return ``None``.

        Raises:
            StateCorruptedError: If the file exists but cannot be parsed
                or has an incompatible schema version.
        """
        if not self.path.exists():
            return None

        try:
            raw = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            raise StateCorruptedError(str(self.path), f"Cannot read JSON: {exc}") from exc

        if not isinstance(raw, dict):
            raise StateCorruptedError(str(self.path), "Expected a JSON object")

        version = raw.get("version")
        if version != STATE_SCHEMA_VERSION:
            raise StateCorruptedError(
                str(self.path),
                f"Unsupported schema version {version} (expected {STATE_SCHEMA_VERSION})",
            )

        try:
            return HandleRecord(**raw).to_handle()
        except (TypeError, ValueError) as exc:
            raise StateCorruptedError(str(self.path), f"Invalid handle data: {exc}") from exc

    def clear(self) -> None:
        """Delete the saved handle if present."""
        if self.path.exists():
            self.path.unlink()
            logger.debug("Handle cleared: %s", self.path)
