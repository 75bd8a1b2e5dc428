"""
Lifecycle control for the external speech engine process.

A single ProcessController owns at most one speech process at a time.  It
starts the engine without waiting for it, suspends and continues it with
SIGSTOP/SIGCONT where the platform has them, and hard-kills it on request.
Oversized texts are handed to the engine through a temporary spill file,
which is removed as soon as the controller sees the process gone.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from lector.config import (
    DEFAULT_EXECUTABLE,
    DEFAULT_SPEED,
    SPILL_ENCODING,
    SPILL_SUFFIX,
    SPILL_THRESHOLD,
    parse_speed,
)
from lector.exceptions import (
    EngineStartError,
    NoActiveProcessError,
    SpawnRefusedError,
)

logger = logging.getLogger(__name__)

# Pause/resume/toggle only exist where the OS can suspend a process.
# SIGTSTP is not enough: the engine may ignore it, SIGSTOP cannot be caught.
SUPPORTS_SUSPEND = hasattr(signal, "SIGSTOP") and hasattr(signal, "SIGCONT")

_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)
_PROC_DIR = Path("/proc")


class ProcessState(Enum):
    """Run state of the speech process as tracked by the controller."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    TERMINATED = "terminated"


@dataclass
class ProcessHandle:
    """Record of the speech engine process owned by a controller."""

    pid: int
    state: ProcessState = ProcessState.RUNNING
    spill_path: str | None = None
    started_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    # None when the handle was restored from disk by another interpreter
    process: subprocess.Popen | None = field(default=None, repr=False, compare=False)


def _read_status_code(pid: int) -> str | None:
    """Return the one-letter OS state code for pid, or None if it is gone."""
    if _PROC_DIR.is_dir():
        try:
            raw = (_PROC_DIR / str(pid) / "stat").read_text()
        except OSError:
            return None
        # "pid (comm) S ..."; comm may itself contain spaces or parentheses
        fields = raw.rsplit(")", 1)[-1].split()
        return fields[0] if fields else None

    try:
        result = subprocess.run(
            ["ps", "-o", "stat=", "-p", str(pid)],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.debug("Cannot query process status with ps: %s", e)
        return None
    code = result.stdout.strip()
    return code[:1] or None


def process_status(pid: int, process: subprocess.Popen | None = None) -> ProcessState:
    """
    Query the OS for the current run state of a process.

    Args:
        pid: Process id to inspect
        process: Popen object for pid when this interpreter started it; used
            to reap a finished child before looking at the OS

    Returns:
        RUNNING, PAUSED (stopped by a signal) or TERMINATED (gone or zombie)
    """
    if process is not None and process.poll() is not None:
        return ProcessState.TERMINATED

    if os.name != "posix":
        # No stopped state to observe; trust the Popen object when we have one
        return ProcessState.RUNNING if process is not None else ProcessState.TERMINATED

    code = _read_status_code(pid)
    if code is None or code in ("Z", "X", "x"):
        return ProcessState.TERMINATED
    if code in ("T", "t"):
        return ProcessState.PAUSED
    return ProcessState.RUNNING


class ProcessController:
    """Owner of the single speech engine process.

    Usage::

        controller = ProcessController(confirm_replace=lambda handle: True)
        controller.spawn("Hello there", speed=160)
        controller.pause()
        controller.resume()
        controller.terminate()

    ``store`` is an optional persistence object with ``load``/``save``/
    ``clear`` methods (see ``lector.state.HandleStore``) so a handle survives
    across short-lived interpreters such as CLI invocations.
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        default_speed: int = DEFAULT_SPEED,
        confirm_replace: Callable[[ProcessHandle], bool] | None = None,
        store=None,
        spill_threshold: int = SPILL_THRESHOLD,
    ) -> None:
        """
        Initialize the controller.

        Args:
            executable: Speech engine executable name or path
            default_speed: Speed used when spawn() gets none
            confirm_replace: Asked whether a live process may be replaced;
                when None, replacement is always refused
            store: Optional handle persistence
            spill_threshold: Texts longer than this go through a spill file

        Raises:
            InvalidSpeedError: If default_speed is not a positive integer
            StateCorruptedError: If the store holds an unreadable handle
        """
        self.executable = executable
        self.default_speed = parse_speed(default_speed)
        self.confirm_replace = confirm_replace
        self.store = store
        self.spill_threshold = spill_threshold
        # Reentrant: spawn() and toggle() call other locked methods
        self._lock = threading.RLock()
        self._handle: ProcessHandle | None = store.load() if store is not None else None

    @property
    def handle(self) -> ProcessHandle | None:
        return self._handle

    @property
    def state(self) -> ProcessState:
        """Tracked state without querying the OS."""
        return self._handle.state if self._handle is not None else ProcessState.IDLE

    # Helpers

    def _persist(self) -> None:
        if self.store is None:
            return
        if self._handle is None:
            self.store.clear()
        else:
            self.store.save(self._handle)

    @staticmethod
    def _remove_spill(path: str | None) -> None:
        if not path:
            return
        try:
            Path(path).unlink(missing_ok=True)
            logger.debug("Removed spill file %s", path)
        except OSError as e:
            logger.warning("Could not remove spill file %s: %s", path, e)

    def _release(self, handle: ProcessHandle) -> None:
        """Forget a handle whose process is gone and reclaim its spill file."""
        handle.state = ProcessState.TERMINATED
        self._remove_spill(handle.spill_path)
        if self._handle is handle:
            self._handle = None
            self._persist()

    def refresh(self) -> ProcessState:
        """
        Synchronise the handle with the OS-reported process status.

        A process that exited on its own is released here.

        Returns:
            The refreshed state (IDLE when there is no live process)
        """
        with self._lock:
            handle = self._handle
            if handle is None:
                return ProcessState.IDLE

            status = process_status(handle.pid, handle.process)
            if status is ProcessState.TERMINATED:
                logger.debug("Speech process %d is no longer running", handle.pid)
                self._release(handle)
                return ProcessState.IDLE

            if status is not handle.state:
                handle.state = status
                self._persist()
            return status

    def build_command(self, text: str, speed: int) -> tuple[list[str], str | None]:
        """
        Build the engine invocation for a text.

        Texts longer than the spill threshold are written to a fresh
        temporary file passed with ``-f``; shorter ones go as the last
        argument.

        Args:
            text: Normalized text to speak
            speed: Engine speed

        Returns:
            Tuple of (argv, spill file path or None)
        """
        command = [self.executable, "-s", str(speed)]
        if len(text) <= self.spill_threshold:
            return command + [text], None

        with tempfile.NamedTemporaryFile(
            "w",
            encoding=SPILL_ENCODING,
            suffix=SPILL_SUFFIX,
            prefix="lector-",
            delete=False,
        ) as spill:
            spill.write(text)
        logger.debug("Wrote %d characters to spill file %s", len(text), spill.name)
        return command + ["-f", spill.name], spill.name

    # Lifecycle

    def spawn(self, text: str, speed: int | None = None) -> ProcessHandle:
        """
        Start speaking text; returns without waiting for speech to finish.

        Args:
            text: Normalized text to speak
            speed: Engine speed (default: the controller's default speed)

        Returns:
            Handle of the new running process

        Raises:
            SpawnRefusedError: If a process is live and replacing it was declined
            EngineStartError: If the engine executable cannot be started
            InvalidSpeedError: If speed is not a positive integer
        """
        speed = self.default_speed if speed is None else parse_speed(speed)

        with self._lock:
            if self.refresh() is not ProcessState.IDLE:
                current = self._handle
                if self.confirm_replace is None or not self.confirm_replace(current):
                    raise SpawnRefusedError(current.pid)
                logger.info("Replacing speech process %d", current.pid)
                self.terminate(missing_ok=True)

            argv, spill_path = self.build_command(text, speed)
            try:
                process = subprocess.Popen(
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as e:
                self._remove_spill(spill_path)
                raise EngineStartError(self.executable, e) from e

            self._handle = ProcessHandle(pid=process.pid, spill_path=spill_path, process=process)
            self._persist()
            logger.info(
                "Started speech process %d at speed %d (%s)",
                process.pid,
                speed,
                "spill file" if spill_path else "inline text",
            )
            return self._handle

    def terminate(self, missing_ok: bool = False) -> None:
        """
        Hard-kill the speech process and clear the handle.

        Args:
            missing_ok: Succeed silently when no process is active

        Raises:
            NoActiveProcessError: If no process is active and missing_ok is False
        """
        with self._lock:
            handle = self._handle
            if handle is None:
                if missing_ok:
                    return
                raise NoActiveProcessError("terminate")

            try:
                if handle.process is not None:
                    handle.process.kill()
                else:
                    os.kill(handle.pid, _KILL_SIGNAL)
            except ProcessLookupError:
                # Exited on its own in the meantime
                logger.debug("Speech process %d was already gone", handle.pid)

            if handle.process is not None:
                try:
                    handle.process.wait(timeout=1)
                except subprocess.TimeoutExpired:
                    logger.warning("Speech process %d did not exit after SIGKILL", handle.pid)

            self._release(handle)
            logger.info("Terminated speech process %d", handle.pid)

    if SUPPORTS_SUSPEND:

        def _live_handle(self, operation: str) -> ProcessHandle:
            if self.refresh() is ProcessState.IDLE:
                raise NoActiveProcessError(operation)
            return self._handle

        def _signal(self, handle: ProcessHandle, signum: int, operation: str) -> None:
            try:
                os.kill(handle.pid, signum)
            except ProcessLookupError as e:
                self._release(handle)
                raise NoActiveProcessError(operation) from e
            logger.debug("Sent %s to speech process %d", signal.Signals(signum).name, handle.pid)

        def pause(self) -> ProcessHandle:
            """
            Suspend the speech process with SIGSTOP.

            Raises:
                NoActiveProcessError: If no process is active
            """
            with self._lock:
                handle = self._live_handle("pause")
                self._signal(handle, signal.SIGSTOP, "pause")
                handle.state = ProcessState.PAUSED
                self._persist()
                return handle

        def resume(self) -> ProcessHandle:
            """
            Continue a suspended speech process with SIGCONT.

            Raises:
                NoActiveProcessError: If no process is active
            """
            with self._lock:
                handle = self._live_handle("resume")
                self._signal(handle, signal.SIGCONT, "resume")
                handle.state = ProcessState.RUNNING
                self._persist()
                return handle

        def toggle(self) -> ProcessState:
            """
            Pause a running process or resume a stopped one.

            The decision follows the OS-reported status, not the tracked
            state.  A process found gone is released and IDLE is returned.

            Returns:
                State after the toggle

            Raises:
                NoActiveProcessError: If there is no handle at all
            """
            with self._lock:
                handle = self._handle
                if handle is None:
                    raise NoActiveProcessError("toggle")

                status = process_status(handle.pid, handle.process)
                if status is ProcessState.PAUSED:
                    return self.resume().state
                if status is ProcessState.RUNNING:
                    return self.pause().state

                self._release(handle)
                return ProcessState.IDLE
