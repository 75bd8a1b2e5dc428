"""
Configuration constants and default settings for Lector.
"""

import os
from dataclasses import dataclass

from lector.exceptions import InvalidSpeedError

# Speech Engine
DEFAULT_EXECUTABLE = "espeak"
DEFAULT_SPEED = 175  # words per minute for espeak

# Spill Files
# Texts longer than this are written to a temporary file and passed with -f
# so the engine invocation stays under the OS command-line length limit.
SPILL_THRESHOLD: int = 30_000  # characters
SPILL_SUFFIX = ".txt"
SPILL_ENCODING = "utf-8"

# Text Normalization
LINK_NOTICE = "Link removed: "

# EPUB Pages
MIN_PAGE_CHARS: int = 100  # shorter document items are not treated as pages

# Host Behaviour
# Whether a successful region speak should move the point to the region end.
# Only the host layer (the CLI) looks at this.
MOVE_POINT: bool = False

# Persisted Handle
STATE_DIR: str | None = None  # None = ~/.local/state/lector (or $XDG_STATE_HOME/lector)
STATE_FILE_NAME = "speech.json"

# Environment overrides
ENV_EXECUTABLE = "LECTOR_EXECUTABLE"
ENV_SPEED = "LECTOR_SPEED"
ENV_MOVE_POINT = "LECTOR_MOVE_POINT"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Values the speak pipeline needs from the configuration layer."""

    executable: str = DEFAULT_EXECUTABLE
    speed: int = DEFAULT_SPEED
    move_point: bool = MOVE_POINT


def parse_speed(value: str | int) -> int:
    """
    Parse and validate an engine speed.

    Args:
        value: Speed as an int or a decimal string

    Returns:
        The speed as a positive integer

    Raises:
        InvalidSpeedError: If the value is not a positive integer
    """
    try:
        speed = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidSpeedError(value) from e
    if isinstance(value, bool) or speed <= 0:
        raise InvalidSpeedError(value)
    return speed


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """
    Build Settings from defaults overridden by LECTOR_* environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ`` (used by tests)

    Returns:
        Populated Settings

    Raises:
        InvalidSpeedError: If LECTOR_SPEED is set but not a positive integer
    """
    env = os.environ if environ is None else environ

    settings = Settings()
    if env.get(ENV_EXECUTABLE):
        settings.executable = env[ENV_EXECUTABLE]
    if env.get(ENV_SPEED):
        settings.speed = parse_speed(env[ENV_SPEED])
    if ENV_MOVE_POINT in env:
        settings.move_point = env[ENV_MOVE_POINT].strip().lower() in _TRUTHY
    return settings
