"""
Shared fixtures for end-to-end tests.
"""

import os
import stat
import time

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: mark test as end-to-end process test")


@pytest.fixture
def fake_engine(tmp_path):
    """
    Shell script standing in for the speech engine.

    It records its arguments, then sleeps so the test can signal it.
    Returns (executable path, file receiving the arguments).
    """
    if os.name != "posix":
        pytest.skip("fake engine is a POSIX shell script")

    record = tmp_path / "engine-args.txt"
    script = tmp_path / "fake-espeak"
    script.write_text(f'#!/bin/sh\nprintf "%s\\n" "$@" > "{record}"\nexec sleep 30\n')
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script), record


def wait_for(predicate, timeout=5.0, interval=0.05):
    """Poll predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return False


@pytest.fixture
def poll():
    """Provide the polling helper."""
    return wait_for
