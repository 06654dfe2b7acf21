"""Shared fixtures: real Python child processes."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable, Iterator

import pytest


@pytest.fixture
def spawn() -> Iterator[Callable[[str], subprocess.Popen]]:
    """Spawns a Python child running `script` once it reports ready; kills leftovers."""
    children: list[subprocess.Popen] = []

    def _spawn(script: str) -> subprocess.Popen:
        proc = subprocess.Popen(
            [sys.executable, "-c", script],
            stdout=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
        )
        children.append(proc)
        assert proc.stdout is not None
        assert proc.stdout.readline().strip() == b"ready"
        return proc

    yield _spawn

    for proc in children:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        if proc.stdout is not None:
            proc.stdout.close()
