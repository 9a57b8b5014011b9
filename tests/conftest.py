"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeSink:
    """Audio sink that records every call instead of making sound."""

    def __init__(self, ready: bool = True, start_fails: bool = False) -> None:
        self.is_ready = ready
        self.start_fails = start_fails  # start() leaves the sink un-started
        self.is_started = False
        self.calls: list[tuple] = []

    def start(self) -> None:
        self.is_started = not self.start_fails
        self.calls.append(("start",))

    def attack(self, pitch_names) -> None:
        self.calls.append(("attack", list(pitch_names)))

    def release(self, pitch_names) -> None:
        self.calls.append(("release", list(pitch_names)))

    @property
    def attacks(self) -> list[list[str]]:
        return [c[1] for c in self.calls if c[0] == "attack"]

    @property
    def releases(self) -> list[list[str]]:
        return [c[1] for c in self.calls if c[0] == "release"]


@pytest.fixture
def sink():
    """Provide a ready FakeSink."""
    return FakeSink()


@pytest.fixture(scope="session")
def qapp():
    """Provide a QApplication instance for the entire test session."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
