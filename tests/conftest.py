"""pytest configuration and fixtures for pyqt-listengine tests."""

import os

import pytest
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from pyqt_listengine.protocols import register_event_sink, set_engine_config


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication instance for tests."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture(autouse=True)
def default_engine_config():
    """Reset global engine configuration and event sink around each test."""
    set_engine_config(None)
    register_event_sink(None)
    yield
    set_engine_config(None)
    register_event_sink(None)


class Named:
    """Test data exposing a case-insensitive substring match."""

    def __init__(self, name):
        self.name = name

    def match(self, query, flags):
        return query.lower() in self.name.lower()

    def __eq__(self, other):
        return isinstance(other, Named) and other.name == self.name

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return f"Named({self.name!r})"


@pytest.fixture
def named():
    """Factory building Named test data."""
    return Named


class Recorder:
    """Listener recording every ``on_*`` callback with its arguments minus the source."""

    def __init__(self):
        self.events = []

    def __getattr__(self, name):
        if not name.startswith("on_"):
            raise AttributeError(name)

        def record(*args):
            self.events.append((name, args[1:]))
        return record

    def names(self):
        return [name for name, _ in self.events]


@pytest.fixture
def recorder():
    """Fresh recording listener."""
    return Recorder()
