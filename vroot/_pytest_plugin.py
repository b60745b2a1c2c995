"""pytest fixture plugin.

Usage::

    # conftest.py
    pytest_plugins = ["vroot._pytest_plugin"]

This makes the ``memory_backend``, ``principal`` and ``session_view``
fixtures automatically available::

    def test_something(session_view):
        assert session_view.get_file("reports").mkdir()
"""

import pytest

from ._memory import MemoryBackend
from ._permission import Principal
from ._view import SessionView

HOME = "/home/alice"


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """A :class:`MemoryBackend` running as superuser ``hdfs``.

    ``/home/alice`` exists, is owned by ``alice:staff`` and has mode 0o755.
    Provides an independent instance per test (function scope).
    """
    backend = MemoryBackend()
    backend.mkdirs(HOME)
    backend.set_owner(HOME, "alice", "staff")
    return backend


@pytest.fixture
def principal() -> Principal:
    """``alice``, primary group ``staff``, also in ``analysts``."""
    return Principal("alice", "staff", frozenset({"analysts"}))


@pytest.fixture
def session_view(memory_backend: MemoryBackend, principal: Principal):
    """A :class:`SessionView` rooted at ``/home/alice``, disposed after the test."""
    view = SessionView(memory_backend, principal, HOME)
    yield view
    view.dispose()
