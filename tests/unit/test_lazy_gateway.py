import threading
import time

import pytest
from vroot import LazyGateway, MemoryBackend, Principal, SessionView
from vroot._exceptions import VRBackendUnavailableError
from tests.helpers.concurrency import run_concurrent


class CountingFactory:
    def __init__(self, delay: float = 0.0, failures: int = 0):
        self.calls = 0
        self.delay = delay
        self.failures = failures
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
            attempt = self.calls
        if self.delay:
            time.sleep(self.delay)
        if attempt <= self.failures:
            raise RuntimeError("namenode unreachable")
        backend = MemoryBackend()
        backend.mkdirs("/home/alice")
        return backend


def test_not_initialized_until_first_use():
    factory = CountingFactory()
    gw = LazyGateway(factory)
    assert not gw.initialized
    assert factory.calls == 0
    gw.stat("/")
    assert gw.initialized
    assert factory.calls == 1


def test_factory_called_once():
    factory = CountingFactory()
    gw = LazyGateway(factory)
    for _ in range(10):
        gw.stat("/home/alice")
    assert factory.calls == 1
    assert gw.get() is gw.get()


def test_concurrent_first_use_constructs_once():
    factory = CountingFactory(delay=0.05)
    gw = LazyGateway(factory)
    results, errors = run_concurrent(lambda i: gw.get(), n_threads=16)
    assert not any(errors)
    assert factory.calls == 1
    assert all(r is results[0] for r in results)


def test_factory_failure_raises_unavailable():
    gw = LazyGateway(CountingFactory(failures=1))
    with pytest.raises(VRBackendUnavailableError) as exc_info:
        gw.stat("/")
    assert isinstance(exc_info.value, ConnectionError)
    assert isinstance(exc_info.value, OSError)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert not gw.initialized


def test_failed_initialization_retried_on_next_use():
    factory = CountingFactory(failures=1)
    gw = LazyGateway(factory)
    with pytest.raises(VRBackendUnavailableError):
        gw.stat("/")
    assert gw.stat("/")["is_dir"] is True
    assert factory.calls == 2


def test_unavailable_backend_collapses_to_false():
    gw = LazyGateway(CountingFactory(failures=100))
    view = SessionView(gw, Principal("alice", "staff"), "/home/alice")
    entry = view.get_file("x")
    assert entry.exists() is False
    assert entry.is_directory() is False
    assert entry.is_readable() is False
    assert entry.is_writable() is False
    assert entry.list_files() is None
    assert view.change_working_directory("x") is False


def test_close_resets_and_closes_inner():
    closed = []

    class ClosingBackend(MemoryBackend):
        def close(self):
            closed.append(True)

    gw = LazyGateway(ClosingBackend)
    gw.stat("/")
    gw.close()
    assert closed == [True]
    assert not gw.initialized
    gw.close()
    assert closed == [True]
