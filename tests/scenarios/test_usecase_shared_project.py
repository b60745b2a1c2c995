"""Shared project directory writable by a secondary group."""
import pytest
from vroot import MemoryBackend, Principal, SessionView, ViewConfig
from vroot._exceptions import VRWritePermissionError


@pytest.fixture
def backend():
    b = MemoryBackend()
    b.mkdirs("/projects/q3")
    b.set_owner("/projects/q3", "lead", "analysts")
    b.chmod("/projects/q3", "rwxrwx---")
    return b


def test_secondary_group_member_can_write(backend):
    view = SessionView(
        backend,
        Principal("alice", "staff", {"analysts"}),
        "/projects",
        ViewConfig(ownership_fixup=True),
    )
    assert view.change_working_directory("q3")
    assert view.get_file("draft").mkdir()
    with view.get_file("draft/model.txt").create_output_stream() as out:
        out.write(b"v1")
    assert [e.name() for e in view.get_working_directory().list_files()] == ["draft"]


def test_outsider_can_neither_list_nor_write(backend):
    view = SessionView(backend, Principal("mallory", "guests"), "/projects")
    q3 = view.get_file("q3")
    assert q3.is_directory()
    assert q3.list_files() is None
    assert not view.get_file("q3/x").mkdir()
    with pytest.raises(VRWritePermissionError):
        view.get_file("q3/x.txt").create_output_stream()


def test_revoked_group_write_seen_immediately(backend):
    view = SessionView(backend, Principal("alice", "staff", {"analysts"}), "/projects")
    entry = view.get_file("q3/new")
    assert entry.is_writable()
    backend.chmod("/projects/q3", "rwxr-x---")
    assert not entry.is_writable()
    assert not entry.mkdir()
