import pytest
from vroot import SessionView, ViewConfig


def test_initial_state(session_view):
    assert session_view.working_directory == "/"
    assert session_view.root == "/home/alice/"
    wd = session_view.get_working_directory()
    assert wd == session_view.get_home_directory()
    assert wd.absolute_path() == "/"


def test_change_directory(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/docs/2024")
    assert session_view.change_working_directory("docs")
    assert session_view.working_directory == "/docs/"
    assert session_view.change_working_directory("2024")
    assert session_view.working_directory == "/docs/2024/"
    wd = session_view.get_working_directory()
    assert wd.absolute_path() == "/docs/2024"
    assert wd.canonical_path == "/home/alice/docs/2024/"
    assert wd.backend_path == "/home/alice/docs/2024"


def test_change_directory_to_file_fails(memory_backend, session_view):
    memory_backend.write_bytes("/home/alice/f", b"")
    assert not session_view.change_working_directory("f")
    assert session_view.working_directory == "/"


def test_change_directory_to_missing_fails(session_view):
    assert not session_view.change_working_directory("nope")
    assert session_view.working_directory == "/"


def test_change_directory_failure_keeps_previous(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/docs")
    session_view.change_working_directory("docs")
    assert not session_view.change_working_directory("../missing")
    assert session_view.working_directory == "/docs/"


def test_change_directory_dotdot_clamped(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/docs")
    session_view.change_working_directory("docs")
    assert session_view.change_working_directory("../../../..")
    assert session_view.working_directory == "/"


def test_change_directory_dot_is_idempotent(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/docs")
    session_view.change_working_directory("/docs")
    before = session_view.get_working_directory()
    assert session_view.change_working_directory(".")
    assert session_view.working_directory == "/docs/"
    assert session_view.get_working_directory() == before


def test_change_directory_tilde(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/docs")
    session_view.change_working_directory("docs")
    assert session_view.change_working_directory("~")
    assert session_view.working_directory == "/"


def test_get_file_relative_to_working_directory(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/docs")
    session_view.change_working_directory("docs")
    entry = session_view.get_file("a.txt")
    assert entry.absolute_path() == "/docs/a.txt"
    assert entry.canonical_path == "/home/alice/docs/a.txt"


def test_get_file_does_not_check_existence(session_view):
    entry = session_view.get_file("not/yet/there")
    assert not entry.exists()
    assert entry.absolute_path() == "/not/yet/there"


def test_get_file_escape_is_clamped(session_view):
    entry = session_view.get_file("../../etc/passwd")
    assert entry.absolute_path() == "/etc/passwd"
    assert entry.canonical_path == "/home/alice/etc/passwd"


def test_get_file_root_forms(session_view):
    for path in ("/", "~", "..", "/./"):
        entry = session_view.get_file(path)
        assert entry.absolute_path() == "/"
        assert entry.canonical_path == "/home/alice/"


def test_root_normalization(memory_backend, principal):
    view = SessionView(memory_backend, principal, "\\home\\alice")
    assert view.root == "/home/alice/"


@pytest.mark.parametrize("root", ["", "home/alice"])
def test_invalid_root_raises(memory_backend, principal, root):
    with pytest.raises(ValueError):
        SessionView(memory_backend, principal, root)


def test_dispose_idempotent(session_view):
    session_view.dispose()
    session_view.dispose()
    assert session_view.is_disposed


def test_operations_after_dispose_raise(session_view):
    session_view.dispose()
    with pytest.raises(ValueError, match="disposed"):
        session_view.get_file("x")
    with pytest.raises(ValueError, match="disposed"):
        session_view.change_working_directory("/")


def test_context_manager_disposes(memory_backend, principal):
    with SessionView(memory_backend, principal, "/home/alice") as view:
        assert view.get_home_directory().is_directory()
    assert view.is_disposed


def test_is_random_accessible(session_view):
    assert session_view.is_random_accessible()


# ---------------------------------------------------------------------------
# case-insensitive resolution
# ---------------------------------------------------------------------------


@pytest.fixture
def ci_view(memory_backend, principal):
    memory_backend.mkdirs("/home/alice/Reports/Q1")
    return SessionView(memory_backend, principal, "/home/alice", ViewConfig(case_insensitive=True))


def test_case_insensitive_get_file(ci_view):
    entry = ci_view.get_file("reports/q1")
    assert entry.canonical_path == "/home/alice/Reports/Q1"
    assert entry.is_directory()


def test_case_insensitive_change_directory(ci_view):
    assert ci_view.change_working_directory("REPORTS")
    assert ci_view.working_directory == "/Reports/"


def test_case_insensitive_unknown_token_kept(ci_view):
    assert ci_view.get_file("reports/New").canonical_path == "/home/alice/Reports/New"


def test_case_insensitive_prefers_exact_match(memory_backend, ci_view):
    memory_backend.mkdirs("/home/alice/DATA")
    memory_backend.mkdirs("/home/alice/data")
    assert ci_view.get_file("data").canonical_path == "/home/alice/data"
    assert ci_view.get_file("Data").canonical_path == "/home/alice/DATA"


def test_case_sensitive_by_default(memory_backend, session_view):
    memory_backend.mkdirs("/home/alice/Reports")
    assert session_view.get_file("reports").canonical_path == "/home/alice/reports"
    assert not session_view.change_working_directory("reports")
