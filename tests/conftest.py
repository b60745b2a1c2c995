from vroot._pytest_plugin import memory_backend, principal, session_view  # noqa: F401
