class VRError(OSError):
    """Base class for errors raised by vroot. Subclass of OSError."""


class VRPermissionError(VRError, PermissionError):
    """Raised when a session principal may not perform a stream operation."""
    def __init__(self, path: str, operation: str) -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"No {operation} permission: '{path}'")


class VRReadPermissionError(VRPermissionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, "read")


class VRWritePermissionError(VRPermissionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, "write")


class VRBackendUnavailableError(VRError, ConnectionError):
    """Raised when the storage backend handle cannot be constructed."""


class VRHomeDirectoryError(VRError, NotADirectoryError):
    """Raised when a session root cannot be prepared as a directory."""
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot prepare home directory '{path}': {reason}")
