from typing import TYPE_CHECKING

from ._config import ViewConfig
from ._entry import LookupOutcome, VirtualEntry
from ._exceptions import (
    VRBackendUnavailableError,
    VRError,
    VRHomeDirectoryError,
    VRPermissionError,
    VRReadPermissionError,
    VRWritePermissionError,
)
from ._gateway import BackendGateway, LazyGateway
from ._memory import MemoryBackend
from ._path import resolve_path
from ._permission import (
    Access,
    PermissionClass,
    PermissionMatrix,
    PermissionOracle,
    Principal,
)
from ._typing import VRStatResult
from ._view import SessionView, SessionViewFactory

if TYPE_CHECKING:
    from ._async import AsyncSessionView, AsyncVirtualEntry


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in ("AsyncSessionView", "AsyncVirtualEntry"):
        from ._async import AsyncSessionView, AsyncVirtualEntry

        globals()["AsyncSessionView"] = AsyncSessionView
        globals()["AsyncVirtualEntry"] = AsyncVirtualEntry
        return globals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "SessionView",
    "SessionViewFactory",
    "VirtualEntry",
    "LookupOutcome",
    "ViewConfig",
    "BackendGateway",
    "LazyGateway",
    "MemoryBackend",
    "PermissionOracle",
    "PermissionMatrix",
    "PermissionClass",
    "Access",
    "Principal",
    "VRStatResult",
    "resolve_path",
    "VRError",
    "VRPermissionError",
    "VRReadPermissionError",
    "VRWritePermissionError",
    "VRBackendUnavailableError",
    "VRHomeDirectoryError",
    "AsyncSessionView",
    "AsyncVirtualEntry",
]
__version__ = "0.1.0"
