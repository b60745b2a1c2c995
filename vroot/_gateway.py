from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import IO, TYPE_CHECKING

from ._exceptions import VRBackendUnavailableError

if TYPE_CHECKING:
    from ._permission import Principal
    from ._typing import VRStatResult

logger = logging.getLogger(__name__)


class BackendGateway(ABC):
    """Primitive operations of the remote storage backend.

    Every failure is reported as an ``OSError`` subclass
    (``FileNotFoundError``, ``NotADirectoryError``, ``PermissionError``,
    ``ConnectionError``...). Implementations must be safe for concurrent use:
    one gateway is shared by all sessions and no locking is added around it.
    """

    @abstractmethod
    def stat(self, path: str) -> VRStatResult: ...

    @abstractmethod
    def list(self, path: str) -> list[VRStatResult]: ...

    @abstractmethod
    def mkdirs(self, path: str) -> None:
        """Create *path* and any missing intermediate directories."""

    @abstractmethod
    def delete(self, path: str, recursive: bool = False) -> None: ...

    @abstractmethod
    def rename(self, src: str, dst: str) -> None: ...

    @abstractmethod
    def open(self, path: str) -> IO[bytes]: ...

    @abstractmethod
    def create(self, path: str) -> IO[bytes]:
        """Create or truncate *path* and return a writable stream."""

    @abstractmethod
    def set_owner(self, path: str, user: str, group: str) -> None: ...

    @abstractmethod
    def acting_principal(self) -> Principal:
        """The account the backend connection runs as."""

    def close(self) -> None:
        return None


class LazyGateway(BackendGateway):
    """Constructs the real gateway on first use and shares it afterwards.

    The factory runs at most once successfully, under a lock. A failing
    factory leaves the holder uninitialized, so a later call tries again.
    """

    def __init__(self, factory: Callable[[], BackendGateway]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._gateway: BackendGateway | None = None

    @property
    def initialized(self) -> bool:
        return self._gateway is not None

    def get(self) -> BackendGateway:
        gateway = self._gateway
        if gateway is not None:
            return gateway
        with self._lock:
            if self._gateway is None:
                try:
                    self._gateway = self._factory()
                except Exception as e:
                    logger.error("Backend initialization error: %s", e)
                    raise VRBackendUnavailableError(
                        f"Backend initialization failed: {e}"
                    ) from e
                logger.debug("Backend gateway initialized: %r", self._gateway)
            return self._gateway

    def stat(self, path: str) -> VRStatResult:
        return self.get().stat(path)

    def list(self, path: str) -> list[VRStatResult]:
        return self.get().list(path)

    def mkdirs(self, path: str) -> None:
        self.get().mkdirs(path)

    def delete(self, path: str, recursive: bool = False) -> None:
        self.get().delete(path, recursive)

    def rename(self, src: str, dst: str) -> None:
        self.get().rename(src, dst)

    def open(self, path: str) -> IO[bytes]:
        return self.get().open(path)

    def create(self, path: str) -> IO[bytes]:
        return self.get().create(path)

    def set_owner(self, path: str, user: str, group: str) -> None:
        self.get().set_owner(path, user, group)

    def acting_principal(self) -> Principal:
        return self.get().acting_principal()

    def close(self) -> None:
        with self._lock:
            gateway, self._gateway = self._gateway, None
        if gateway is not None:
            gateway.close()
