from __future__ import annotations

import logging
import posixpath
from enum import Enum
from typing import IO, TYPE_CHECKING

from ._config import ViewConfig
from ._exceptions import VRReadPermissionError, VRWritePermissionError
from ._path import SEP, strip_trailing_separator, virtual_name
from ._permission import PermissionOracle, Principal

if TYPE_CHECKING:
    from ._gateway import BackendGateway
    from ._typing import VRStatResult

logger = logging.getLogger(__name__)


class LookupOutcome(Enum):
    """Why a metadata lookup did or did not succeed.

    The boolean probes of :class:`VirtualEntry` collapse everything except
    ``FOUND`` into ``False``; :meth:`VirtualEntry.lookup` keeps them apart.
    """

    FOUND = "found"
    NOT_FOUND = "not_found"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


class VirtualEntry:
    """One backend node as seen by one session.

    Entries are cheap and hold no backend state: every probe asks the backend
    again. Two entries are equal when they name the same backend path,
    whatever virtual path or principal they were obtained through.
    """

    def __init__(
        self,
        gateway: BackendGateway,
        virtual_path: str,
        canonical_path: str,
        principal: Principal,
        root: str,
        config: ViewConfig | None = None,
    ) -> None:
        if not virtual_path:
            raise ValueError("virtual_path can not be empty")
        if not virtual_path.startswith(SEP):
            raise ValueError(f"virtual_path must be absolute: {virtual_path!r}")
        if not canonical_path:
            raise ValueError("canonical_path can not be empty")
        self._gateway = gateway
        self._oracle = PermissionOracle(gateway)
        self._virtual_path = virtual_path
        self._canonical_path = canonical_path
        self._principal = principal
        self._root = root
        self._config = config if config is not None else ViewConfig()

    # -- identity --

    @property
    def virtual_path(self) -> str:
        return self._virtual_path

    @property
    def canonical_path(self) -> str:
        return self._canonical_path

    @property
    def backend_path(self) -> str:
        return strip_trailing_separator(self._canonical_path)

    @property
    def principal(self) -> Principal:
        return self._principal

    def absolute_path(self) -> str:
        return strip_trailing_separator(self._virtual_path)

    def name(self) -> str:
        return virtual_name(self._virtual_path)

    def is_hidden(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VirtualEntry):
            return NotImplemented
        return self.backend_path == other.backend_path

    def __hash__(self) -> int:
        return hash(self.backend_path)

    def __repr__(self) -> str:
        return f"VirtualEntry({self._virtual_path!r} -> {self._canonical_path!r})"

    # -- probes --

    def _stat(self) -> VRStatResult:
        return self._gateway.stat(self.backend_path)

    def _stat_or_none(self) -> VRStatResult | None:
        try:
            return self._stat()
        except OSError as e:
            logger.debug("%s: lookup failed: %s", self.backend_path, e)
            return None

    def lookup(self) -> LookupOutcome:
        try:
            self._stat()
        except (FileNotFoundError, NotADirectoryError):
            return LookupOutcome.NOT_FOUND
        except PermissionError:
            return LookupOutcome.DENIED
        except OSError as e:
            logger.debug("%s: backend unavailable: %s", self.backend_path, e)
            return LookupOutcome.UNAVAILABLE
        return LookupOutcome.FOUND

    def is_directory(self) -> bool:
        meta = self._stat_or_none()
        return meta is not None and meta["is_dir"]

    def is_file(self) -> bool:
        meta = self._stat_or_none()
        return meta is not None and not meta["is_dir"]

    def exists(self) -> bool:
        return self._stat_or_none() is not None

    def owner_name(self) -> str | None:
        meta = self._stat_or_none()
        return meta["owner"] if meta is not None else None

    def group_name(self) -> str | None:
        meta = self._stat_or_none()
        return meta["group"] if meta is not None else None

    def size(self) -> int:
        meta = self._stat_or_none()
        return meta["size"] if meta is not None else 0

    def last_modified(self) -> float:
        meta = self._stat_or_none()
        return meta["modified_at"] if meta is not None else 0.0

    def link_count(self) -> int:
        return 3 if self.is_directory() else 1

    # -- permissions --

    def _checked_principal(self) -> Principal:
        if self._config.check_as_principal:
            return self._principal
        return self._gateway.acting_principal()

    def is_readable(self) -> bool:
        try:
            principal = self._checked_principal()
        except OSError as e:
            logger.debug("%s: no acting principal: %s", self.backend_path, e)
            return False
        return self._oracle.check_read(self.backend_path, principal)

    def is_writable(self) -> bool:
        try:
            principal = self._checked_principal()
        except OSError as e:
            logger.debug("%s: no acting principal: %s", self.backend_path, e)
            return False
        return self._oracle.check_write(self.backend_path, principal, self._root)

    def is_removable(self) -> bool:
        return self.is_writable()

    # -- mutations --

    def _needs_ownership_fixup(self) -> bool:
        if not self._config.ownership_fixup:
            return False
        return self._gateway.acting_principal().name != self._principal.name

    def _fix_ownership(self) -> None:
        self._gateway.set_owner(
            self.backend_path, self._principal.name, self._principal.primary_group
        )

    def mkdir(self) -> bool:
        if not self.is_writable():
            logger.debug("No write permission: %s", self.backend_path)
            return False
        try:
            self._gateway.mkdirs(self.backend_path)
            if self._needs_ownership_fixup():
                self._fix_ownership()
        except OSError as e:
            logger.warning("mkdir %s failed: %s", self.backend_path, e)
            return False
        return True

    def delete(self) -> bool:
        try:
            self._gateway.delete(self.backend_path, recursive=True)
        except OSError as e:
            logger.warning("delete %s failed: %s", self.backend_path, e)
            return False
        return True

    def move(self, target: VirtualEntry) -> bool:
        try:
            self._gateway.rename(self.backend_path, target.backend_path)
        except OSError as e:
            logger.warning(
                "move %s -> %s failed: %s", self.backend_path, target.backend_path, e
            )
            return False
        return True

    def list_files(self) -> list[VirtualEntry] | None:
        """Return the children sorted by name, or ``None`` if not applicable.

        ``None`` means this entry is not a readable directory (or the backend
        refused the listing); an empty directory gives an empty list.
        """
        if not self.is_directory():
            return None
        if not self.is_readable():
            logger.debug("No read permission: %s", self.backend_path)
            return None
        try:
            children = self._gateway.list(self.backend_path)
        except OSError as e:
            logger.debug("list %s failed: %s", self.backend_path, e)
            return None

        names = sorted(posixpath.basename(meta["path"].rstrip(SEP)) for meta in children)
        base_virtual = self.absolute_path()
        if not base_virtual.endswith(SEP):
            base_virtual += SEP
        base_backend = self.backend_path
        if not base_backend.endswith(SEP):
            base_backend += SEP
        return [
            VirtualEntry(
                self._gateway,
                base_virtual + name,
                base_backend + name,
                self._principal,
                self._root,
                self._config,
            )
            for name in names
        ]

    def create_output_stream(self) -> IO[bytes]:
        if not self.is_writable():
            raise VRWritePermissionError(self.absolute_path())
        stream = self._gateway.create(self.backend_path)
        try:
            if self._needs_ownership_fixup():
                self._fix_ownership()
        except OSError as e:
            logger.error("Cannot set owner on %s: %s", self.backend_path, e)
        return stream

    def create_input_stream(self, offset: int = 0) -> IO[bytes]:
        if not self.is_readable():
            raise VRReadPermissionError(self.absolute_path())
        stream = self._gateway.open(self.backend_path)
        if offset:
            try:
                stream.seek(offset)
            except BaseException:
                stream.close()
                raise
        return stream
