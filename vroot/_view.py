from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from ._config import ViewConfig
from ._entry import VirtualEntry
from ._exceptions import VRHomeDirectoryError
from ._path import SEP, normalize_separators, resolve_path, strip_trailing_separator

if TYPE_CHECKING:
    from ._gateway import BackendGateway
    from ._path import ChildMatcher
    from ._permission import Principal

logger = logging.getLogger(__name__)


class SessionView:
    """The filesystem as one authenticated session sees it.

    The session root is fixed at construction; the working directory starts
    at ``/`` and only moves through :meth:`change_working_directory`. A view
    is driven by one session task at a time and does no locking of its own.
    """

    def __init__(
        self,
        gateway: BackendGateway,
        principal: Principal,
        root: str,
        config: ViewConfig | None = None,
    ) -> None:
        if principal is None:
            raise ValueError("principal can not be None")
        if not root:
            raise ValueError("Session root can not be empty")
        nroot = normalize_separators(root)
        if not nroot.startswith(SEP):
            raise ValueError(f"Session root must be absolute: {root!r}")
        if not nroot.endswith(SEP):
            nroot += SEP
        self._gateway = gateway
        self._principal = principal
        self._root = nroot
        self._config = config if config is not None else ViewConfig()
        self._cwd = SEP
        self._is_disposed = False

    def __repr__(self) -> str:
        return (
            f"SessionView(principal={self._principal.name!r}, root={self._root!r}, "
            f"cwd={self._cwd!r})"
        )

    @property
    def root(self) -> str:
        return self._root

    @property
    def principal(self) -> Principal:
        return self._principal

    @property
    def config(self) -> ViewConfig:
        return self._config

    @property
    def gateway(self) -> BackendGateway:
        return self._gateway

    @property
    def working_directory(self) -> str:
        return self._cwd

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    def _assert_open(self) -> None:
        if self._is_disposed:
            raise ValueError("Operation on a disposed session view.")

    def _entry(self, virtual_path: str, canonical_path: str) -> VirtualEntry:
        return VirtualEntry(
            self._gateway,
            virtual_path,
            canonical_path,
            self._principal,
            self._root,
            self._config,
        )

    def _to_virtual(self, canonical_path: str) -> str:
        return canonical_path[len(self._root) - 1:]

    def _match_child(self, parent: str, token: str) -> str | None:
        try:
            children = self._gateway.list(parent)
        except OSError as e:
            logger.debug("case-insensitive lookup of %r in %s failed: %s", token, parent, e)
            return None
        wanted = token.casefold()
        for meta in children:
            name = strip_trailing_separator(meta["path"]).rsplit(SEP, 1)[-1]
            if name == token:
                return name
        for meta in children:
            name = strip_trailing_separator(meta["path"]).rsplit(SEP, 1)[-1]
            if name.casefold() == wanted:
                return name
        return None

    def _resolve(self, path: str) -> str:
        matcher: ChildMatcher | None = (
            self._match_child if self._config.case_insensitive else None
        )
        return resolve_path(self._root, self._cwd, path, matcher)

    def get_home_directory(self) -> VirtualEntry:
        self._assert_open()
        return self._entry(SEP, self._root)

    def get_working_directory(self) -> VirtualEntry:
        self._assert_open()
        if self._cwd == SEP:
            return self._entry(SEP, self._root)
        return self._entry(self._cwd, self._root + self._cwd[1:])

    def get_file(self, path: str) -> VirtualEntry:
        """Return the entry *path* names, whether or not it exists."""
        self._assert_open()
        canonical = self._resolve(path)
        return self._entry(self._to_virtual(canonical), canonical)

    def change_working_directory(self, path: str) -> bool:
        self._assert_open()
        canonical = self._resolve(path)
        try:
            meta = self._gateway.stat(strip_trailing_separator(canonical))
        except OSError as e:
            logger.debug("cwd %s: lookup failed: %s", canonical, e)
            return False
        if not meta["is_dir"]:
            return False
        virtual = self._to_virtual(canonical)
        if not virtual.endswith(SEP):
            virtual += SEP
        self._cwd = virtual
        return True

    def is_random_accessible(self) -> bool:
        return True

    def dispose(self) -> None:
        if self._is_disposed:
            return
        self._is_disposed = True
        logger.info("Disposed session view of %s at %s", self._principal.name, self._root)

    def __enter__(self) -> SessionView:
        return self

    def __exit__(self, *args) -> None:
        self.dispose()


class SessionViewFactory:
    """Creates one :class:`SessionView` per authenticated session.

    All views share the factory's gateway and configuration. With
    ``create_home`` a missing session root is created (and handed over to
    the principal) before the view is returned.
    """

    def __init__(
        self,
        gateway: BackendGateway,
        config: ViewConfig | None = None,
        create_home: bool = False,
    ) -> None:
        self._gateway = gateway
        self._config = config if config is not None else ViewConfig()
        self._create_home = create_home
        self._home_lock = threading.Lock()

    @property
    def config(self) -> ViewConfig:
        return self._config

    @property
    def create_home(self) -> bool:
        return self._create_home

    def create_view(self, principal: Principal, root: str) -> SessionView:
        if self._create_home:
            with self._home_lock:
                self._prepare_home(principal, root)
        return SessionView(self._gateway, principal, root, self._config)

    def _prepare_home(self, principal: Principal, root: str) -> None:
        home = strip_trailing_separator(normalize_separators(root))
        try:
            try:
                meta = self._gateway.stat(home)
            except FileNotFoundError:
                meta = None
            if meta is not None:
                if not meta["is_dir"]:
                    logger.warning("Not a directory %s", home)
                    raise VRHomeDirectoryError(home, "not a directory")
                return
            self._gateway.mkdirs(home)
            logger.info("Created directory %s", home)
            if principal.name != self._gateway.acting_principal().name:
                self._gateway.set_owner(home, principal.name, principal.primary_group)
        except VRHomeDirectoryError:
            raise
        except OSError as e:
            logger.warning("Cannot create user home %s: %s", home, e)
            raise VRHomeDirectoryError(home, str(e)) from e
