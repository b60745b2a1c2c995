from __future__ import annotations

import errno
import posixpath
import threading
import time

from ._gateway import BackendGateway
from ._handle import MemoryStream
from ._path import normalize_backend_path
from ._permission import PermissionMatrix, PermissionOracle, Principal
from ._typing import VRStatResult

# ---------------------------------------------------------------------------
#  Node Layer
# ---------------------------------------------------------------------------


class _Node:
    __slots__ = ("node_id", "owner", "group", "permission", "modified_at")

    def __init__(self, node_id: int, owner: str, group: str, permission: PermissionMatrix) -> None:
        self.node_id: int = node_id
        self.owner: str = owner
        self.group: str = group
        self.permission: PermissionMatrix = permission
        self.modified_at: float = time.time()


class DirNode(_Node):
    __slots__ = ("children",)

    def __init__(self, node_id: int, owner: str, group: str, permission: PermissionMatrix) -> None:
        super().__init__(node_id, owner, group, permission)
        self.children: dict[str, int] = {}


class FileNode(_Node):
    __slots__ = ("data",)

    def __init__(self, node_id: int, owner: str, group: str, permission: PermissionMatrix) -> None:
        super().__init__(node_id, owner, group, permission)
        self.data: bytearray = bytearray()


Node = DirNode | FileNode


# ---------------------------------------------------------------------------
#  MemoryBackend
# ---------------------------------------------------------------------------


class MemoryBackend(BackendGateway):
    """Thread-safe in-memory storage backend.

    Nodes carry an owner, a group and a permission matrix like the remote
    backend's. New nodes belong to the acting account. With
    ``superuser=False`` mutating calls require write permission on the
    nearest existing ancestor directory for the acting account, and only the
    superuser may change ownership.
    """

    def __init__(
        self,
        acting_user: str = "hdfs",
        acting_group: str = "supergroup",
        superuser: bool = True,
        dir_mode: int = 0o755,
        file_mode: int = 0o644,
    ) -> None:
        self._acting = Principal(acting_user, acting_group)
        self._superuser = superuser
        self._dir_permission = PermissionMatrix.from_mode(dir_mode)
        self._file_permission = PermissionMatrix.from_mode(file_mode)
        self._global_lock = threading.RLock()
        self._nodes: dict[int, Node] = {}
        self._next_node_id: int = 0
        # Root directory
        self._root = self._alloc_dir()

    def __repr__(self) -> str:
        return f"MemoryBackend(acting_user={self._acting.name!r}, nodes={len(self._nodes)})"

    # -- node allocation helpers --

    def _alloc_dir(self) -> DirNode:
        nid = self._next_node_id
        self._next_node_id += 1
        node = DirNode(nid, self._acting.name, self._acting.primary_group, self._dir_permission)
        self._nodes[nid] = node
        return node

    def _alloc_file(self) -> FileNode:
        nid = self._next_node_id
        self._next_node_id += 1
        node = FileNode(nid, self._acting.name, self._acting.primary_group, self._file_permission)
        self._nodes[nid] = node
        return node

    # -- path helpers --

    def _np(self, path: str) -> str:
        try:
            return normalize_backend_path(path)
        except ValueError as e:
            raise FileNotFoundError(errno.ENOENT, str(e), path) from e

    def _resolve_path(self, npath: str) -> Node | None:
        if npath == "/":
            return self._root
        current: Node = self._root
        for part in [p for p in npath.split("/") if p]:
            if not isinstance(current, DirNode):
                return None
            child_id = current.children.get(part)
            if child_id is None:
                return None
            current = self._nodes[child_id]
        return current

    def _resolve_parent_and_name(self, npath: str) -> tuple[DirNode, str] | None:
        parent_path = posixpath.dirname(npath) or "/"
        name = posixpath.basename(npath)
        parent_node = self._resolve_path(parent_path)
        if parent_node is None or not isinstance(parent_node, DirNode):
            return None
        return parent_node, name

    def _stat_node(self, npath: str, node: Node) -> VRStatResult:
        return VRStatResult(
            path=npath,
            is_dir=isinstance(node, DirNode),
            owner=node.owner,
            group=node.group,
            permission=node.permission,
            size=len(node.data) if isinstance(node, FileNode) else 0,
            modified_at=node.modified_at,
        )

    def _require(self, npath: str) -> Node:
        node = self._resolve_path(npath)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", npath)
        return node

    def _check_writable(self, npath: str) -> None:
        """Require write access on the nearest existing ancestor of *npath*."""
        if self._superuser:
            return
        candidate = posixpath.dirname(npath) or "/"
        while True:
            node = self._resolve_path(candidate)
            if node is not None:
                break
            candidate = posixpath.dirname(candidate) or "/"
        if not PermissionOracle.can_write(self._stat_node(candidate, node), self._acting):
            raise PermissionError(errno.EACCES, "Permission denied", npath)

    def _makedirs(self, npath: str) -> DirNode:
        current = self._root
        for part in [p for p in npath.split("/") if p]:
            child_id = current.children.get(part)
            if child_id is not None:
                child = self._nodes[child_id]
                if not isinstance(child, DirNode):
                    raise FileExistsError(
                        errno.EEXIST, "A file exists at path component", part
                    )
                current = child
            else:
                new_dir = self._alloc_dir()
                current.children[part] = new_dir.node_id
                current.modified_at = time.time()
                current = new_dir
        return current

    def _remove_subtree(self, node: Node) -> None:
        if isinstance(node, DirNode):
            for child_id in list(node.children.values()):
                self._remove_subtree(self._nodes[child_id])
            node.children.clear()
        self._nodes.pop(node.node_id, None)

    # -- BackendGateway --

    def stat(self, path: str) -> VRStatResult:
        npath = self._np(path)
        with self._global_lock:
            return self._stat_node(npath, self._require(npath))

    def list(self, path: str) -> list[VRStatResult]:
        npath = self._np(path)
        with self._global_lock:
            node = self._require(npath)
            if not isinstance(node, DirNode):
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
            return [
                self._stat_node(posixpath.join(npath, name), self._nodes[child_id])
                for name, child_id in node.children.items()
            ]

    def mkdirs(self, path: str) -> None:
        npath = self._np(path)
        with self._global_lock:
            node = self._resolve_path(npath)
            if isinstance(node, DirNode):
                return
            if node is not None:
                raise FileExistsError(errno.EEXIST, "File exists at path", path)
            self._check_writable(npath)
            self._makedirs(npath)

    def delete(self, path: str, recursive: bool = False) -> None:
        npath = self._np(path)
        if npath == "/":
            raise PermissionError(errno.EPERM, "Cannot remove the root directory", path)
        with self._global_lock:
            node = self._require(npath)
            if isinstance(node, DirNode) and node.children and not recursive:
                raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
            self._check_writable(npath)
            pinfo = self._resolve_parent_and_name(npath)
            assert pinfo is not None
            parent, name = pinfo
            del parent.children[name]
            parent.modified_at = time.time()
            self._remove_subtree(node)

    def rename(self, src: str, dst: str) -> None:
        nsrc = self._np(src)
        ndst = self._np(dst)
        if nsrc == "/":
            raise PermissionError(errno.EPERM, "Cannot rename the root directory", src)
        if ndst == nsrc or ndst.startswith(nsrc + "/"):
            raise OSError(errno.EINVAL, "Cannot move a directory into itself", dst)
        with self._global_lock:
            src_node = self._require(nsrc)
            if self._resolve_path(ndst) is not None:
                raise FileExistsError(errno.EEXIST, "Destination already exists", dst)
            dst_pinfo = self._resolve_parent_and_name(ndst)
            if dst_pinfo is None:
                raise FileNotFoundError(
                    errno.ENOENT, "Destination parent does not exist", dst
                )
            self._check_writable(nsrc)
            self._check_writable(ndst)
            src_pinfo = self._resolve_parent_and_name(nsrc)
            assert src_pinfo is not None
            src_parent, src_name = src_pinfo
            dst_parent, dst_name = dst_pinfo
            del src_parent.children[src_name]
            dst_parent.children[dst_name] = src_node.node_id
            now = time.time()
            src_parent.modified_at = now
            dst_parent.modified_at = now

    def open(self, path: str) -> MemoryStream:
        npath = self._np(path)
        with self._global_lock:
            node = self._require(npath)
            if isinstance(node, DirNode):
                raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
            return MemoryStream(self, node, npath, "rb")

    def create(self, path: str) -> MemoryStream:
        npath = self._np(path)
        if npath == "/":
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        with self._global_lock:
            node = self._resolve_path(npath)
            if isinstance(node, DirNode):
                raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
            self._check_writable(npath)
            if node is None:
                parent = self._makedirs(posixpath.dirname(npath) or "/")
                node = self._alloc_file()
                parent.children[posixpath.basename(npath)] = node.node_id
                parent.modified_at = time.time()
            else:
                node.data.clear()
                node.modified_at = time.time()
            return MemoryStream(self, node, npath, "wb")

    def set_owner(self, path: str, user: str, group: str) -> None:
        npath = self._np(path)
        if not self._superuser:
            raise PermissionError(errno.EPERM, "Only the superuser may change owner", path)
        with self._global_lock:
            node = self._require(npath)
            node.owner = user
            node.group = group

    def acting_principal(self) -> Principal:
        return self._acting

    # -- fixture helpers --

    def chmod(self, path: str, mode: int | str | PermissionMatrix) -> None:
        if isinstance(mode, int):
            permission = PermissionMatrix.from_mode(mode)
        elif isinstance(mode, str):
            permission = PermissionMatrix.from_string(mode)
        else:
            permission = mode
        npath = self._np(path)
        with self._global_lock:
            node = self._require(npath)
            if not self._superuser and node.owner != self._acting.name:
                raise PermissionError(errno.EPERM, "Operation not permitted", path)
            node.permission = permission

    def write_bytes(self, path: str, data: bytes) -> None:
        with self.create(path) as stream:
            stream.write(data)

    def read_bytes(self, path: str) -> bytes:
        with self.open(path) as stream:
            return stream.read()
