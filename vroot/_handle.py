from __future__ import annotations

import io
import time
import warnings
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._memory import FileNode, MemoryBackend


class MemoryStream(io.RawIOBase):
    """Binary stream over one file node of a :class:`MemoryBackend`.

    Read streams see the node's content as it is when they read; write
    streams write through, so a reader opened afterwards sees the bytes
    already written.
    """

    def __init__(self, backend: MemoryBackend, fnode: FileNode, path: str, mode: str) -> None:
        super().__init__()
        self._path = path
        if mode not in ("rb", "wb"):
            self.close()
            raise ValueError(f"Invalid mode '{mode}'. Expected 'rb' or 'wb'.")
        self._backend = backend
        self._fnode = fnode
        self._mode = mode
        self._cursor: int = 0

    @property
    def name(self) -> str:
        return self._path

    @property
    def mode(self) -> str:
        return self._mode

    def _assert_readable(self) -> None:
        if self._mode != "rb":
            raise io.UnsupportedOperation(f"not readable in mode '{self._mode}'")

    def _assert_writable(self) -> None:
        if self._mode != "wb":
            raise io.UnsupportedOperation(f"not writable in mode '{self._mode}'")

    def _assert_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed file.")

    def read(self, size: int | None = -1) -> bytes:
        self._assert_open()
        self._assert_readable()
        with self._backend._global_lock:
            data = self._fnode.data
            if self._cursor >= len(data):
                return b""
            if size is None or size < 0:
                end = len(data)
            else:
                end = min(len(data), self._cursor + size)
            chunk = bytes(data[self._cursor:end])
        self._cursor = end
        return chunk

    def readall(self) -> bytes:
        return self.read(-1)

    def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
        chunk = self.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)

    def write(self, data) -> int:  # type: ignore[no-untyped-def]
        self._assert_open()
        self._assert_writable()
        payload = bytes(data)
        if not payload:
            return 0
        with self._backend._global_lock:
            buf = self._fnode.data
            if self._cursor > len(buf):
                buf.extend(bytes(self._cursor - len(buf)))
            buf[self._cursor:self._cursor + len(payload)] = payload
            self._fnode.modified_at = time.time()
        self._cursor += len(payload)
        return len(payload)

    def seek(self, offset: int, whence: int = 0) -> int:
        self._assert_open()
        if whence == 0:
            if offset < 0:
                raise ValueError("seek offset must be >= 0 for SEEK_SET")
            new_pos = offset
        elif whence == 1:
            new_pos = self._cursor + offset
        elif whence == 2:
            with self._backend._global_lock:
                new_pos = len(self._fnode.data) + offset
        else:
            raise ValueError(f"Invalid whence value: {whence}. Must be 0, 1, or 2.")
        if new_pos < 0:
            raise ValueError(f"Resulting cursor position {new_pos} is negative.")
        self._cursor = new_pos
        return self._cursor

    def tell(self) -> int:
        self._assert_open()
        return self._cursor

    def readable(self) -> bool:
        self._assert_open()
        return self._mode == "rb"

    def writable(self) -> bool:
        self._assert_open()
        return self._mode == "wb"

    def seekable(self) -> bool:
        self._assert_open()
        return True

    def __del__(self) -> None:
        if not self.closed:
            warnings.warn(
                f"MemoryStream for '{self._path}' was not closed properly. "
                "Use 'with' on streams returned by the backend.",
                ResourceWarning,
                stacklevel=1,
            )
        super().__del__()
