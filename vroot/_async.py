"""Async wrapper around SessionView.

All backend I/O is delegated to :func:`asyncio.to_thread`, so a slow
backend never blocks the event-loop thread of an async protocol server.
"""

from __future__ import annotations

import asyncio
from typing import IO

from ._entry import LookupOutcome, VirtualEntry
from ._view import SessionView


class AsyncVirtualEntry:
    """Async wrapper for a single :class:`VirtualEntry`."""

    def __init__(self, _sync_entry: VirtualEntry) -> None:
        self._e = _sync_entry

    @property
    def sync(self) -> VirtualEntry:
        return self._e

    def absolute_path(self) -> str:
        return self._e.absolute_path()

    def name(self) -> str:
        return self._e.name()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AsyncVirtualEntry):
            return NotImplemented
        return self._e == other._e

    def __hash__(self) -> int:
        return hash(self._e)

    def __repr__(self) -> str:
        return f"AsyncVirtualEntry({self._e!r})"

    async def lookup(self) -> LookupOutcome:
        return await asyncio.to_thread(self._e.lookup)

    async def is_directory(self) -> bool:
        return await asyncio.to_thread(self._e.is_directory)

    async def is_file(self) -> bool:
        return await asyncio.to_thread(self._e.is_file)

    async def exists(self) -> bool:
        return await asyncio.to_thread(self._e.exists)

    async def is_readable(self) -> bool:
        return await asyncio.to_thread(self._e.is_readable)

    async def is_writable(self) -> bool:
        return await asyncio.to_thread(self._e.is_writable)

    async def size(self) -> int:
        return await asyncio.to_thread(self._e.size)

    async def last_modified(self) -> float:
        return await asyncio.to_thread(self._e.last_modified)

    async def mkdir(self) -> bool:
        return await asyncio.to_thread(self._e.mkdir)

    async def delete(self) -> bool:
        return await asyncio.to_thread(self._e.delete)

    async def move(self, target: AsyncVirtualEntry) -> bool:
        return await asyncio.to_thread(self._e.move, target._e)

    async def list_files(self) -> list[AsyncVirtualEntry] | None:
        entries = await asyncio.to_thread(self._e.list_files)
        if entries is None:
            return None
        return [AsyncVirtualEntry(e) for e in entries]

    async def create_output_stream(self) -> IO[bytes]:
        return await asyncio.to_thread(self._e.create_output_stream)

    async def create_input_stream(self, offset: int = 0) -> IO[bytes]:
        return await asyncio.to_thread(self._e.create_input_stream, offset)


class AsyncSessionView:
    """Thin async facade over :class:`SessionView`."""

    def __init__(self, _sync_view: SessionView) -> None:
        self._sync = _sync_view

    @property
    def sync(self) -> SessionView:
        return self._sync

    @property
    def working_directory(self) -> str:
        return self._sync.working_directory

    async def get_home_directory(self) -> AsyncVirtualEntry:
        return AsyncVirtualEntry(self._sync.get_home_directory())

    async def get_working_directory(self) -> AsyncVirtualEntry:
        return AsyncVirtualEntry(self._sync.get_working_directory())

    async def get_file(self, path: str) -> AsyncVirtualEntry:
        # case-insensitive resolution lists directories, so this may block
        entry = await asyncio.to_thread(self._sync.get_file, path)
        return AsyncVirtualEntry(entry)

    async def change_working_directory(self, path: str) -> bool:
        return await asyncio.to_thread(self._sync.change_working_directory, path)

    async def dispose(self) -> None:
        await asyncio.to_thread(self._sync.dispose)

    async def __aenter__(self) -> AsyncSessionView:
        return self

    async def __aexit__(self, *args) -> None:  # type: ignore[no-untyped-def]
        await self.dispose()
