from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

from ._path import SEP, normalize_separators, parent_path, strip_trailing_separator

if TYPE_CHECKING:
    from ._gateway import BackendGateway
    from ._typing import VRStatResult

logger = logging.getLogger(__name__)


class PermissionClass(IntEnum):
    OWNER = 0
    GROUP = 1
    OTHER = 2

    @classmethod
    def for_node(cls, meta: VRStatResult, principal: Principal) -> PermissionClass:
        """Select the matrix row that applies to *principal* for this node.

        The first matching class decides: an owner whose owner bits deny an
        operation is not rescued by the group or other bits.
        """
        if principal.name == meta["owner"]:
            return cls.OWNER
        if principal.is_group_member(meta["group"]):
            return cls.GROUP
        return cls.OTHER


class Access(IntEnum):
    READ = 0
    WRITE = 1
    EXECUTE = 2


_LETTERS = "rwx"


class PermissionMatrix:
    """Owner/group/other x read/write/execute boolean matrix."""

    __slots__ = ("_rows",)

    def __init__(
        self,
        owner: tuple[bool, bool, bool],
        group: tuple[bool, bool, bool],
        other: tuple[bool, bool, bool],
    ) -> None:
        rows = (tuple(owner), tuple(group), tuple(other))
        for row in rows:
            if len(row) != 3:
                raise ValueError(f"Permission row must have 3 entries, got {row!r}")
        self._rows: tuple[tuple[bool, ...], ...] = tuple(
            tuple(bool(bit) for bit in row) for row in rows
        )

    @classmethod
    def from_mode(cls, mode: int) -> PermissionMatrix:
        if not 0 <= mode <= 0o777:
            raise ValueError(f"Permission mode out of range: {oct(mode)}")
        rows = []
        for shift in (6, 3, 0):
            bits = (mode >> shift) & 0o7
            rows.append((bool(bits & 0o4), bool(bits & 0o2), bool(bits & 0o1)))
        return cls(*rows)

    @classmethod
    def from_string(cls, text: str) -> PermissionMatrix:
        """Parse ``rwxr-x---``; a leading ``ls`` type character is accepted."""
        if len(text) == 10:
            text = text[1:]
        if len(text) != 9:
            raise ValueError(f"Invalid permission string: {text!r}")
        rows = []
        for start in (0, 3, 6):
            triple = text[start:start + 3]
            row = []
            for letter, char in zip(_LETTERS, triple):
                if char == letter:
                    row.append(True)
                elif char == "-":
                    row.append(False)
                else:
                    raise ValueError(f"Invalid permission string: {text!r}")
            rows.append(tuple(row))
        return cls(*rows)

    def allows(self, pclass: PermissionClass, access: Access) -> bool:
        return self._rows[pclass][access]

    def to_mode(self) -> int:
        mode = 0
        for row in self._rows:
            for bit in row:
                mode = (mode << 1) | int(bit)
        return mode

    def __str__(self) -> str:
        return "".join(
            letter if bit else "-"
            for row in self._rows
            for letter, bit in zip(_LETTERS, row)
        )

    def __repr__(self) -> str:
        return f"PermissionMatrix.from_string({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermissionMatrix):
            return NotImplemented
        return self._rows == other._rows

    def __hash__(self) -> int:
        return hash(self._rows)


@dataclass(frozen=True)
class Principal:
    """The authenticated identity a session acts as."""

    name: str
    primary_group: str
    groups: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Principal name can not be empty")
        object.__setattr__(self, "groups", frozenset(self.groups))

    def is_group_member(self, group: str | None) -> bool:
        if not group:
            return False
        return group == self.primary_group or group in self.groups


class PermissionOracle:
    """Read/write decisions from backend metadata.

    ``can_read``/``can_write`` are pure; ``check_read``/``check_write`` fetch
    the metadata themselves and never cache it, so a mode change made outside
    the session is seen by the next check.
    """

    def __init__(self, gateway: BackendGateway) -> None:
        self._gateway = gateway

    @staticmethod
    def can_read(meta: VRStatResult, principal: Principal) -> bool:
        return PermissionOracle._decide(meta, principal, Access.READ)

    @staticmethod
    def can_write(meta: VRStatResult, principal: Principal) -> bool:
        return PermissionOracle._decide(meta, principal, Access.WRITE)

    @staticmethod
    def _decide(meta: VRStatResult, principal: Principal, access: Access) -> bool:
        pclass = PermissionClass.for_node(meta, principal)
        allowed = meta["permission"].allows(pclass, access)
        logger.debug(
            "PERMISSIONS: %s - %s %s for %s (%s)",
            meta["path"],
            access.name.lower(),
            "allowed" if allowed else "denied",
            pclass.name.lower(),
            principal.name,
        )
        return allowed

    def check_read(self, path: str, principal: Principal) -> bool:
        try:
            meta = self._gateway.stat(path)
        except OSError as e:
            logger.debug("read check failed for %s: %s", path, e)
            return False
        return self.can_read(meta, principal)

    def check_write(self, path: str, principal: Principal, floor: str = SEP) -> bool:
        """Decide writability of *path*, delegating to the nearest existing ancestor.

        A node that can not be looked up (typically because it is about to be
        created) is writable when its closest existing ancestor is. The walk
        stops at *floor*; nothing above it is consulted.
        """
        for candidate in _ancestors(path, floor):
            try:
                meta = self._gateway.stat(candidate)
            except OSError as e:
                logger.debug("write check: no metadata for %s (%s)", candidate, e)
                continue
            return self.can_write(meta, principal)
        logger.debug("write check: no ancestor of %s found below %s", path, floor)
        return False


def _ancestors(path: str, floor: str) -> list[str]:
    """Return *path* followed by its parents, up to and including *floor*."""
    current = strip_trailing_separator(normalize_separators(path)) or SEP
    nfloor = strip_trailing_separator(normalize_separators(floor)) or SEP
    floor_prefix = nfloor if nfloor == SEP else nfloor + SEP
    chain = [current]
    while current != nfloor and current.startswith(floor_prefix):
        current = parent_path(current)
        chain.append(current)
    return chain
