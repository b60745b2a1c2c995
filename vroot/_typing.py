from __future__ import annotations

from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from ._permission import PermissionMatrix


class VRStatResult(TypedDict):
    path: str
    is_dir: bool
    owner: str
    group: str
    permission: PermissionMatrix
    size: int
    modified_at: float
