from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

_ALIASES = {
    "ownershipFixupEnabled": "ownership_fixup",
    "caseInsensitiveResolution": "case_insensitive",
    "checkAsPrincipal": "check_as_principal",
}


@dataclass(frozen=True)
class ViewConfig:
    """Behaviour switches shared by every view a factory creates.

    ``ownership_fixup``
        After creating a directory or a file, hand it over to the session
        principal when the backend connection runs as another account.
    ``case_insensitive``
        Match each path token against the names in its parent directory,
        ignoring case, before falling back to the token as typed. Costs one
        listing per token.
    ``check_as_principal``
        Decide permissions for the session principal. When ``False`` the
        backend's acting account is checked instead.
    """

    ownership_fixup: bool = False
    case_insensitive: bool = False
    check_as_principal: bool = True

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, bool):
                raise ValueError(
                    f"Invalid {f.name} value: {value!r}. Expected a bool."
                )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> ViewConfig:
        """Build a config from snake_case or camelCase keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in mapping.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown configuration key: {key!r}")
            if name in kwargs:
                raise ValueError(f"Duplicate configuration key: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)
