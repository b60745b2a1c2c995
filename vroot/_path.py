from __future__ import annotations

import os
import posixpath
from collections.abc import Callable

SEP = "/"

ChildMatcher = Callable[[str, str], str | None]


def normalize_separators(path: str) -> str:
    converted = path.replace("\\", SEP)
    if os.sep != SEP:
        converted = converted.replace(os.sep, SEP)
    return converted


def resolve_path(
    root: str,
    current_dir: str | None,
    path: str,
    match_child: ChildMatcher | None = None,
) -> str:
    """Return the canonical backend path for *path* as seen from *current_dir*.

    *root* is the session root in backend terms; *current_dir* is a virtual
    path relative to it. The result always has the normalized root (with its
    trailing separator) as a literal prefix: ``..`` above the root is
    silently ignored and ``~`` jumps back to the root.

    *match_child*, when given, is called as ``match_child(parent, token)``
    for every plain token and may return the real name of the child to use
    instead of *token* (case-insensitive lookup). Returning ``None`` or an
    empty string keeps the token as typed.
    """
    nroot = normalize_separators(root) or SEP
    if not nroot.endswith(SEP):
        nroot += SEP

    npath = normalize_separators(path)
    if npath.startswith(SEP):
        result = nroot
    else:
        cwd = normalize_separators(current_dir or SEP)
        if not cwd.startswith(SEP):
            cwd = SEP + cwd
        if not cwd.endswith(SEP):
            cwd += SEP
        result = nroot + cwd[1:]

    # the accumulator never ends with a separator inside the loop
    result = result[:-1]

    for token in npath.split(SEP):
        if not token or token == ".":
            continue
        if token == "..":
            if result.startswith(nroot):
                result = result[: result.rfind(SEP)]
            continue
        if token == "~":
            result = nroot[:-1]
            continue
        if match_child is not None:
            matched = match_child(result or SEP, token)
            if matched:
                token = matched
        result = result + SEP + token

    if len(result) + 1 == len(nroot):
        result += SEP

    if not result.startswith(nroot):
        result = nroot
    return result


def strip_trailing_separator(path: str) -> str:
    if len(path) > 1 and path.endswith(SEP):
        return path[:-1]
    return path


def virtual_name(path: str) -> str:
    if path == SEP:
        return SEP
    return strip_trailing_separator(path).rsplit(SEP, 1)[-1]


def parent_path(path: str) -> str:
    stripped = strip_trailing_separator(path)
    if stripped == SEP:
        return SEP
    return posixpath.dirname(stripped) or SEP


def normalize_backend_path(path: str) -> str:
    converted = normalize_separators(path)
    if not converted:
        return SEP

    # relative paths are treated as if prepended with "/"
    depth = 0
    for part in converted.split(SEP):
        if part == "..":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Path traversal attempt detected: '{path}'")
        elif part and part != ".":
            depth += 1

    if not converted.startswith(SEP):
        converted = SEP + converted
    normalized = posixpath.normpath(converted)
    # POSIX keeps a leading "//" as implementation-defined; backends do not
    if normalized.startswith("//"):
        normalized = SEP + normalized.lstrip(SEP)
    return normalized
