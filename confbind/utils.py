# confbind/utils.py
"""
confbind.utils
--------------

Shared helpers for path handling and dot-notation access on plain trees.
Used internally by confbind and available for downstream consumers.
"""

import os
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


def expand_path(path: Optional[str]) -> Optional[str]:
    """Expand ~ and environment variables in a path string.

    Args:
        path: Path string to expand, or None.

    Returns:
        Expanded path string, or None if input was None.

    Examples:
        >>> expand_path("~/config/application.yml")
        '/home/user/config/application.yml'
        >>> expand_path(None)
        None
    """
    if path is None:
        return None
    return os.path.expandvars(os.path.expanduser(str(path)))


def resolve_path(path: Optional[str]) -> Optional[Path]:
    """Expand and resolve a path to an absolute Path object.

    Args:
        path: Path string, or None.

    Returns:
        Resolved absolute Path, or None if input was None.
    """
    expanded = expand_path(path)
    if expanded is None:
        return None
    return Path(expanded).resolve()


def get_by_dot(tree: Mapping, key: str) -> Any:
    """
    Retrieve a nested value from a tree using a dot-notated key.

    Args:
        tree: The mapping to read from.
        key: Dot-notation path (e.g., "database.host").

    Returns:
        The value found at the path.

    Raises:
        KeyError: If any part of the path does not exist, or a path segment
                  is not a mapping.
    """
    d: Any = tree
    walked = []
    for part in key.split('.'):
        if not isinstance(d, Mapping) or part not in d:
            raise KeyError(
                f"Key path '{key}' not found (missing part: '{part}' at path '{'.'.join(walked)}')"
            )
        d = d[part]
        walked.append(part)
    return d


def set_by_dot(tree: Dict[str, Any], key: str, value: Any) -> None:
    """
    Set a nested value using a dot-notated key, creating intermediate dicts.

    A path segment holding a non-dict value is replaced with a new dict.
    """
    parts = key.split('.')
    d = tree
    for p in parts[:-1]:
        if not isinstance(d.get(p), dict):
            d[p] = {}
        d = d[p]
    d[parts[-1]] = value


def iter_leaves(tree: Mapping, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Yield `(dotted_key, value)` for every non-mapping value in `tree`."""
    for k, v in tree.items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, Mapping) and v:
            yield from iter_leaves(v, key)
        else:
            yield key, v
