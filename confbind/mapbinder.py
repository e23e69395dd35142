# confbind/mapbinder.py
"""
confbind.mapbinder
------------------

Keyed-container binding.

A property declared as ``ConfigMap`` receives a container built from the
mapping found at its path; every entry is optionally copied into a declared
entry type. A property declared as a plain ``dict`` is left as the raw
mapping instead.
"""

from typing import Any, Iterator, Mapping, Optional, Tuple


class ConfigMap(dict):
    """
    Dictionary with explicit container methods.

    Besides the normal ``dict`` interface it offers ``set``, ``has``,
    ``delete`` and ``size`` so code written against a keyed-container
    protocol reads naturally.
    """

    def set(self, key: str, value: Any) -> "ConfigMap":
        self[key] = value
        return self

    def has(self, key: str) -> bool:
        return key in self

    def delete(self, key: str) -> bool:
        """Remove `key`; returns False if it was not present."""
        if key in self:
            del self[key]
            return True
        return False

    @property
    def size(self) -> int:
        return len(self)

    def entries(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({super().__repr__()})"


def is_tree(value: Any) -> bool:
    """True for a mapping; sequences and scalars are not trees."""
    return isinstance(value, Mapping)


def object_to_map(obj: Mapping, entry_type: Optional[type] = None) -> ConfigMap:
    """
    Convert a mapping into a ``ConfigMap``.

    Args:
        obj: Mapping taken from the configuration tree.
        entry_type: If given, each entry is instantiated with no arguments
            and the entry's keys are copied onto it as attributes (shallow).

    Raises:
        TypeError: If `obj` is not a mapping.
    """
    if not is_tree(obj):
        raise TypeError(f"Expected a mapping for ConfigMap binding, got {type(obj).__name__}")

    result = ConfigMap()
    for key, value in obj.items():
        if entry_type is not None:
            instance = entry_type()
            if isinstance(value, Mapping):
                for attr, attr_value in value.items():
                    setattr(instance, attr, attr_value)
            result[key] = instance
        else:
            result[key] = value
    return result
