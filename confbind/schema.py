# confbind/schema.py
"""
confbind.schema
---------------

Declaration of bindable configuration classes.

Properties are declared as class attributes with ``config_property()``. At
class creation each property records a ``PropertyDescriptor`` into a side
table keyed by the owning class; class decorators add the prefix and the
validate flag. The class itself is never replaced or wrapped.

Example::

    class PoolConfig:
        max_connections = config_property(int, path="maxConnections", default=10)

    @configuration_properties("database", validate=True)
    class DatabaseConfig:
        host = config_property(str, required=True)
        port = config_property(int, default=5432, ge=1, le=65535)
        pool = config_property(PoolConfig)
        replicas = config_property(ConfigMap, entry_type=ReplicaConfig)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .mapbinder import ConfigMap


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class ValueKind(enum.Enum):
    """How a raw tree value is converted onto a property."""

    ANY = "any"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    SEQUENCE = "sequence"
    KEYED_CONTAINER = "keyed_container"
    PLAIN_ASSOCIATIVE = "plain_associative"
    NESTED_SCHEMA = "nested_schema"


def kind_for(value_type: Any) -> ValueKind:
    """Infer the ``ValueKind`` for a declared Python type."""
    if value_type is None or not isinstance(value_type, type):
        return ValueKind.ANY
    # bool is a subclass of int
    if issubclass(value_type, bool):
        return ValueKind.BOOLEAN
    if issubclass(value_type, (int, float)):
        return ValueKind.NUMBER
    if issubclass(value_type, str):
        return ValueKind.STRING
    if issubclass(value_type, (list, tuple)):
        return ValueKind.SEQUENCE
    if issubclass(value_type, ConfigMap):
        return ValueKind.KEYED_CONTAINER
    if issubclass(value_type, dict):
        return ValueKind.PLAIN_ASSOCIATIVE
    if is_schema(value_type):
        return ValueKind.NESTED_SCHEMA
    return ValueKind.ANY


@dataclass
class PropertyDescriptor:
    """Binding metadata for one property of a schema class.

    Attributes:
        name: Attribute name on the instance.
        path: Key of the value relative to the schema's prefix or parent.
        value_type: Declared Python type (``int``, ``str``, a schema class...).
        default: Value used when the tree has none; ``MISSING`` if undeclared.
        required: Whether binding fails when the value ends up None.
        entry_type: Per-entry type for keyed containers and associative maps.
        constraints: Keyword constraints handed to the structural validator.
        explicit_kind: Kind forced at declaration, overriding inference.
    """

    name: str
    path: str
    value_type: Any = None
    default: Any = MISSING
    required: bool = False
    entry_type: Any = None
    constraints: Dict[str, Any] = field(default_factory=dict)
    explicit_kind: Optional[ValueKind] = None

    @property
    def kind(self) -> ValueKind:
        # inferred lazily so nested classes decorated later are still seen
        if self.explicit_kind is not None:
            return self.explicit_kind
        return kind_for(self.value_type)

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


@dataclass
class SchemaDescriptor:
    """Binding metadata for a schema class.

    ``prefix`` is only set for top-level classes declared with
    ``configuration_properties``; nested schemas are bound relative to the
    property that holds them.
    """

    cls: type
    prefix: Optional[str] = None
    properties: Dict[str, PropertyDescriptor] = field(default_factory=dict)
    validate: bool = False

    @property
    def paths(self) -> Dict[str, str]:
        return {name: prop.path for name, prop in self.properties.items()}

    @property
    def required(self) -> set:
        return {name for name, prop in self.properties.items() if prop.required}

    @property
    def defaults(self) -> Dict[str, Any]:
        return {name: prop.default for name, prop in self.properties.items() if prop.has_default}

    def has_defaults(self, _seen: Optional[set] = None) -> bool:
        """True if this schema, or any schema nested under it, declares a default."""
        seen = _seen if _seen is not None else set()
        if self.cls in seen:
            return False
        seen.add(self.cls)
        for prop in self.properties.values():
            if prop.has_default:
                return True
            if prop.kind is ValueKind.NESTED_SCHEMA and get_descriptor(prop.value_type).has_defaults(seen):
                return True
        return False

    def __hash__(self) -> int:
        return hash(self.cls)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SchemaDescriptor) and other.cls is self.cls


# Side table: class -> descriptor. Populated at class creation.
_REGISTRY: Dict[type, SchemaDescriptor] = {}


def _descriptor_for_update(cls: type) -> SchemaDescriptor:
    descriptor = _REGISTRY.get(cls)
    if descriptor is None:
        descriptor = SchemaDescriptor(cls=cls)
        # subclasses inherit their parents' properties
        for base in reversed(cls.__mro__[1:]):
            parent = _REGISTRY.get(base)
            if parent is not None:
                descriptor.properties.update(parent.properties)
        _REGISTRY[cls] = descriptor
    return descriptor


def is_schema(cls: Any) -> bool:
    """True if `cls` carries any schema metadata (properties, prefix or validate flag)."""
    if not isinstance(cls, type):
        return False
    descriptor = _REGISTRY.get(cls)
    if descriptor is None:
        return any(base in _REGISTRY for base in cls.__mro__[1:])
    return bool(descriptor.properties or descriptor.prefix or descriptor.validate)


def get_descriptor(cls: type) -> SchemaDescriptor:
    """Return the descriptor for `cls`; an empty one if it has no metadata."""
    return _descriptor_for_update(cls) if is_schema(cls) else SchemaDescriptor(cls=cls)


class ConfigProperty:
    """
    Class-level marker for a bindable property.

    Reading the attribute on an instance that has not been bound returns
    None; binding stores values in the instance ``__dict__``.
    """

    def __init__(self, value_type: Any = None, *, path: Optional[str] = None, default: Any = MISSING,
                 required: bool = False, kind: Optional[ValueKind] = None, entry_type: Any = None,
                 **constraints: Any):
        self.value_type = value_type
        self.path = path
        self.default = default
        self.required = required
        self.kind = kind
        self.entry_type = entry_type
        self.constraints = constraints
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        _descriptor_for_update(owner).properties[name] = PropertyDescriptor(
            name=name,
            path=self.path or name,
            value_type=self.value_type,
            default=self.default,
            required=self.required,
            entry_type=self.entry_type,
            constraints=dict(self.constraints),
            explicit_kind=self.kind,
        )

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance.__dict__.get(self.name)


def config_property(value_type: Any = None, *, path: Optional[str] = None, default: Any = MISSING,
                    required: bool = False, kind: Optional[ValueKind] = None, entry_type: Any = None,
                    **constraints: Any) -> Any:
    """
    Declare a bindable property.

    Args:
        value_type: Declared type; drives coercion (see ``kind_for``).
        path: Key relative to the prefix; defaults to the attribute name.
        default: Value used when the tree has none. Also satisfies ``required``.
        required: Fail binding if the property ends up None.
        kind: Force a ``ValueKind`` instead of inferring it from the type.
        entry_type: Type each entry of a keyed container is copied into.
        **constraints: Validation constraints (``ge``, ``le``, ``min_length``...).
    """
    return ConfigProperty(value_type, path=path, default=default, required=required, kind=kind,
                          entry_type=entry_type, **constraints)


def configuration_properties(prefix: str, *, validate: bool = False):
    """Class decorator marking a top-level bindable class rooted at `prefix`."""

    def decorator(cls: type) -> type:
        descriptor = _descriptor_for_update(cls)
        descriptor.prefix = prefix
        descriptor.validate = descriptor.validate or validate
        return cls

    return decorator


def validated(cls: type) -> type:
    """Class decorator enabling structural validation for a (nested) schema."""
    _descriptor_for_update(cls).validate = True
    return cls
