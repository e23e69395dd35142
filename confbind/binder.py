# confbind/binder.py
"""
confbind.binder
---------------

Binds fragments of a resolved configuration tree onto schema instances.

For every declared property the binder looks up ``prefix.path`` in the tree,
falls back to the declared default, converts the value according to the
property's ``ValueKind`` and assigns it. Nested schemas are bound
recursively. After assignment required properties are checked, then the
instance is handed to the structural validator if its schema asks for it.
"""

import copy
import logging
import math
from typing import Any, Mapping, Optional

from .exceptions import ConfigTypeError, ConfigValidationError, MissingRequiredProperty, SchemaError
from .mapbinder import is_tree, object_to_map
from .schema import MISSING, PropertyDescriptor, SchemaDescriptor, ValueKind, get_descriptor
from .utils import get_by_dot
from .validation import PydanticValidator, Validator

log = logging.getLogger(__name__)


def parse_number(value: Any, declared: Optional[type] = None) -> Any:
    """
    Parse `value` as a number.

    Integers stay integers and floats stay floats; strings become ``int``
    when they hold an integral literal, else ``float``. When `declared` is
    ``float`` the result is always a float, and an integral float is
    narrowed to ``int`` when `declared` is ``int``. Unparseable input
    yields NaN.
    """
    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return math.nan

    if declared is float:
        return float(number)
    if declared is int and isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def parse_boolean(value: Any) -> bool:
    """True only for ``True`` or the exact string ``"true"``."""
    return value is True or value == "true"


def _lookup(tree: Mapping, path: str) -> Any:
    try:
        value = get_by_dot(tree, path)
    except KeyError:
        return MISSING
    return MISSING if value is None else value


class Binder:
    """
    Turns tree fragments into typed instances.

    Args:
        validator: Structural validator; defaults to ``PydanticValidator``.
        validate_on_bind: When False, validated schemas are not validated.
    """

    def __init__(self, validator: Optional[Validator] = None, validate_on_bind: bool = True):
        self.validator = validator if validator is not None else PydanticValidator()
        self.validate_on_bind = validate_on_bind

    def bind(self, cls: type, tree: Mapping) -> Any:
        """
        Bind the subtree under the class's prefix onto a new instance.

        Raises:
            SchemaError: If `cls` is not declared with ``configuration_properties``.
            ConfigTypeError: If a keyed-container property gets a non-mapping.
            MissingRequiredProperty: If a required property stays None.
            ConfigValidationError: If structural validation fails.
        """
        descriptor = get_descriptor(cls)
        if not descriptor.prefix:
            raise SchemaError(f"Class {cls.__name__} must be decorated with @configuration_properties")

        instance = cls()
        for name, prop in descriptor.properties.items():
            raw = _lookup(tree, f"{descriptor.prefix}.{prop.path}")
            self._assign(instance, prop, raw, name)

        self._check_required(instance, descriptor, descriptor.prefix)
        self._validate(instance, descriptor)
        log.debug(f"Bound {cls.__name__} from prefix '{descriptor.prefix}'")
        return instance

    def bind_nested(self, value: Any, cls: type, path_label: str) -> Any:
        """
        Bind `value` onto a nested schema instance.

        `path_label` is the dotted chain of property names leading here. A
        missing required property is reported as `<parent>.<name>`, where
        parent is the last name in that chain; validation errors carry the
        full chain.

        A missing (None) value produces an instance only when the nested
        schema chain declares defaults or the schema is validated; otherwise
        None is returned. A value that is not a mapping is returned as-is.
        Keys in `value` that are not declared properties are copied onto the
        instance verbatim.
        """
        descriptor = get_descriptor(cls)
        if value is None or value is MISSING:
            if not (descriptor.has_defaults() or descriptor.validate):
                return None
            value = {}
        elif not is_tree(value):
            return value

        instance = cls()
        declared_keys = set()
        for name, prop in descriptor.properties.items():
            declared_keys.add(prop.path.split(".", 1)[0])
            self._assign(instance, prop, _lookup(value, prop.path), f"{path_label}.{name}")

        for key, raw in value.items():
            if key in declared_keys or key in descriptor.properties:
                continue
            if not isinstance(key, str) or hasattr(cls, key):
                log.debug(f"Not copying undeclared key '{key}' onto {cls.__name__}: name is taken")
                continue
            setattr(instance, key, copy.deepcopy(raw))

        self._check_required(instance, descriptor, path_label.rsplit(".", 1)[-1])
        self._validate(instance, descriptor, path_label)
        return instance

    def _assign(self, instance: Any, prop: PropertyDescriptor, raw: Any, label: str) -> None:
        value = raw
        if value is MISSING and prop.has_default:
            value = copy.deepcopy(prop.default)

        if prop.kind is ValueKind.NESTED_SCHEMA:
            bound = self.bind_nested(None if value is MISSING else value, prop.value_type, label)
            if bound is not None:
                setattr(instance, prop.name, bound)
            return

        if value is MISSING or value is None:
            return
        setattr(instance, prop.name, self.convert(value, prop, label))

    def convert(self, value: Any, prop: PropertyDescriptor, label: Optional[str] = None) -> Any:
        """Convert a raw tree value according to the property's kind."""
        kind = prop.kind
        if kind is ValueKind.KEYED_CONTAINER:
            if not is_tree(value):
                raise ConfigTypeError(label or prop.name, value)
            return object_to_map(copy.deepcopy(value), prop.entry_type)
        if kind is ValueKind.NUMBER:
            return parse_number(value, prop.value_type)
        if kind is ValueKind.BOOLEAN:
            return parse_boolean(value)
        if kind is ValueKind.STRING:
            return str(value)
        if kind is ValueKind.SEQUENCE:
            items = list(copy.deepcopy(value)) if isinstance(value, (list, tuple)) else [copy.deepcopy(value)]
            if isinstance(prop.value_type, type) and issubclass(prop.value_type, tuple):
                return tuple(items)
            return items
        # plain associative and untyped values are kept as they are
        return copy.deepcopy(value)

    @staticmethod
    def _check_required(instance: Any, descriptor: SchemaDescriptor, label: str) -> None:
        for name, prop in descriptor.properties.items():
            if prop.required and instance.__dict__.get(name) is None:
                raise MissingRequiredProperty(f"{label}.{name}")

    def _validate(self, instance: Any, descriptor: SchemaDescriptor, path: Optional[str] = None) -> None:
        if not (descriptor.validate and self.validate_on_bind):
            return
        violations = self.validator(instance, descriptor)
        if violations:
            raise ConfigValidationError(descriptor.cls.__name__, violations, path)
