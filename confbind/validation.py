# confbind/validation.py
"""
confbind.validation
-------------------

Pluggable structural validation of bound instances.

A validator is any callable ``(instance, descriptor) -> list[Violation]``.
The default, ``PydanticValidator``, derives a pydantic model from each schema
class's property descriptors and validates the bound instance against it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from .schema import SchemaDescriptor, ValueKind, get_descriptor, is_schema

log = logging.getLogger(__name__)


@dataclass
class Violation:
    """A field-level validation failure.

    Attributes:
        property: Name of the offending property (or map key / list index).
        constraints: Messages describing the failed constraints.
        children: Violations inside a nested schema or collection entry.
    """

    property: str
    constraints: List[str] = field(default_factory=list)
    children: List["Violation"] = field(default_factory=list)


class Validator(Protocol):
    def __call__(self, instance: Any, descriptor: SchemaDescriptor) -> List[Violation]:
        ...


def format_violations(violations: Sequence[Violation], depth: int = 1) -> str:
    """Render violations one per line, nested ones indented by depth."""
    lines = []
    indent = "  " * depth
    for violation in violations:
        if violation.constraints:
            lines.append(f"{indent}- {violation.property}: {', '.join(violation.constraints)}")
        else:
            lines.append(f"{indent}- {violation.property}:")
        if violation.children:
            lines.append(format_violations(violation.children, depth + 1))
    return "\n".join(lines)


def _insert(violations: List[Violation], loc: Sequence[str], message: str) -> None:
    head, rest = loc[0], loc[1:]
    node = next((v for v in violations if v.property == head), None)
    if node is None:
        node = Violation(property=head)
        violations.append(node)
    if rest:
        _insert(node.children, rest, message)
    else:
        node.constraints.append(message)


def violations_from_error(error: ValidationError) -> List[Violation]:
    """Convert a pydantic ``ValidationError`` into a violation tree."""
    violations: List[Violation] = []
    for err in error.errors():
        loc = [str(part) for part in err.get("loc", ())] or ["<root>"]
        _insert(violations, loc, err.get("msg", "invalid value"))
    return violations


class PydanticValidator:
    """
    Validates bound instances with pydantic models derived from descriptors.

    Property constraints (``ge``, ``le``, ``gt``, ``lt``, ``min_length``,
    ``max_length``, ``pattern``, ...) are passed to ``pydantic.Field``.
    Requiredness is not re-checked here: the binder enforces it before
    validation runs. Entries of keyed containers are not validated.
    """

    def __init__(self):
        self._models: Dict[type, type[BaseModel]] = {}

    def model_for(self, cls: type) -> type[BaseModel]:
        model = self._models.get(cls)
        if model is None:
            model = self._build_model(get_descriptor(cls))
            self._models[cls] = model
        return model

    def _annotation_for(self, prop) -> Any:
        kind = prop.kind
        if kind is ValueKind.NUMBER:
            base = prop.value_type if prop.value_type in (int, float) else float
        elif kind is ValueKind.BOOLEAN:
            base = bool
        elif kind is ValueKind.STRING:
            base = str
        elif kind is ValueKind.SEQUENCE:
            base = list
        elif kind is ValueKind.NESTED_SCHEMA:
            base = self.model_for(prop.value_type)
        elif kind is ValueKind.PLAIN_ASSOCIATIVE and is_schema(prop.entry_type):
            base = Dict[str, self.model_for(prop.entry_type)]
        elif kind is ValueKind.PLAIN_ASSOCIATIVE:
            base = dict
        else:
            return Any

        constraints = dict(prop.constraints)
        if base is float:
            constraints.setdefault("allow_inf_nan", False)
        if constraints:
            base = Annotated[base, Field(**constraints)]
        return Optional[base]

    def _build_model(self, descriptor: SchemaDescriptor) -> type[BaseModel]:
        fields = {
            name: (self._annotation_for(prop), None)
            for name, prop in descriptor.properties.items()
        }
        log.debug(f"Building validation model for {descriptor.cls.__name__} with fields {list(fields)}")
        return create_model(
            f"{descriptor.cls.__name__}Validation",
            __config__=ConfigDict(from_attributes=True, arbitrary_types_allowed=True),
            **fields,
        )

    def __call__(self, instance: Any, descriptor: SchemaDescriptor) -> List[Violation]:
        model = self.model_for(descriptor.cls)
        try:
            model.model_validate(instance, from_attributes=True)
        except ValidationError as e:
            return violations_from_error(e)
        return []
