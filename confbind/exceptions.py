# confbind/exceptions.py
"""
confbind.exceptions
-------------------

Custom exceptions for confbind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .validation import Violation


class ConfigError(Exception):
    """Base class for every error raised by confbind."""


class MissingRequiredProperty(ConfigError):
    """
    Raised when a required property has no value and no default after binding.
    """

    def __init__(self, path: str):
        super().__init__(f"Required configuration property '{path}' is missing")
        self.path = path


class ConfigTypeError(ConfigError, TypeError):
    """
    Raised when a keyed-container property receives a scalar or a sequence.
    """

    def __init__(self, property_name: str, value):
        super().__init__(
            f"Expected a mapping for keyed-container property '{property_name}', "
            f"got {type(value).__name__}"
        )
        self.property_name = property_name


class ConfigValidationError(ConfigError):
    """
    Raised when the structural validator reports one or more violations.
    """

    def __init__(self, class_name: str, violations: List["Violation"], path: Optional[str] = None):
        from .validation import format_violations

        where = f" at path '{path}'" if path else ""
        super().__init__(
            f"Validation failed for {class_name}{where}:\n{format_violations(violations)}"
        )
        self.class_name = class_name
        self.path = path
        self.violations = violations


class DecryptionError(ConfigError):
    """Raised when a well-formed ENC(...) envelope cannot be decrypted."""


class EncryptionKeyError(ConfigError, ValueError):
    """Raised when an encryption key is not exactly 32 bytes long."""


class SchemaError(ConfigError):
    """Raised when a class cannot be bound because it lacks schema metadata."""


class SourceLoadError(ConfigError):
    """Raised by a source that cannot read or parse its origin."""
