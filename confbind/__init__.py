# confbind/__init__.py
"""
confbind – Layered configuration bound onto typed Python classes.

Sources (files, environment, in-memory dicts) are merged by priority,
``${NAME[:fallback]}`` placeholders are resolved, ``ENC(iv:cipher)`` secrets
are decrypted, and the result is bound onto classes declared with
``configuration_properties`` / ``config_property``.
"""

__version__ = "0.1.0"

from .binder import Binder
from .builder import BuildResult, ConfigurationBuilder
from .encryption import SecretDecryptor
from .exceptions import (
    ConfigError,
    ConfigTypeError,
    ConfigValidationError,
    DecryptionError,
    EncryptionKeyError,
    MissingRequiredProperty,
    SchemaError,
    SourceLoadError,
)
from .manager import ConfigManager
from .mapbinder import ConfigMap
from .merge import deep_merge, merge_sources
from .pipeline import ChangeNotifier, InstanceCache, Pipeline, build_pipeline
from .placeholders import PlaceholderResolver
from .schema import MISSING, ValueKind, config_property, configuration_properties, validated
from .sources import ConfigSource, EnvConfigSource, FileConfigSource, InMemoryConfigSource
from .validation import PydanticValidator, Violation

__all__ = [
    "Binder",
    "BuildResult",
    "ChangeNotifier",
    "ConfigError",
    "ConfigManager",
    "ConfigMap",
    "ConfigSource",
    "ConfigTypeError",
    "ConfigValidationError",
    "ConfigurationBuilder",
    "DecryptionError",
    "EncryptionKeyError",
    "EnvConfigSource",
    "FileConfigSource",
    "InMemoryConfigSource",
    "InstanceCache",
    "MISSING",
    "MissingRequiredProperty",
    "Pipeline",
    "PlaceholderResolver",
    "PydanticValidator",
    "SchemaError",
    "SecretDecryptor",
    "SourceLoadError",
    "ValueKind",
    "Violation",
    "build_pipeline",
    "config_property",
    "configuration_properties",
    "deep_merge",
    "merge_sources",
    "validated",
]
