# confbind/testing.py
"""
confbind.testing
----------------

Helpers for tests that need configuration without files or environment.
"""

from typing import Any, Iterable, Mapping, Optional

from .builder import BuildResult, ConfigurationBuilder
from .manager import ConfigManager
from .sources import InMemoryConfigSource

# Above the environment source, so ambient variables cannot leak into tests.
MOCK_PRIORITY = 1000


def create_mock_config(config: Optional[Mapping[str, Any]] = None, **options: Any) -> ConfigManager:
    """An initialized manager serving `config` from memory."""
    builder = ConfigurationBuilder().add_source(InMemoryConfigSource(config or {}, MOCK_PRIORITY))
    for name, value in options.items():
        builder.with_option(name, value)
    return builder.build_config_only()


def create_mock_config_with_classes(config: Mapping[str, Any], config_classes: Iterable[type],
                                    **options: Any) -> BuildResult:
    """Like ``create_mock_config`` but also binds `config_classes`."""
    builder = (ConfigurationBuilder()
               .add_source(InMemoryConfigSource(config, MOCK_PRIORITY))
               .register_configs(config_classes))
    for name, value in options.items():
        builder.with_option(name, value)
    return builder.build()


def mock_config_class(config_class: type, **overrides: Any) -> Any:
    """An unbound instance of `config_class` with `overrides` set as attributes."""
    instance = config_class()
    for name, value in overrides.items():
        setattr(instance, name, value)
    return instance
