# confbind/builder.py
"""
confbind.builder
----------------

Fluent construction of a ``ConfigManager``.

Example::

    result = (ConfigurationBuilder()
              .with_profile("production")
              .with_config_dir("./config")
              .with_env_prefix("APP_")
              .register_config(DatabaseConfig)
              .build())
    db = result.configs[DatabaseConfig]
"""

from typing import Any, Dict, Iterable, List, NamedTuple, Union

from .manager import ConfigManager
from .sources import ConfigSource


class BuildResult(NamedTuple):
    manager: ConfigManager
    configs: Dict[type, Any]


class ConfigurationBuilder:
    """Collects ``ConfigManager`` options and the classes to bind eagerly."""

    def __init__(self):
        self._options: Dict[str, Any] = {}
        self._sources: List[ConfigSource] = []
        self._config_classes: List[type] = []

    def with_profile(self, profile: str) -> "ConfigurationBuilder":
        self._options["profile"] = profile
        return self

    def with_config_dir(self, config_dir: str) -> "ConfigurationBuilder":
        self._options["config_dir"] = config_dir
        return self

    def with_env_prefix(self, prefix: str) -> "ConfigurationBuilder":
        self._options["env_prefix"] = prefix
        return self

    def with_hot_reload(self, enabled: bool = True) -> "ConfigurationBuilder":
        self._options["enable_hot_reload"] = enabled
        return self

    def with_encryption(self, key: Union[str, bytes]) -> "ConfigurationBuilder":
        self._options["encryption_key"] = key
        return self

    def with_validation(self, enabled: bool = True) -> "ConfigurationBuilder":
        self._options["validate_on_bind"] = enabled
        return self

    def with_option(self, name: str, value: Any) -> "ConfigurationBuilder":
        """Set any other ``ConfigManager`` keyword argument."""
        self._options[name] = value
        return self

    def add_source(self, source: ConfigSource) -> "ConfigurationBuilder":
        self._sources.append(source)
        return self

    def register_config(self, config_class: type) -> "ConfigurationBuilder":
        self._config_classes.append(config_class)
        return self

    def register_configs(self, config_classes: Iterable[type]) -> "ConfigurationBuilder":
        self._config_classes.extend(config_classes)
        return self

    def build_config_only(self) -> ConfigManager:
        """Create and initialize the manager without binding anything."""
        manager = ConfigManager(additional_sources=self._sources, **self._options)
        manager.initialize()
        return manager

    def build(self) -> BuildResult:
        """Create and initialize the manager, then bind every registered class."""
        manager = self.build_config_only()
        configs = {cls: manager.bind(cls) for cls in self._config_classes}
        return BuildResult(manager=manager, configs=configs)
