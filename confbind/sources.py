# confbind/sources.py
"""
confbind.sources
----------------

Configuration sources. A source is a named, prioritized provider of a
partial configuration tree. Lower priorities are merged first, so the
source with the highest priority wins on conflicting leaves.

Built-in sources:
    - ``FileConfigSource``: JSON, YAML, TOML and ``.env`` files.
    - ``EnvConfigSource``: process environment, ``DB_HOST`` -> ``db.host``.
    - ``InMemoryConfigSource``: a dictionary, handy for tests and overrides.
"""

import copy
import json
import logging
import os
import sys
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .exceptions import SourceLoadError
from .utils import expand_path, set_by_dot

log = logging.getLogger(__name__)


class ConfigSource:
    """
    Base class for configuration sources.

    Subclasses set ``name`` and ``priority`` and implement ``load()``, which
    returns a nested dict. Any object with the same three members is accepted
    wherever a source is expected.
    """

    name: str = "source"
    priority: int = 0

    def load(self) -> Dict[str, Any]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


class FileConfigSource(ConfigSource):
    """
    Loads a single configuration file.

    The format is chosen by extension: ``.json``, ``.yml``/``.yaml``,
    ``.toml`` or ``.env``. A file that does not exist yields an empty tree,
    so optional profile files can be registered unconditionally.
    """

    def __init__(self, file_path: str, priority: int = 100, name: Optional[str] = None):
        self.file_path = file_path
        self.priority = priority
        self.name = name or f"file:{file_path}"

    def load(self) -> Dict[str, Any]:
        path = expand_path(self.file_path)
        if not os.path.exists(path):
            log.debug(f"Config file not found, skipping: {path}")
            return {}

        ext = os.path.splitext(path)[1].lower()
        try:
            if ext == '.json':
                with open(path, mode='r', encoding='utf-8') as f:
                    content = json.load(f)
            elif ext in ('.yml', '.yaml'):
                with open(path, mode='r', encoding='utf-8') as f:
                    content = yaml.safe_load(f)
            elif ext == '.toml':
                with open(path, mode='rb') as f:
                    content = tomllib.load(f)
            elif ext == '.env':
                content = dict(dotenv_values(path))
            else:
                raise SourceLoadError(f"Unsupported file type: {ext}")
        except SourceLoadError:
            raise
        except Exception as e:
            raise SourceLoadError(f"Error loading/parsing file {path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise SourceLoadError(
                f"Config file {path} must contain a mapping at the top level, got {type(content).__name__}"
            )
        return content


class EnvConfigSource(ConfigSource):
    """
    Collects environment variables into a nested tree.

    Variables starting with ``prefix`` are included (all variables when the
    prefix is empty). The prefix is stripped and the remainder is lowercased
    with every underscore turned into a nesting dot, so with prefix ``APP_``
    the variable ``APP_DB_HOST`` becomes ``{"db": {"host": ...}}``. Values
    are kept as strings; the binder coerces them to declared types.
    """

    def __init__(self, prefix: str = "", priority: int = 200, name: str = "env",
                 environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix or ""
        self.priority = priority
        self.name = name
        self._environ = environ

    def load(self) -> Dict[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        env_data: Dict[str, Any] = {}
        plen = len(self.prefix)
        for var, raw_value in environ.items():
            if self.prefix and not var.startswith(self.prefix):
                continue
            dot_key = var[plen:].lower().replace("_", ".")
            if not dot_key or any(not part for part in dot_key.split('.')):
                log.debug(f"Skipping env var '{var}': cannot map to a config path")
                continue
            set_by_dot(env_data, dot_key, raw_value)
        log.debug(f"Collected {len(env_data)} top-level keys from environment (prefix '{self.prefix}')")
        return env_data


class InMemoryConfigSource(ConfigSource):
    """Serves a fixed tree; each ``load()`` returns an independent copy."""

    def __init__(self, config: Mapping[str, Any], priority: int = 50, name: str = "memory"):
        self._config = copy.deepcopy(dict(config))
        self.priority = priority
        self.name = name

    def load(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)
