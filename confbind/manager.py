# confbind/manager.py
"""
confbind.manager
----------------

``ConfigManager`` owns the source list, the currently published
``Pipeline``, the change listeners and the optional file watcher.

Loading precedence (lowest to highest priority):
1.  ``application.{json,yml,yaml,toml}`` in ``config_dir`` (priority 100).
2.  ``application-<profile>.{json,yml,yaml,toml}`` (priority 150).
3.  Environment variables, optionally filtered by ``env_prefix`` (priority 200).
4.  ``additional_sources``, each at its own priority.

After merging, ``${NAME[:fallback]}`` placeholders are resolved and
``ENC(iv:cipher)`` secrets are decrypted (if an encryption key was given).
"""

import copy
import logging
import os
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .binder import Binder
from .encryption import SecretDecryptor
from .merge import sort_sources
from .pipeline import ChangeListener, ChangeNotifier, Pipeline, reload
from .placeholders import EnvLookup, environ_lookup
from .provenance import ProvenanceEntry
from .sources import ConfigSource, EnvConfigSource, FileConfigSource
from .utils import get_by_dot, resolve_path
from .validation import Validator
from .watcher import ConfigWatcher

log = logging.getLogger(__name__)

PROFILE_ENV_VAR = "CONFBIND_PROFILE"
DEFAULT_PROFILE = "development"
DEFAULT_CONFIG_DIR = "./config"
FILE_EXTENSIONS = (".json", ".yml", ".yaml", ".toml")


class ConfigManager:
    """
    Resolves layered configuration and binds it onto schema classes.

    Args:
        profile: Active profile; defaults to ``$CONFBIND_PROFILE`` or "development".
        config_dir: Directory holding ``application*.{json,yml,yaml,toml}``.
        env_prefix: Only environment variables with this prefix are loaded.
        additional_sources: Extra sources merged at their own priorities.
        enable_hot_reload: Watch ``config_dir`` and reload on changes
            (only when ``config_dir`` was given explicitly).
        encryption_key: 32-byte key for ``ENC(...)`` values.
        validate_on_bind: Run structural validation for validated schemas.
        enable_placeholder_resolution: Resolve ``${NAME[:fallback]}`` references.
        env_lookup: Lookup used for placeholders; ``os.environ.get`` by default.
        load_dotenv_file: Load a ``.env`` file into ``os.environ`` first.
        dotenv_path: Explicit ``.env`` path; searched from the cwd if omitted.
        validator: Structural validator replacing the pydantic default.
        track_provenance: Record which source set each leaf.

    Raises:
        EncryptionKeyError: If `encryption_key` is not 32 bytes long.
    """

    def __init__(self,
                 profile: Optional[str] = None,
                 config_dir: Optional[str] = None,
                 env_prefix: Optional[str] = None,
                 additional_sources: Optional[Iterable[ConfigSource]] = None,
                 enable_hot_reload: bool = False,
                 encryption_key: Optional[Union[str, bytes]] = None,
                 validate_on_bind: bool = True,
                 enable_placeholder_resolution: bool = True,
                 env_lookup: Optional[EnvLookup] = None,
                 load_dotenv_file: bool = False,
                 dotenv_path: Optional[str] = None,
                 validator: Optional[Validator] = None,
                 track_provenance: bool = False):
        self.profile = profile or os.environ.get(PROFILE_ENV_VAR) or DEFAULT_PROFILE
        self._config_dir = config_dir
        self.env_prefix = env_prefix
        self._additional_sources = list(additional_sources or [])
        self.enable_hot_reload = enable_hot_reload
        self.enable_placeholder_resolution = enable_placeholder_resolution
        self.env_lookup = env_lookup or environ_lookup
        self.load_dotenv_file = load_dotenv_file
        self.dotenv_path = dotenv_path
        self.track_provenance = track_provenance

        self._decryptor = SecretDecryptor(encryption_key) if encryption_key else None
        self._binder = Binder(validator, validate_on_bind)
        self._notifier = ChangeNotifier()
        self._pipeline = Pipeline()
        self._sources: List[ConfigSource] = []
        self._watcher: Optional[ConfigWatcher] = None
        self._initialized = False

    @property
    def config_dir(self) -> str:
        return self._config_dir or DEFAULT_CONFIG_DIR

    @property
    def validate_on_bind(self) -> bool:
        return self._binder.validate_on_bind

    @property
    def sources(self) -> List[ConfigSource]:
        return list(self._sources)

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _load_dotenv_file(self) -> None:
        """Loads a .env file into os.environ without overriding existing variables."""
        actual_dotenv_path = self.dotenv_path or find_dotenv(usecwd=True)
        if actual_dotenv_path and os.path.exists(actual_dotenv_path):
            if load_dotenv(dotenv_path=actual_dotenv_path, override=False):
                log.debug(f"Loaded .env file from: {actual_dotenv_path}")
        else:
            log.debug(f"No .env file found (searched path: {self.dotenv_path or 'auto'})")

    def _default_sources(self) -> List[ConfigSource]:
        config_dir = self.config_dir
        sources: List[ConfigSource] = []
        sources.extend(FileConfigSource(os.path.join(config_dir, f"application{ext}"), 100)
                       for ext in FILE_EXTENSIONS)
        sources.extend(FileConfigSource(os.path.join(config_dir, f"application-{self.profile}{ext}"), 150)
                       for ext in FILE_EXTENSIONS)
        sources.append(EnvConfigSource(self.env_prefix or "", 200))
        return sources

    def initialize(self) -> None:
        """Register the default sources, load everything and start hot reload. Idempotent."""
        if self._initialized:
            return

        if self.load_dotenv_file:
            self._load_dotenv_file()

        log.info(f"Initializing configuration with config_dir: {self.config_dir}, profile: {self.profile}")
        self._sources = sort_sources(self._default_sources() + self._additional_sources)
        log.debug(f"Registered {len(self._sources)} config sources")

        self.reload()

        if self.enable_hot_reload and self._config_dir:
            self._watcher = ConfigWatcher(str(resolve_path(self._config_dir)), self.reload)
            self._watcher.start()

        self._initialized = True

    def reload(self) -> None:
        """
        Rebuild the tree from all sources, drop cached instances and notify listeners.

        Overlapping reloads are not serialized: the last one to publish wins.
        """
        pipeline = reload(
            self._pipeline,
            self._sources,
            env_lookup=self.env_lookup,
            decryptor=self._decryptor,
            resolve_placeholders=self.enable_placeholder_resolution,
            track_provenance=self.track_provenance,
        )
        self._pipeline = pipeline
        self._notifier.publish(pipeline.tree)

    def get(self, path: str, default: Any = None) -> Any:
        """Value at dot-notation `path` (a copy), or `default` if absent."""
        try:
            return copy.deepcopy(get_by_dot(self._pipeline.tree, path))
        except KeyError:
            return default

    def get_all(self) -> Dict[str, Any]:
        """A deep copy of the whole resolved tree."""
        return self._pipeline.snapshot()

    def has(self, path: str) -> bool:
        try:
            get_by_dot(self._pipeline.tree, path)
            return True
        except KeyError:
            return False

    def bind(self, cls: type) -> Any:
        """
        Bound instance of `cls`, cached until the next reload.

        Raises whatever binding raises: ``SchemaError``, ``ConfigTypeError``,
        ``MissingRequiredProperty`` or ``ConfigValidationError``.
        """
        pipeline = self._pipeline
        return pipeline.cache.get_or_bind(cls, lambda: self._binder.bind(cls, pipeline.tree))

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Call `listener` with a copy of the tree after every reload; returns an unsubscribe function."""
        return self._notifier.subscribe(listener)

    def provenance(self, path: str) -> List[ProvenanceEntry]:
        """Override chain for a leaf, oldest first. Empty unless provenance is tracked."""
        store = self._pipeline.provenance
        return store.get_history(path) if store is not None else []

    def dispose(self) -> None:
        """Stop the watcher, drop listeners and cached instances. In-flight reloads still finish."""
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        self._notifier.clear()
        self._pipeline.cache.invalidate()

    def __enter__(self) -> "ConfigManager":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()
