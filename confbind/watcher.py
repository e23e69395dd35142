# confbind/watcher.py
"""
confbind.watcher
----------------

Hot reload: a watchdog observer on the configuration directory that calls a
reload callback whenever a (non-hidden) file in it changes.

Events are not debounced; each change triggers its own reload.
"""

import logging
import os
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)


def _is_hidden(path: str) -> bool:
    return os.path.basename(path).startswith('.')


class _ConfigChangeHandler(FileSystemEventHandler):
    """Forwards file modifications and creations to the reload callback."""

    def __init__(self, on_change: Callable[[str], None]):
        super().__init__()
        self._on_change = on_change

    def _dispatch_change(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = os.fsdecode(getattr(event, 'dest_path', None) or event.src_path)
        if _is_hidden(path):
            return
        self._on_change(path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch_change(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch_change(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._dispatch_change(event)


class ConfigWatcher:
    """
    Watches `config_dir` and invokes `reload_callback` on changes.

    Errors raised by the callback are logged; the watcher keeps running.
    """

    def __init__(self, config_dir: str, reload_callback: Callable[[], None]):
        self.config_dir = config_dir
        self._reload_callback = reload_callback
        self._observer: Optional[Observer] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def handle_change(self, path: str) -> None:
        log.info(f"Config file changed: {path}, reloading...")
        try:
            self._reload_callback()
        except Exception:
            log.exception(f"Failed reloading configuration after change to {path}")

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(_ConfigChangeHandler(self.handle_change), self.config_dir, recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        log.info(f"Hot reload started, watching {self.config_dir}")

    def stop(self, timeout: float = 5.0) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=timeout)
        self._observer = None
        log.info("Hot reload stopped")
