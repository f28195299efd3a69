import os
import time
import fnmatch
import threading
from watchdog.observers.polling import PollingObserver as Observer
from watchdog.events import FileSystemEventHandler
from PySide6.QtCore import QObject, Signal, QTimer

from .settings import POLL_INTERVAL_MS


class ChangeDetector(QObject):
    """
    Coalesces "something changed" notifications into at most one rescan per tick.

    ``notify()`` may be called from any thread and only raises the dirty flag.
    ``tick()`` runs on the owning thread, clears the flag and emits
    ``refresh_requested`` once, however many notifications arrived.
    """
    refresh_requested = Signal()

    def __init__(self, poll_interval_ms=POLL_INTERVAL_MS, parent=None):
        super().__init__(parent)
        self._dirty = threading.Event()
        self.poll_interval_ms = poll_interval_ms
        self.poll_timer = None

    def notify(self):
        self._dirty.set()

    @property
    def is_dirty(self):
        return self._dirty.is_set()

    def tick(self):
        """Emit ``refresh_requested`` if a change arrived since the last tick."""
        if not self._dirty.is_set():
            return False
        self._dirty.clear()
        print("[WATCHER] 🔔 Changes detected, requesting rescan")
        self.refresh_requested.emit()
        return True

    def start(self):
        if self.poll_timer is None:
            self.poll_timer = QTimer(self)
            self.poll_timer.setInterval(self.poll_interval_ms)
            self.poll_timer.timeout.connect(self.tick)
        self.poll_timer.start()

    def stop(self):
        if self.poll_timer is not None:
            self.poll_timer.stop()


class _EventHandler(FileSystemEventHandler):
    def __init__(self, on_change, ignore_rules):
        super().__init__()
        self.on_change = on_change
        self.ignore_rules = ignore_rules

    def on_any_event(self, event):
        if event.event_type not in ('created', 'deleted', 'moved'):
            return
        if self._is_ignored(event.src_path):
            return
        self.on_change()

    def _is_ignored(self, path):
        """Check if a path matches any of the glob-style ignore rules."""
        for pattern in self.ignore_rules:
            if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(os.path.basename(path), pattern):
                return True
        return False


def ignore_patterns_for(folder_names):
    """Glob patterns matching an ignored folder and anything below it."""
    patterns = set()
    for name in folder_names:
        patterns.add(name)
        patterns.add(f"*{os.sep}{name}{os.sep}*")
    return patterns


class FileWatcher:
    """Runs a watchdog observer on a background thread and forwards create,
    delete and move events to ``on_change`` (usually ``ChangeDetector.notify``)."""

    def __init__(self, root_path, on_change, ignore_rules=None):
        self.root_path = root_path
        self.on_change = on_change
        self.ignore_rules = set(ignore_rules or [])
        self._stop_event = threading.Event()
        self._thread = None

    def start(self):
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_observer)
        self._thread.daemon = True
        self._thread.start()
        print(f"[WATCHER] 👀 Watching {self.root_path}")

    def stop(self):
        if not self.is_running():
            return
        self._stop_event.set()
        self._thread.join(timeout=2)
        self._thread = None
        print(f"[WATCHER] 🛑 Stopped watching {self.root_path}")

    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def _run_observer(self):
        """This method runs in the background thread."""
        event_handler = _EventHandler(self.on_change, self.ignore_rules)
        observer = Observer()
        observer.schedule(event_handler, self.root_path, recursive=True)
        observer.start()
        while not self._stop_event.is_set():
            time.sleep(0.1)
        observer.stop()
        observer.join()
