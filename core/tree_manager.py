# --- File: tree_manager.py ---
"""
Owner of all file-tree selection state for one workspace root.

The presentation layer talks only to ``TreeManager``: it reads rows and flags
to draw, forwards toggles and foldout changes, and asks for merges. Every
mutation runs synchronously on the thread that owns the manager.
"""

import os
from collections import namedtuple
from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from .change_detector import ChangeDetector, FileWatcher, ignore_patterns_for
from .folder_aggregate import FolderAggregateCache
from .fs_reader import FileSystemReader
from .merge_engine import ClipboardSink, MergeEngine, MergeResult
from .persistence import JsonFileStore, PersistenceAdapter
from .selection_store import SelectionStore
from .settings import ensure_complete_settings
from .tree_index import TreeIndex

TreeRow = namedtuple("TreeRow", ["path", "depth", "is_folder", "checked", "expanded"])


class TreeManager(QObject):
    state_changed = Signal()

    def __init__(self, root_path, settings=None, store=None, reader=None,
                 clipboard=None, base_path=None, parent=None):
        super().__init__(parent)
        self.settings = ensure_complete_settings(settings)
        self.root = os.path.normpath(root_path)
        self.reader = reader or FileSystemReader()

        self.tree_index = TreeIndex(self.root, self.settings, self.reader)
        self.selection = SelectionStore(self.tree_index, self)
        self.aggregates = FolderAggregateCache(self.tree_index, self.selection)
        self.expansion: Dict[str, bool] = {}

        if store is None:
            store = JsonFileStore(base_path, self.settings["state_file"])
        self.persistence = PersistenceAdapter(store, self.root)
        self.merge_engine = MergeEngine(self.selection, self.reader,
                                        count_tokens=self.settings["count_tokens"])
        self.clipboard = clipboard or ClipboardSink()

        self.change_detector = ChangeDetector(self.settings["poll_interval_ms"], self)
        self.change_detector.refresh_requested.connect(self.rescan)
        self.watcher: Optional[FileWatcher] = None
        self.active = False

    # --- Lifecycle ---

    def activate(self):
        """Restore saved state, scan the tree and start listening for changes."""
        print(f"[MANAGER] 🚀 Activating for {self.root}")
        self.load_state()
        self.rescan()
        if self.settings["live_watcher"]:
            self.watcher = FileWatcher(self.root, self.change_detector.notify,
                                       ignore_patterns_for(self.settings["ignore_folders"]))
            self.watcher.start()
        self.change_detector.start()
        self.active = True

    def deactivate(self):
        """Stop listening for changes and flush state to storage."""
        if not self.active:
            return
        self.change_detector.stop()
        if self.watcher:
            self.watcher.stop()
            self.watcher = None
        self.save_state()
        self.active = False
        print(f"[MANAGER] ✅ Deactivated {self.root}")

    def load_state(self):
        selection, expansion = self.persistence.load()
        if selection is not None:
            self.selection.replace(selection)
        if expansion is not None:
            self.expansion = dict(expansion)

    def save_state(self):
        self.persistence.save(self.selection.as_dict(), self.expansion)

    # --- Change detection ---

    def on_assets_changed(self):
        """Notifier entry point: only marks the tree dirty."""
        self.change_detector.notify()

    def tick(self):
        return self.change_detector.tick()

    def rescan(self):
        """Rebuild the index from disk, prune stale selections and recompute aggregates."""
        self.tree_index.clear()
        self.aggregates.clear()
        self.tree_index.materialize(self.root)

        known_files = self.tree_index.known_files()
        for file_path in known_files:
            self.selection.observe(file_path)
        self.selection.prune(known_files)
        for folder in self.tree_index.scanned_folders():
            self.expansion.setdefault(folder, True)
        self.aggregates.rebuild()

        print(f"[MANAGER] 📁 Scan finished: {len(known_files)} files,"
              f" {len(self.tree_index.errors)} errors")
        self.state_changed.emit()

    # --- Selection ---

    def is_selected(self, path) -> bool:
        return self.selection.is_selected(os.path.normpath(path))

    def folder_all_selected(self, path) -> bool:
        return self.aggregates.is_all_selected(os.path.normpath(path))

    def toggle_file(self, path, value) -> bool:
        path = os.path.normpath(path)
        if not self.tree_index.is_known_file(path):
            print(f"[MANAGER] ⚠️ Ignoring toggle of unknown file {path}")
            return False
        self.selection.toggle_file(path, value)
        self.state_changed.emit()
        return True

    def toggle_folder(self, path, value) -> bool:
        path = os.path.normpath(path)
        if not self.tree_index.is_known_folder(path):
            print(f"[MANAGER] ⚠️ Ignoring toggle of unknown folder {path}")
            return False
        self.selection.toggle_folder(path, value)
        self.state_changed.emit()
        return True

    # --- Expansion ---

    def is_expanded(self, path) -> bool:
        return self.expansion.setdefault(os.path.normpath(path), True)

    def set_expanded(self, path, value):
        self.expansion[os.path.normpath(path)] = bool(value)
        self.state_changed.emit()

    # --- Presentation helpers ---

    def visible_rows(self) -> List[TreeRow]:
        rows = []
        for path, depth, is_folder in self.tree_index.walk_visible(self.is_expanded):
            if is_folder:
                rows.append(TreeRow(path, depth, True, self.aggregates.is_all_selected(path),
                                    self.is_expanded(path)))
            else:
                rows.append(TreeRow(path, depth, False, self.selection.is_selected(path), False))
        return rows

    def selected_file_count(self) -> int:
        return len(self.selection.selected_paths())

    def selected_line_count(self) -> int:
        return self.merge_engine.count_selected_lines()

    # --- Merge ---

    def combine(self) -> MergeResult:
        return self.merge_engine.combine()

    def combine_and_copy(self) -> Tuple[MergeResult, bool]:
        """Merge the selection and copy it to the clipboard when anything was merged."""
        result = self.combine()
        if not result.text:
            return result, False
        copied = self.clipboard.write(result.text)
        if copied:
            print("[MERGE] 📋 Merged content copied to clipboard.")
        return result, copied
