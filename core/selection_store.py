# core/selection_store.py

"""Sparse per-file selection state."""

from typing import Dict, Iterable, List

from PySide6.QtCore import QObject, Signal


class SelectionStore(QObject):
    """
    Maps file path -> selected flag. A missing key means the path has not been
    observed yet and reads as unselected.

    ``selection_changed`` is emitted with the toggled file or folder path after
    every toggle; the folder aggregate cache listens to it.
    """
    selection_changed = Signal(str)

    def __init__(self, tree_index, parent=None):
        super().__init__(parent)
        self.tree_index = tree_index
        self._states: Dict[str, bool] = {}

    def is_selected(self, path: str) -> bool:
        return self._states.get(path, False)

    def observe(self, path: str) -> None:
        """Register a discovered file, unselected unless a value is already stored."""
        self._states.setdefault(path, False)

    def toggle_file(self, path: str, value: bool) -> None:
        self._states[path] = bool(value)
        self.selection_changed.emit(path)

    def toggle_folder(self, path: str, value: bool) -> None:
        """Set every file under ``path`` to ``value``, collapsed subfolders included."""
        count = 0
        for file_path in self.tree_index.iter_files(path):
            self._states[file_path] = bool(value)
            count += 1
        print(f"[SELECTION] {'✅' if value else '⬜'} Folder {path}: {count} files set to {bool(value)}")
        self.selection_changed.emit(path)

    def prune(self, current_paths: Iterable[str]) -> List[str]:
        """Remove every key not in ``current_paths`` and return the removed keys."""
        current = set(current_paths)
        stale = [path for path in self._states if path not in current]
        for path in stale:
            del self._states[path]
        if stale:
            print(f"[SELECTION] 🧹 Pruned {len(stale)} stale paths")
        return stale

    def selected_paths(self) -> List[str]:
        """Selected files in store iteration order."""
        return [path for path, selected in self._states.items() if selected]

    def items(self):
        return list(self._states.items())

    def as_dict(self) -> Dict[str, bool]:
        return dict(self._states)

    def replace(self, states: Dict[str, bool]) -> None:
        """Replace the whole mapping, e.g. with state restored from storage."""
        self._states = {str(path): bool(value) for path, value in states.items()}

    def __contains__(self, path):
        return path in self._states

    def __len__(self):
        return len(self._states)
