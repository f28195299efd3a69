# --- File: folder_aggregate.py ---
"""Derived "every file below is selected" flag per folder."""

from typing import Dict, Optional


class FolderAggregateCache:
    """
    Folder path -> all-selected flag, derived from the selection store.

    Values are recomputed from the store on every toggle, never edited
    directly. A folder that has not been scanned is never all-selected; a
    scanned folder with no matching files anywhere below it is vacuously
    all-selected (the tree index hides such folders from display).
    """

    def __init__(self, tree_index, selection_store):
        self.tree_index = tree_index
        self.selection_store = selection_store
        self._cache: Dict[str, bool] = {}
        selection_store.selection_changed.connect(self.recompute_ancestors)

    def is_all_selected(self, folder: str) -> bool:
        return self._cache.get(folder, False)

    def as_dict(self) -> Dict[str, bool]:
        return dict(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def all_selected(self, folder: str, memo: Optional[Dict[str, bool]] = None) -> bool:
        """Compute the flag for ``folder`` from scratch, ignoring cached values."""
        if memo is None:
            memo = {}
        if folder in memo:
            return memo[folder]
        if not self.tree_index.is_scanned(folder):
            result = False
        else:
            result = (all(self.selection_store.is_selected(f) for f in self.tree_index.files_in(folder))
                      and all(self.all_selected(sub, memo) for sub in self.tree_index.subfolders_of(folder)))
        memo[folder] = result
        return result

    def recompute_ancestors(self, changed_path: str) -> None:
        """Refresh the flags affected by a toggle of ``changed_path``.

        For a folder this covers the folder, every folder below it and every
        ancestor up to the index root; for a file, its parent and ancestors.
        """
        memo: Dict[str, bool] = {}
        if self.tree_index.is_folder(changed_path):
            for folder in self.tree_index.iter_folders(changed_path):
                self._cache[folder] = self.all_selected(folder, memo)
        for ancestor in self.tree_index.ancestors(changed_path):
            self._cache[ancestor] = self.all_selected(ancestor, memo)

    def rebuild(self) -> None:
        """Recompute every scanned folder after a rescan."""
        self._cache.clear()
        memo: Dict[str, bool] = {}
        for folder in self.tree_index.iter_folders(self.tree_index.root):
            self._cache[folder] = self.all_selected(folder, memo)
        print(f"[AGGREGATE] 🔄 Rebuilt {len(self._cache)} folder states")
