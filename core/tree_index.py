# --- File: tree_index.py ---
"""
Lazy directory index filtered by an extension allow-list.

Two traversal modes share the same listing primitive:
  * shallow (``scan_folder`` / ``walk_visible``) lists one folder at a time and
    only descends into folders the caller reports as expanded;
  * deep (``materialize`` / ``iter_files`` / ``iter_folders``) descends into
    every subfolder unconditionally, as selection and aggregates require.

A folder listed once stays cached until ``clear()``; there is no per-folder
invalidation.
"""

import os
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .errors import ScanError
from .fs_reader import FileSystemReader
from .settings import ensure_complete_settings


class TreeIndex:
    """Per-folder cache of matching files and subfolders under one root."""

    def __init__(self, root_path: str, settings: Optional[dict] = None,
                 reader: Optional[FileSystemReader] = None):
        self.root = os.path.normpath(root_path)
        self.settings = ensure_complete_settings(settings)
        self.reader = reader or FileSystemReader()
        self.extensions = set(self.settings["extensions"])
        self.ignore_folders = {name.lower() for name in self.settings["ignore_folders"]}
        self._folder_files: Dict[str, List[str]] = {}
        self._subfolders: Dict[str, List[str]] = {}
        self._known_files: Dict[str, None] = {}  # ordered set, discovery order
        self.errors: List[ScanError] = []

    def clear(self) -> None:
        """Drop every cached listing. The next scan re-reads the filesystem."""
        self._folder_files.clear()
        self._subfolders.clear()
        self._known_files.clear()
        self.errors = []

    # --- Listing primitive ---

    def _read_listing(self, path: str) -> Tuple[List[str], List[str]]:
        try:
            subfolders = [os.path.normpath(d) for d in self.reader.list_directories(path)
                          if os.path.basename(d).lower() not in self.ignore_folders]
            files = [os.path.normpath(f) for f in self.reader.list_files(path) if self.matches(f)]
        except OSError as e:
            error = ScanError(path, e.strerror or str(e))
            self.errors.append(error)
            print(f"[TREE_INDEX] ⚠️ Skipping {path}: {error.message}")
            return [], []
        return subfolders, files

    def _store(self, path: str, subfolders: List[str], files: List[str]) -> None:
        self._subfolders[path] = subfolders
        self._folder_files[path] = files
        for file_path in files:
            self._known_files[file_path] = None

    def matches(self, file_path: str) -> bool:
        """True when the file's extension is in the allow-list."""
        return os.path.splitext(file_path)[1] in self.extensions

    # --- Shallow mode ---

    def scan_folder(self, path: str) -> List[str]:
        """List one folder (no-op when cached) and return its matching files."""
        path = os.path.normpath(path)
        if path not in self._folder_files:
            subfolders, files = self._read_listing(path)
            self._store(path, subfolders, files)
        return self._folder_files[path]

    def walk_visible(self, is_expanded: Callable[[str], bool]) -> Iterator[Tuple[str, int, bool]]:
        """Yield ``(path, depth, is_folder)`` rows for display.

        Children are listed only for expanded folders. Folders whose cached
        subtree holds no matching file are hidden along with their branch.
        """
        yield from self._walk_visible(self.root, 0, is_expanded)

    def _walk_visible(self, path, depth, is_expanded):
        if is_expanded(path):
            self.scan_folder(path)
        if not self.has_cached_matches(path):
            return
        yield path, depth, True
        if not is_expanded(path):
            return
        for subfolder in self._subfolders.get(path, []):
            yield from self._walk_visible(subfolder, depth + 1, is_expanded)
        for file_path in self._folder_files.get(path, []):
            yield file_path, depth + 1, False

    def has_cached_matches(self, path: str) -> bool:
        """True when a matching file is cached in ``path`` or any cached descendant."""
        if self._folder_files.get(path):
            return True
        return any(self.has_cached_matches(sub) for sub in self._subfolders.get(path, []))

    # --- Deep mode ---

    def materialize(self, path: Optional[str] = None) -> None:
        """Recursively list ``path`` and every folder below it.

        Subfolders are materialised before the folder's own files are recorded,
        so files nested deeper are discovered first.
        """
        path = os.path.normpath(path) if path else self.root
        if path in self._folder_files:
            for subfolder in self._subfolders[path]:
                self.materialize(subfolder)
            return
        subfolders, files = self._read_listing(path)
        for subfolder in subfolders:
            self.materialize(subfolder)
        self._store(path, subfolders, files)

    def iter_files(self, path: str) -> Iterator[str]:
        """Yield every matching file under ``path``, forcing a deep scan."""
        path = os.path.normpath(path)
        self.materialize(path)
        for folder in self.iter_folders(path):
            yield from self._folder_files.get(folder, [])

    def iter_folders(self, path: str) -> Iterator[str]:
        """Yield ``path`` and all folders below it, children before parents."""
        path = os.path.normpath(path)
        self.materialize(path)
        stack = [(path, False)]
        while stack:
            folder, children_done = stack.pop()
            if children_done:
                yield folder
                continue
            stack.append((folder, True))
            for subfolder in reversed(self._subfolders.get(folder, [])):
                stack.append((subfolder, False))

    # --- Lookups ---

    def is_scanned(self, path: str) -> bool:
        return os.path.normpath(path) in self._folder_files

    def is_folder(self, path: str) -> bool:
        return os.path.normpath(path) in self._folder_files

    def files_in(self, path: str) -> List[str]:
        """Cached matching files directly inside ``path`` (empty when unscanned)."""
        return list(self._folder_files.get(os.path.normpath(path), []))

    def subfolders_of(self, path: str) -> List[str]:
        return list(self._subfolders.get(os.path.normpath(path), []))

    def known_files(self) -> List[str]:
        """Every matching file observed since the last ``clear()``, in discovery order."""
        return list(self._known_files)

    def scanned_folders(self) -> List[str]:
        return list(self._folder_files)

    def contains(self, path: str) -> bool:
        path = os.path.normpath(path)
        if path == self.root:
            return True
        if self.root == os.curdir:
            return not os.path.isabs(path) and path.split(os.sep)[0] != os.pardir
        return path.startswith(self.root.rstrip(os.sep) + os.sep)

    @staticmethod
    def parent_of(path: str) -> str:
        """Parent folder of a normalised path; relative top-level entries map to "."."""
        return os.path.dirname(path) or os.curdir

    def ancestors(self, path: str) -> Iterator[str]:
        """Yield the folders above ``path`` up to and including the root."""
        current = os.path.normpath(path)
        while current != self.root:
            parent = self.parent_of(current)
            if parent == current or not self.contains(parent):
                return
            yield parent
            current = parent

    def is_known_file(self, path: str) -> bool:
        return os.path.normpath(path) in self._known_files

    def is_known_folder(self, path: str) -> bool:
        """True for the root and for any folder listed by a scanned parent."""
        path = os.path.normpath(path)
        if path == self.root or path in self._folder_files:
            return True
        return path in self._subfolders.get(self.parent_of(path), [])
