# --- File: fs_reader.py ---
"""Filesystem access used by the tree index and the merge engine."""

import os
import re
from typing import List

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class FileSystemReader:
    """Thin wrapper around ``os`` so tests can substitute a fake filesystem.

    Every method raises ``OSError`` (``IOError``) when the path vanished
    between listing and reading. Listings are sorted by name so traversal
    order is stable across platforms.
    """

    def list_directories(self, path: str) -> List[str]:
        with os.scandir(path) as entries:
            names = sorted(entry.name for entry in entries if entry.is_dir(follow_symlinks=False))
        return [os.path.join(path, name) for name in names]

    def list_files(self, path: str) -> List[str]:
        with os.scandir(path) as entries:
            names = sorted(entry.name for entry in entries if entry.is_file())
        return [os.path.join(path, name) for name in names]

    def read_text(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    def read_lines(self, path: str) -> List[str]:
        """Split on \\n, \\r and \\r\\n only; a trailing line break does not add a line."""
        lines = _LINE_BREAK.split(self.read_text(path))
        if lines and lines[-1] == "":
            lines.pop()
        return lines
