# --- File: merge_engine.py ---
"""Concatenates selected files into one buffer and hands it to the clipboard."""

from dataclasses import dataclass, field
from typing import List, Optional

import pyperclip

from .errors import MergeReadError, NothingSelectedWarning
from .tokenizer import calculate_tokens

OUTCOME_MERGED = "merged"
OUTCOME_NOTHING_SELECTED = "nothing_selected"


def format_delimiter(path: str) -> str:
    return f"//--------------{path}----------------"


@dataclass
class MergeResult:
    text: str = ""
    file_count: int = 0
    line_count: int = 0
    token_count: int = 0
    outcome: str = OUTCOME_MERGED
    errors: List[MergeReadError] = field(default_factory=list)
    warning: Optional[NothingSelectedWarning] = None

    @property
    def nothing_selected(self) -> bool:
        return self.outcome == OUTCOME_NOTHING_SELECTED


class MergeEngine:
    """Builds the merged buffer from the selection store's selected files.

    Files that cannot be read are skipped and reported in ``errors`` rather
    than aborting the merge.
    """

    def __init__(self, selection_store, reader, count_tokens=False):
        self.selection_store = selection_store
        self.reader = reader
        self.count_tokens = count_tokens

    def combine(self) -> MergeResult:
        selected = self.selection_store.selected_paths()
        if not selected:
            print("[MERGE] ⚠️ No files selected.")
            return MergeResult(outcome=OUTCOME_NOTHING_SELECTED,
                               warning=NothingSelectedWarning("No files selected."))

        parts = []
        result = MergeResult()
        for path in selected:
            try:
                content = self.reader.read_text(path)
                lines = self.reader.read_lines(path)
            except OSError as e:
                result.errors.append(self._read_error(path, e))
                continue
            parts.append(f"{format_delimiter(path)}\n{content}\n\n")
            result.file_count += 1
            result.line_count += len(lines)

        result.text = "".join(parts)
        if self.count_tokens:
            result.token_count = calculate_tokens(result.text)
        print(f"[MERGE] 📦 Merged {result.file_count} files, {result.line_count} lines"
              f" ({len(result.errors)} skipped)")
        return result

    def count_selected_lines(self) -> int:
        """Sum of line counts of the selected files, unreadable files skipped."""
        total = 0
        for path in self.selection_store.selected_paths():
            try:
                total += len(self.reader.read_lines(path))
            except OSError as e:
                self._read_error(path, e)
        return total

    @staticmethod
    def _read_error(path, os_error):
        error = MergeReadError(path, os_error.strerror or str(os_error))
        print(f"[MERGE] ⚠️ Skipping unreadable file {path}: {error.message}")
        return error


class ClipboardSink:
    """Writes text to the system clipboard through pyperclip."""

    def write(self, text: str) -> bool:
        try:
            pyperclip.copy(text)
            return True
        except pyperclip.PyperclipException as e:
            print(f"[MERGE] ❌ Error copying to clipboard: {e}")
            return False
