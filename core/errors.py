"""Error taxonomy for scanning, persistence and merging."""


class CombinerError(Exception):
    """Base class for recoverable code combiner errors."""

    def __init__(self, path, message):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class ScanError(CombinerError):
    """A directory vanished or became unreadable while it was being listed."""


class PersistenceFormatError(CombinerError):
    """A persisted mapping could not be decoded. ``path`` holds the storage key."""


class MergeReadError(CombinerError):
    """A selected file could not be read during merge or line counting."""


class NothingSelectedWarning(UserWarning):
    """Outcome marker for a merge with zero selected files. Never raised."""
