import os
import json
import hashlib
import shutil
from pathlib import Path
from typing import Dict, Optional, Tuple

from .errors import PersistenceFormatError
from .settings import STATE_FILE, get_testing_base_path

SELECTION_KEY_PREFIX = "CodeCombiner_FileSelectionStates_"
FOLDOUT_KEY_PREFIX = "CodeCombiner_FoldoutStates_"


class MemoryStore:
    """In-process key-value store, mostly for tests."""

    def __init__(self, initial=None):
        self.data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """String-keyed store kept in one JSON file with a checksum.

    Every ``set`` rewrites the file through a temp file and an atomic move, so
    an interrupted write leaves the previous file intact.
    """

    def __init__(self, base_path=None, filename=STATE_FILE):
        self.file_path = self._get_state_file_path(base_path, filename)
        self._entries = self._load()

    @staticmethod
    def _get_state_file_path(base_path, filename):
        """Returns the absolute path to the state file."""
        testing_base = get_testing_base_path()
        if testing_base:
            return Path(testing_base).resolve() / filename
        if base_path:
            return Path(base_path).resolve() / filename
        return Path.cwd() / filename

    def _load(self) -> Dict[str, str]:
        if not self.file_path.exists():
            return {}
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            checksum = data.pop("checksum", None)
            json_bytes = json.dumps(data, indent=4).encode('utf-8')
            if checksum != hashlib.sha256(json_bytes).hexdigest():
                raise ValueError("Checksum mismatch.")
            entries = data.get("entries", {})
            if not isinstance(entries, dict):
                raise ValueError("Entries are not a mapping.")
            return {str(k): str(v) for k, v in entries.items()}
        except (json.JSONDecodeError, ValueError, IOError, TypeError, AttributeError) as e:
            print(f"[PERSIST] ⚠️ Could not load state file '{self.file_path}': {e}. Starting empty.")
            return {}

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        self._entries[key] = value
        data = {"schema_version": 1, "entries": self._entries}
        json_bytes = json.dumps(data, indent=4).encode('utf-8')
        final_data = dict(data)
        final_data["checksum"] = hashlib.sha256(json_bytes).hexdigest()

        temp_file_path = self.file_path.with_suffix('.json.tmp')
        try:
            with open(temp_file_path, 'w', encoding='utf-8') as f:
                json.dump(final_data, f, indent=4)
            shutil.move(str(temp_file_path), str(self.file_path))
        except (IOError, TypeError) as e:
            print(f"[PERSIST] ❌ Error saving state file: {e}")


def workspace_id(root_path: str) -> str:
    """Stable identity of a workspace root, independent of process and platform hash seeds."""
    normalized = os.path.normcase(os.path.abspath(os.path.normpath(root_path)))
    return hashlib.sha256(normalized.encode('utf-8')).hexdigest()[:16]


def encode_mapping(mapping: Dict[str, bool]) -> str:
    return json.dumps({str(k): bool(v) for k, v in mapping.items()})


def decode_mapping(text: str, key: str = "") -> Dict[str, bool]:
    """
    Decode a persisted ``{path: bool}`` blob.

    The legacy parallel-list form ``{"keys": [...], "values": [...]}`` is also
    accepted. Raises PersistenceFormatError on malformed input.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise PersistenceFormatError(key, f"invalid JSON: {e}")
    if not isinstance(data, dict):
        raise PersistenceFormatError(key, "expected a JSON object")

    if set(data) == {"keys", "values"} and isinstance(data["keys"], list) and isinstance(data["values"], list):
        keys, values = data["keys"], data["values"]
        if len(keys) != len(values):
            raise PersistenceFormatError(
                key, f"there are not same number of keys and values ({len(keys)} != {len(values)})")
        pairs = zip(keys, values)
    else:
        pairs = data.items()

    mapping = {}
    for path, value in pairs:
        if not isinstance(path, str) or not isinstance(value, bool):
            raise PersistenceFormatError(key, f"bad entry {path!r}: {value!r}")
        mapping[path] = value
    return mapping


class PersistenceAdapter:
    """Saves and restores selection and expansion state for one workspace."""

    def __init__(self, store, root_path):
        self.store = store
        self.workspace_id = workspace_id(root_path)

    @property
    def selection_key(self):
        return f"{SELECTION_KEY_PREFIX}{self.workspace_id}"

    @property
    def foldout_key(self):
        return f"{FOLDOUT_KEY_PREFIX}{self.workspace_id}"

    def save(self, selection: Dict[str, bool], expansion: Dict[str, bool]) -> None:
        self.store.set(self.selection_key, encode_mapping(selection))
        self.store.set(self.foldout_key, encode_mapping(expansion))
        print(f"[PERSIST] 💾 Saved {len(selection)} selection and {len(expansion)} foldout states")

    def load(self) -> Tuple[Optional[Dict[str, bool]], Optional[Dict[str, bool]]]:
        """Return ``(selection, expansion)``; ``None`` for a mapping never stored.

        A stored mapping that fails to decode comes back empty.
        """
        return self._load_mapping(self.selection_key), self._load_mapping(self.foldout_key)

    def _load_mapping(self, key):
        text = self.store.get(key)
        if text is None:
            return None
        try:
            return decode_mapping(text, key)
        except PersistenceFormatError as e:
            print(f"[PERSIST] ⚠️ Discarding stored state for {key}: {e.message}")
            return {}
