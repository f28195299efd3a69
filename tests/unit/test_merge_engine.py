import os
import pytest
from pathlib import Path
from unittest.mock import MagicMock, patch

import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

import pyperclip

from core import merge_engine
from core.errors import MergeReadError, NothingSelectedWarning
from core.fs_reader import FileSystemReader
from core.merge_engine import ClipboardSink, MergeEngine, format_delimiter
from core.selection_store import SelectionStore
from core.tree_index import TreeIndex
from tests.fixtures.repo_gen import create_test_repo, SAMPLE_STRUCTURE


@pytest.fixture
def repo(tmp_path):
    return create_test_repo(tmp_path, SAMPLE_STRUCTURE)


@pytest.fixture
def store(repo):
    index = TreeIndex(str(repo))
    index.materialize()
    store = SelectionStore(index)
    for path in index.known_files():
        store.observe(path)
    return store


def test_nothing_selected_is_a_warning_outcome(store):
    result = MergeEngine(store, FileSystemReader()).combine()

    assert result.nothing_selected
    assert result.text == ""
    assert result.file_count == 0 and result.line_count == 0
    assert isinstance(result.warning, NothingSelectedWarning)


def test_combine_formats_delimiters_and_counts(store, repo):
    x_path = str(repo / "a" / "x.cs")
    z_path = str(repo / "b" / "z.uxml")
    store.toggle_file(x_path, True)
    store.toggle_file(z_path, True)

    result = MergeEngine(store, FileSystemReader()).combine()

    assert not result.nothing_selected
    assert result.file_count == 2
    assert result.line_count == 3
    assert result.errors == []
    expected = (
        f"//--------------{x_path}----------------\n"
        "class X {}\n// x\n\n\n"
        f"//--------------{z_path}----------------\n"
        "<ui:UXML />\n\n\n"
    )
    assert result.text == expected


def test_delimiters_follow_selection_order(store, repo):
    for path in store.items():
        store.toggle_file(path[0], True)

    result = MergeEngine(store, FileSystemReader()).combine()

    positions = [result.text.index(format_delimiter(path)) for path in store.selected_paths()]
    assert positions == sorted(positions)
    assert result.file_count == len(store.selected_paths())
    expected_lines = sum(len(Path(p).read_text(encoding="utf-8").splitlines()) for p in store.selected_paths())
    assert result.line_count == expected_lines


def test_line_count_is_per_file(tmp_path):
    repo = create_test_repo(tmp_path, {"a.cs": "one\ntwo", "b.cs": "", "c.cs": "x\n\n"})
    index = TreeIndex(str(repo))
    index.materialize()
    store = SelectionStore(index)
    store.toggle_folder(str(repo), True)

    result = MergeEngine(store, FileSystemReader()).combine()

    assert result.file_count == 3
    assert result.line_count == 4


def test_unreadable_file_is_skipped(store, repo):
    x_path = str(repo / "a" / "x.cs")
    y_path = str(repo / "a" / "y.cs")
    store.toggle_file(x_path, True)
    store.toggle_file(y_path, True)
    os.remove(x_path)

    engine = MergeEngine(store, FileSystemReader())
    result = engine.combine()

    assert result.file_count == 1
    assert result.line_count == 3
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], MergeReadError)
    assert result.errors[0].path == x_path
    assert format_delimiter(x_path) not in result.text
    assert engine.count_selected_lines() == 3


def test_token_count_only_when_enabled(store, repo):
    store.toggle_file(str(repo / "a" / "x.cs"), True)

    with patch.object(merge_engine, "calculate_tokens", return_value=42) as mock_tokens:
        assert MergeEngine(store, FileSystemReader()).combine().token_count == 0
        mock_tokens.assert_not_called()
        assert MergeEngine(store, FileSystemReader(), count_tokens=True).combine().token_count == 42


def test_clipboard_sink_copies_text():
    with patch.object(pyperclip, "copy") as mock_copy:
        assert ClipboardSink().write("merged") is True
        mock_copy.assert_called_once_with("merged")


def test_clipboard_sink_failure_is_reported_not_raised():
    with patch.object(pyperclip, "copy", side_effect=pyperclip.PyperclipException("no clipboard")):
        assert ClipboardSink().write("merged") is False
