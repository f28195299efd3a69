import os
import random
import pytest

import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.tree_index import TreeIndex
from core.selection_store import SelectionStore
from core.folder_aggregate import FolderAggregateCache
from tests.fixtures.repo_gen import create_test_repo, SAMPLE_STRUCTURE


@pytest.fixture
def repo(tmp_path):
    structure = dict(SAMPLE_STRUCTURE)
    structure["a"] = dict(SAMPLE_STRUCTURE["a"], sub={"inner.cs": "inner\n", "leaf": {"l.uss": "l\n"}})
    return create_test_repo(tmp_path, structure)


@pytest.fixture
def engine(repo):
    index = TreeIndex(str(repo))
    index.materialize()
    store = SelectionStore(index)
    for path in index.known_files():
        store.observe(path)
    aggregates = FolderAggregateCache(index, store)
    aggregates.rebuild()
    return index, store, aggregates


def _expected_all_selected(index, store, folder):
    files = list(index.iter_files(folder))
    return all(store.is_selected(f) for f in files)


def test_unknown_path_reads_unselected(engine):
    _, store, _ = engine
    assert store.is_selected("/nowhere/file.cs") is False
    assert "/nowhere/file.cs" not in store


def test_observe_keeps_existing_value(engine, repo):
    _, store, _ = engine
    path = str(repo / "a" / "x.cs")
    store.toggle_file(path, True)
    store.observe(path)
    assert store.is_selected(path)


def test_toggle_file_updates_parent_and_ancestors(engine, repo):
    index, store, aggregates = engine
    store.toggle_file(str(repo / "b" / "z.uxml"), True)

    assert aggregates.is_all_selected(str(repo / "b")) is True
    assert aggregates.is_all_selected(str(repo)) is False

    store.toggle_file(str(repo / "b" / "z.uxml"), False)
    assert aggregates.is_all_selected(str(repo / "b")) is False


def test_toggle_folder_selects_every_descendant(engine, repo):
    index, store, aggregates = engine
    store.toggle_folder(str(repo / "a"), True)

    for path in index.iter_files(str(repo / "a")):
        assert store.is_selected(path)
    assert aggregates.is_all_selected(str(repo / "a"))
    assert aggregates.is_all_selected(str(repo / "a" / "sub"))
    assert aggregates.is_all_selected(str(repo / "a" / "sub" / "leaf"))
    assert not store.is_selected(str(repo / "b" / "z.uxml"))


def test_toggle_folder_reaches_unscanned_subfolders(repo):
    index = TreeIndex(str(repo))
    index.scan_folder(str(repo))
    store = SelectionStore(index)
    aggregates = FolderAggregateCache(index, store)

    store.toggle_folder(str(repo / "a"), True)

    assert store.is_selected(str(repo / "a" / "sub" / "leaf" / "l.uss"))
    assert aggregates.is_all_selected(str(repo / "a"))


def test_selecting_everything_marks_root(engine, repo):
    index, store, aggregates = engine
    store.toggle_folder(str(repo), True)
    assert aggregates.is_all_selected(str(repo))

    store.toggle_file(str(repo / "a" / "sub" / "leaf" / "l.uss"), False)
    assert not aggregates.is_all_selected(str(repo / "a" / "sub" / "leaf"))
    assert not aggregates.is_all_selected(str(repo / "a" / "sub"))
    assert not aggregates.is_all_selected(str(repo / "a"))
    assert not aggregates.is_all_selected(str(repo))
    assert aggregates.is_all_selected(str(repo / "b"))


def test_folder_without_files_is_vacuously_selected(engine, repo):
    _, _, aggregates = engine
    assert aggregates.is_all_selected(str(repo / "empty"))


def test_unscanned_folder_is_never_all_selected(repo):
    index = TreeIndex(str(repo))
    store = SelectionStore(index)
    aggregates = FolderAggregateCache(index, store)
    assert aggregates.all_selected(str(repo / "a")) is False


def test_aggregates_match_selection_after_random_toggles(engine, repo):
    index, store, aggregates = engine
    rng = random.Random(7)
    files = index.known_files()
    folders = index.scanned_folders()

    for _ in range(200):
        if rng.random() < 0.5:
            store.toggle_file(rng.choice(files), rng.random() < 0.6)
        else:
            store.toggle_folder(rng.choice(folders), rng.random() < 0.6)
        for folder in folders:
            assert aggregates.is_all_selected(folder) == _expected_all_selected(index, store, folder)


def test_prune_removes_paths_not_observed(engine, repo):
    _, store, _ = engine
    stale = str(repo / "gone.cs")
    store.toggle_file(stale, True)

    removed = store.prune([str(repo / "a" / "x.cs")])

    assert stale in removed
    assert set(store.as_dict()) == {str(repo / "a" / "x.cs")}


def test_selected_paths_follow_store_order(engine, repo):
    _, store, _ = engine
    store.toggle_file(str(repo / "b" / "z.uxml"), True)
    store.toggle_file(str(repo / "a" / "x.cs"), True)
    assert store.selected_paths() == [str(repo / "a" / "x.cs"), str(repo / "b" / "z.uxml")]


def test_replace_swaps_mapping(engine):
    _, store, _ = engine
    store.replace({"p.cs": True})
    assert store.items() == [("p.cs", True)]
    assert len(store) == 1


def test_selection_changed_is_emitted(engine, repo):
    _, store, _ = engine
    seen = []
    store.selection_changed.connect(seen.append)
    store.toggle_file(str(repo / "a" / "x.cs"), True)
    store.toggle_folder(str(repo / "b"), False)
    assert seen == [str(repo / "a" / "x.cs"), str(repo / "b")]
