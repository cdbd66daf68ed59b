import os

import pytest

from plumb import objects
from plumb.errors import FormatError, UnsupportedEntryError
from plumb.retrieval import read_tree
from plumb.store import ObjectStore
from plumb.tree import (MODE_DIRECTORY, MODE_EXECUTABLE, MODE_FILE, TreeBuilder,
                        TreeEntry, parse_tree, serialize_tree, write_blob)


@pytest.fixture
def store(tmp_path):
    return ObjectStore.for_repo(str(tmp_path))


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


def test_empty_tree_serializes_to_nothing():
    assert serialize_tree([]) == b""


def test_serialize_sorts_by_name():
    a = TreeEntry(MODE_FILE, "a.txt", objects.EMPTY_BLOB)
    b = TreeEntry(MODE_FILE, "b.txt", objects.EMPTY_BLOB)
    payload = serialize_tree([b, a])
    assert payload == serialize_tree([a, b])
    raw = bytes.fromhex(objects.EMPTY_BLOB)
    assert payload == b"100644 a.txt\x00" + raw + b"100644 b.txt\x00" + raw


def test_serialize_sorts_bytewise():
    names = ["b", "B", "a-b", "a", "_"]
    entries = [TreeEntry(MODE_FILE, n, objects.EMPTY_BLOB) for n in names]
    assert [e.name for e in parse_tree(serialize_tree(entries))] == ["B", "_", "a", "a-b", "b"]


def test_parse_tree_name_with_space():
    entry = TreeEntry(MODE_FILE, "my file.txt", objects.EMPTY_BLOB)
    assert list(parse_tree(serialize_tree([entry]))) == [entry]


def test_parse_tree_truncated_address():
    payload = serialize_tree([TreeEntry(MODE_FILE, "a", objects.EMPTY_BLOB)])
    with pytest.raises(FormatError):
        list(parse_tree(payload[:-1]))


def test_parse_tree_missing_null():
    with pytest.raises(FormatError):
        list(parse_tree(b"100644 a"))


def test_parse_tree_missing_mode():
    with pytest.raises(FormatError):
        list(parse_tree(b"a\x00" + bytes(20)))


def test_build_is_independent_of_creation_order(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (first / "a.txt").write_bytes(b"A")
    (first / "b.txt").write_bytes(b"B")
    (second / "b.txt").write_bytes(b"B")
    (second / "a.txt").write_bytes(b"A")

    store = ObjectStore.for_repo(str(tmp_path))
    address = TreeBuilder(store).build(str(first))
    assert TreeBuilder(store).build(str(second)) == address
    assert [e.name for e in read_tree(store, address)] == ["a.txt", "b.txt"]


def test_empty_directory_builds_empty_tree(store, workdir):
    assert TreeBuilder(store).build(str(workdir)) == objects.EMPTY_TREE


def test_empty_subdirectory_is_pruned(store, workdir):
    (workdir / "file.txt").write_text("content")
    (workdir / "empty").mkdir()
    (workdir / "nested" / "also-empty").mkdir(parents=True)

    entries = read_tree(store, TreeBuilder(store).build(str(workdir)))
    assert [e.name for e in entries] == ["file.txt"]
    assert all(e.address != objects.EMPTY_TREE for e in entries)


def test_subdirectory_entry(store, workdir):
    (workdir / "src").mkdir()
    (workdir / "src" / "main.py").write_text("print('hi')\n")
    (workdir / "README").write_text("readme\n")

    root = read_tree(store, TreeBuilder(store).build(str(workdir)))
    assert [(e.mode, e.name) for e in root] == [(MODE_FILE, "README"), (MODE_DIRECTORY, "src")]
    src = read_tree(store, root[1].address)
    assert src == [TreeEntry(MODE_FILE, "main.py",
                             objects.digest(objects.encode("blob", b"print('hi')\n")))]


def test_identical_files_share_one_blob(store, workdir):
    (workdir / "one").write_bytes(b"dup")
    (workdir / "two").write_bytes(b"dup")
    entries = read_tree(store, TreeBuilder(store).build(str(workdir)))
    assert entries[0].address == entries[1].address
    assert store.get(entries[0].address) == ("blob", b"dup")


def test_executable_mode(store, workdir):
    script = workdir / "run.sh"
    script.write_text("#!/bin/sh\n")
    script.chmod(0o744)
    (workdir / "data").write_text("x")
    (workdir / "data").chmod(0o644)

    entries = read_tree(store, TreeBuilder(store).build(str(workdir)))
    assert {e.name: e.mode for e in entries} == {"data": MODE_FILE, "run.sh": MODE_EXECUTABLE}


def test_metadata_directory_is_skipped(store, tmp_path):
    store.put("blob", b"stored")
    (tmp_path / "tracked").write_text("t")
    entries = read_tree(store, TreeBuilder(store).build(str(tmp_path)))
    assert [e.name for e in entries] == ["tracked"]


def test_custom_metadata_directory(tmp_path):
    store = ObjectStore.for_repo(str(tmp_path), ".plumb")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "x").write_text("x")
    (tmp_path / "tracked").write_text("t")
    address = TreeBuilder(store, ".plumb").build(str(tmp_path))
    assert [e.name for e in read_tree(store, address)] == [".git", "tracked"]


def test_deep_nesting_does_not_recurse(store, workdir):
    path = str(workdir)
    for _ in range(1100):
        path = os.path.join(path, "d")
    os.makedirs(path)
    with open(os.path.join(path, "leaf"), "w") as f:
        f.write("leaf")

    address = TreeBuilder(store).build(str(workdir))
    depth = 0
    entries = read_tree(store, address)
    while entries[0].mode == MODE_DIRECTORY:
        depth += 1
        entries = read_tree(store, entries[0].address)
    assert depth == 1100
    assert entries[0].name == "leaf"


def test_symlink_is_unsupported(store, workdir):
    (workdir / "target").write_text("t")
    os.symlink("target", str(workdir / "link"))
    with pytest.raises(UnsupportedEntryError):
        TreeBuilder(store).build(str(workdir))


def test_write_blob_without_write(store, workdir):
    path = workdir / "file"
    path.write_bytes(b"hello\n")
    address = write_blob(store, str(path), write=False)
    assert address == "ce013625030ba8dba906f756967f9e9ca394464a"
    assert not store.exists(address)
    assert write_blob(store, str(path)) == address
    assert store.exists(address)


@pytest.mark.parametrize("mode", [b"\xff\xfe", b"10o644", b"-1"])
def test_parse_tree_malformed_mode(mode):
    with pytest.raises(FormatError):
        list(parse_tree(mode + b" a\x00" + bytes(20)))


def test_metadata_directory_given_as_relative_path(tmp_path):
    store = ObjectStore.for_repo(str(tmp_path), ".plumb")
    store.put("blob", b"stored")
    (tmp_path / "tracked").write_text("t")
    address = TreeBuilder(store, "./.plumb").build(str(tmp_path))
    assert [e.name for e in read_tree(store, address)] == ["tracked"]
