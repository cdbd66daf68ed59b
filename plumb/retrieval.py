from typing import Iterator

from plumb import objects
from plumb.errors import FormatError
from plumb.store import ObjectStore
from plumb.tree import TreeEntry, parse_tree


def cat_file(store: ObjectStore, address: str) -> bytes:
    _, payload = store.get(address)
    return payload


def _tree_payload(store: ObjectStore, address: str) -> bytes:
    kind, payload = store.get(address)
    if kind != objects.TREE:
        raise FormatError(f"Object {address} is a {kind}, not a tree")
    return payload


def read_tree(store: ObjectStore, address: str) -> list[TreeEntry]:
    return list(parse_tree(_tree_payload(store, address)))


def ls_tree(store: ObjectStore, address: str) -> Iterator[str]:
    # the object is read eagerly so a missing tree fails on the call, not on iteration
    payload = _tree_payload(store, address)
    return (entry.name for entry in parse_tree(payload))
