import logging
import os
import stat
from typing import Iterator, NamedTuple, Optional

from plumb import objects
from plumb.errors import FormatError, IOFailure, UnsupportedEntryError
from plumb.store import META_DIR, ObjectStore

logger = logging.getLogger(__name__)

MODE_FILE = "100644"
MODE_EXECUTABLE = "100755"
MODE_DIRECTORY = "40000"


class TreeEntry(NamedTuple):
    mode: str
    name: str
    address: str

    @property
    def kind(self) -> str:
        return objects.TREE if self.mode == MODE_DIRECTORY else objects.BLOB


def _name_key(entry: TreeEntry) -> bytes:
    return os.fsencode(entry.name)


def serialize_tree(entries) -> bytes:
    result = bytearray()
    for entry in sorted(entries, key=_name_key):
        result += entry.mode.encode("ascii")
        result += b" "
        result += os.fsencode(entry.name)
        result += b"\x00"
        result += objects.address_to_bytes(entry.address)
    return bytes(result)


def parse_tree(payload: bytes) -> Iterator[TreeEntry]:
    """Yield the entries of a tree payload in stored order.

    Each record is "<mode> <name>\\0" followed by 20 raw address bytes.
    """
    offset = 0
    while offset < len(payload):
        null_index = payload.find(b"\x00", offset)
        if null_index == -1:
            raise FormatError(f"Tree record at byte {offset} has no null terminator")
        mode, sep, name = payload[offset:null_index].partition(b" ")
        if not sep or not mode:
            raise FormatError(f"Tree record at byte {offset} has no mode")
        if not mode.isdigit():
            raise FormatError(f"Tree record at byte {offset} has a malformed mode {mode!r}")

        start = null_index + 1
        end = start + objects.RAW_ADDRESS_LEN
        if end > len(payload):
            raise FormatError(
                f"Tree record {name!r} is truncated: expected {objects.RAW_ADDRESS_LEN} "
                f"address bytes, got {len(payload) - start}")
        yield TreeEntry(mode.decode("ascii"), os.fsdecode(name),
                        objects.bytes_to_address(payload[start:end]))
        offset = end


def write_blob(store: ObjectStore, path: str, write: bool = True) -> str:
    try:
        with open(path, "rb") as f:
            content = f.read()
    except OSError as e:
        raise IOFailure(f"Cannot read {path}: {e}") from e

    address, encoded = objects.hash_object(objects.BLOB, content)
    if write:
        store.write(address, encoded)
    return address


class _Frame:
    # one directory being built: its files are already entries, its
    # subdirectories are waiting to be built
    def __init__(self, path: str, name: Optional[str]):
        self.path = path
        self.name = name
        self.entries = []
        self.pending = []


class TreeBuilder:
    def __init__(self, store: ObjectStore, meta_dir: str = META_DIR):
        self.store = store
        self.meta_dir = os.path.normpath(meta_dir)

    def build(self, directory: str = ".") -> str:
        """Store the snapshot of `directory` and return its tree address.

        Subdirectories are built before their parent and empty ones are left
        out. The walk keeps its own stack, so nesting depth is not bounded by
        the interpreter's recursion limit.
        """
        stack = [self._open(directory, None)]
        while True:
            frame = stack[-1]
            if frame.pending:
                path, name = frame.pending.pop()
                stack.append(self._open(path, name))
                continue

            stack.pop()
            address = self.store.put(objects.TREE, serialize_tree(frame.entries))
            logger.debug("built tree %s for %s (%d entries)",
                         address, frame.path, len(frame.entries))
            if not stack:
                return address
            if address == objects.EMPTY_TREE:
                logger.debug("skipping empty directory %s", frame.path)
                continue
            stack[-1].entries.append(TreeEntry(MODE_DIRECTORY, frame.name, address))

    def _open(self, path: str, name: Optional[str]) -> _Frame:
        frame = _Frame(path, name)
        try:
            with os.scandir(path) as it:
                dir_entries = sorted(it, key=lambda e: e.name)
            for entry in dir_entries:
                if entry.name == self.meta_dir:
                    continue
                st = entry.stat(follow_symlinks=False)
                if stat.S_ISREG(st.st_mode):
                    mode = MODE_EXECUTABLE if st.st_mode & 0o111 else MODE_FILE
                    address = write_blob(self.store, entry.path)
                    frame.entries.append(TreeEntry(mode, entry.name, address))
                elif stat.S_ISDIR(st.st_mode):
                    frame.pending.append((entry.path, entry.name))
                else:
                    raise UnsupportedEntryError(entry.path)
        except OSError as e:
            raise IOFailure(f"Cannot list {path}: {e}") from e
        return frame
