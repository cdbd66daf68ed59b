import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from plumb import objects
from plumb.errors import FormatError
from plumb.store import ObjectStore

logger = logging.getLogger(__name__)

_TIMEZONE_RE = re.compile(r"^[+-]\d{4}$")


@dataclass(frozen=True)
class Identity:
    name: str
    email: str
    timezone: str = "+0000"

    def __post_init__(self):
        if not _TIMEZONE_RE.match(self.timezone):
            raise ValueError(f"Timezone must look like +HHMM, got {self.timezone!r}")
        if any(c in self.name + self.email for c in "<>\n"):
            raise ValueError(f"Invalid identity {self.name!r} <{self.email!r}>")

    def signature(self, timestamp: int) -> str:
        return f"{self.name} <{self.email}> {timestamp} {self.timezone}"


@dataclass
class Commit:
    tree: str
    parent: Optional[str]
    author: str
    committer: str
    message: str


def _check_address(address: str, what: str) -> str:
    if not objects.is_address(address):
        raise FormatError(f"Not a valid {what} address: {address!r}")
    return address


def format_commit(tree: str, parent: Optional[str], identity: Identity,
                  timestamp: int, message: str) -> bytes:
    lines = [f"tree {_check_address(tree, 'tree')}"]
    if parent:
        lines.append(f"parent {_check_address(parent, 'parent')}")
    signature = identity.signature(timestamp)
    lines.append(f"author {signature}")
    lines.append(f"committer {signature}")
    lines.append("")
    lines.append(message)
    return ("\n".join(lines) + "\n").encode("utf-8", errors="surrogateescape")


def parse_commit(payload: bytes) -> Commit:
    text = payload.decode("utf-8", errors="surrogateescape")
    header, _, message = text.partition("\n\n")
    fields = {}
    for line in header.split("\n"):
        key, _, value = line.partition(" ")
        fields.setdefault(key, value)
    if "tree" not in fields:
        raise FormatError("Commit has no tree header")
    if message.endswith("\n"):
        message = message[:-1]
    return Commit(
        tree=fields["tree"],
        parent=fields.get("parent"),
        author=fields.get("author", ""),
        committer=fields.get("committer", ""),
        message=message)


class CommitBuilder:
    def __init__(self, store: ObjectStore, identity: Identity,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.identity = identity
        self.clock = clock

    def build(self, tree: str, parent: Optional[str] = None, message: str = "") -> str:
        payload = format_commit(tree, parent, self.identity, int(self.clock()), message)
        address = self.store.put(objects.COMMIT, payload)
        logger.debug("wrote commit %s for tree %s", address, tree)
        return address
