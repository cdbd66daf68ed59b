import argparse
from dataclasses import dataclass
from typing import Optional, Union

from plumb.errors import UsageError


@dataclass(frozen=True)
class Init:
    pass


@dataclass(frozen=True)
class CatFile:
    address: str


@dataclass(frozen=True)
class HashObject:
    path: str
    write: bool = False


@dataclass(frozen=True)
class LsTree:
    address: str
    name_only: bool = True


@dataclass(frozen=True)
class WriteTree:
    pass


@dataclass(frozen=True)
class CommitTree:
    tree: str
    message: str
    parent: Optional[str] = None


Command = Union[Init, CatFile, HashObject, LsTree, WriteTree, CommitTree]


class _Parser(argparse.ArgumentParser):
    # argparse exits the interpreter on bad input; the dispatcher owns exit codes
    def error(self, message):
        raise UsageError(message, self.format_usage())

    def exit(self, status=0, message=None):
        if status:
            raise UsageError(message or "", self.format_usage())
        super().exit(status, message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="plumb")
    sub = parser.add_subparsers(dest="command", required=True, parser_class=_Parser)

    sub.add_parser("init", help="create an empty object store")

    p_cat = sub.add_parser("cat-file", help="print the payload of an object")
    p_cat.add_argument("-p", dest="address", required=True, help="object address")

    p_hash = sub.add_parser("hash-object", help="compute a file's blob address")
    p_hash.add_argument("-w", dest="write", action="store_true", help="store the blob")
    p_hash.add_argument("path")

    p_ls = sub.add_parser("ls-tree", help="list the entries of a tree")
    p_ls.add_argument("--name-only", action="store_true")
    p_ls.add_argument("address")

    sub.add_parser("write-tree", help="snapshot the current directory")

    p_commit = sub.add_parser("commit-tree", help="create a commit for a tree")
    p_commit.add_argument("tree")
    p_commit.add_argument("-p", dest="parent")
    p_commit.add_argument("-m", dest="message", required=True)

    return parser


def parse_command(argv) -> Command:
    args = _build_parser().parse_args(list(argv))
    if args.command == "init":
        return Init()
    if args.command == "cat-file":
        return CatFile(args.address)
    if args.command == "hash-object":
        return HashObject(args.path, write=args.write)
    if args.command == "ls-tree":
        return LsTree(args.address, name_only=args.name_only)
    if args.command == "write-tree":
        return WriteTree()
    if args.command == "commit-tree":
        return CommitTree(args.tree, args.message, parent=args.parent)
    raise UsageError(f"Unknown command {args.command}")
