import logging
import os
import sys

from colorama import Fore, Style, colorama_text

from plumb.commands import (CatFile, CommitTree, HashObject, Init, LsTree,
                            WriteTree, parse_command)
from plumb.commit import CommitBuilder
from plumb.config import load_config
from plumb.errors import IOFailure, PlumbError, UsageError
from plumb.retrieval import cat_file, ls_tree, read_tree
from plumb.store import ObjectStore
from plumb.tree import TreeBuilder, write_blob

HEAD_CONTENT = "ref: refs/heads/main\n"

_NAMES = {
    Init: "init",
    CatFile: "cat-file",
    HashObject: "hash-object",
    LsTree: "ls-tree",
    WriteTree: "write-tree",
    CommitTree: "commit-tree",
}


def init_repo(workdir: str, meta_dir: str) -> str:
    git_dir = os.path.join(workdir, meta_dir)
    try:
        os.makedirs(os.path.join(git_dir, "objects"), exist_ok=True)
        os.makedirs(os.path.join(git_dir, "refs"), exist_ok=True)
        head_path = os.path.join(git_dir, "HEAD")
        if not os.path.exists(head_path):
            with open(head_path, "w") as f:
                f.write(HEAD_CONTENT)
    except OSError as e:
        raise IOFailure(f"Cannot initialize {git_dir}: {e}") from e
    return git_dir


def run(command, workdir: str = ".") -> None:
    config = load_config(workdir)
    logging.basicConfig(level=config.log_level,
                        format="%(levelname)s %(name)s: %(message)s")
    store = ObjectStore.for_repo(workdir, config.meta_dir)

    if isinstance(command, Init):
        git_dir = init_repo(workdir, config.meta_dir)
        print(Fore.GREEN + Style.BRIGHT + f"Initialized plumb directory in {git_dir}")
    elif isinstance(command, CatFile):
        payload = cat_file(store, command.address)
        sys.stdout.flush()
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    elif isinstance(command, HashObject):
        print(write_blob(store, command.path, write=command.write))
    elif isinstance(command, LsTree):
        if command.name_only:
            for name in ls_tree(store, command.address):
                print(name)
        else:
            for entry in read_tree(store, command.address):
                print(f"{entry.mode.zfill(6)} {entry.kind} {entry.address}\t{entry.name}")
    elif isinstance(command, WriteTree):
        print(TreeBuilder(store, config.meta_dir).build(workdir))
    elif isinstance(command, CommitTree):
        builder = CommitBuilder(store, config.identity)
        print(builder.build(command.tree, command.parent, command.message))
    else:
        raise TypeError(f"Unhandled command {command!r}")


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    with colorama_text(autoreset=True):
        try:
            command = parse_command(argv)
        except UsageError as e:
            print(Fore.RED + Style.BRIGHT + f"{e.usage}plumb: error: {e}", file=sys.stderr)
            return 1

        name = _NAMES[type(command)]
        try:
            run(command)
        except PlumbError as e:
            print(Fore.RED + Style.BRIGHT + f"Error during {name}: {e}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
