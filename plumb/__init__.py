from plumb.errors import (ConfigError, FormatError, IOFailure, NotFoundError,
                          PlumbError, UnsupportedEntryError, UsageError)
from plumb.objects import EMPTY_BLOB, EMPTY_TREE, decode, digest, encode
from plumb.store import ObjectStore
from plumb.tree import TreeBuilder, TreeEntry, write_blob
from plumb.commit import CommitBuilder, Identity
from plumb.retrieval import cat_file, ls_tree, read_tree
