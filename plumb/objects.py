"""Encoding of "<kind> <length>\\0<payload>" objects and their addresses."""
import hashlib
import string

from plumb.errors import FormatError

BLOB = "blob"
TREE = "tree"
COMMIT = "commit"
KINDS = (BLOB, TREE, COMMIT)

ADDRESS_LEN = 40
RAW_ADDRESS_LEN = 20

EMPTY_BLOB = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def encode(kind: str, payload: bytes) -> bytes:
    if kind not in KINDS:
        raise FormatError(f"Unknown object kind {kind!r}")
    header = f"{kind} {len(payload)}\x00".encode("ascii")
    return header + bytes(payload)


def digest(encoded: bytes) -> str:
    return hashlib.sha1(encoded).hexdigest()


def decode(raw: bytes) -> tuple[str, bytes]:
    null_index = raw.find(b"\x00")
    if null_index == -1:
        raise FormatError("Object header is not terminated by a null byte")
    header = raw[:null_index]
    payload = raw[null_index + 1:]

    try:
        kind, length_str = header.decode("ascii").split(" ")
    except (UnicodeDecodeError, ValueError):
        raise FormatError(f"Malformed object header {header!r}") from None
    if kind not in KINDS:
        raise FormatError(f"Unknown object kind {kind!r}")
    # lengths are canonical decimal: no sign, no leading zeros
    if not length_str.isdigit() or str(int(length_str)) != length_str:
        raise FormatError(f"Malformed object length {length_str!r}")
    if int(length_str) != len(payload):
        raise FormatError(
            f"Expected {kind} payload of {length_str} bytes but got {len(payload)}")
    return kind, payload


def hash_object(kind: str, payload: bytes) -> tuple[str, bytes]:
    encoded = encode(kind, payload)
    return digest(encoded), encoded


def is_address(address) -> bool:
    return (isinstance(address, str) and len(address) == ADDRESS_LEN
            and all(c in string.hexdigits and not c.isupper() for c in address))


def address_to_bytes(address: str) -> bytes:
    if not is_address(address):
        raise FormatError(f"Not a valid object address: {address!r}")
    return bytes.fromhex(address)


def bytes_to_address(raw: bytes) -> str:
    if len(raw) != RAW_ADDRESS_LEN:
        raise FormatError(f"Expected {RAW_ADDRESS_LEN} address bytes but got {len(raw)}")
    return raw.hex()
