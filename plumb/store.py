import logging
import os
import zlib

from plumb import objects
from plumb.errors import FormatError, IOFailure, NotFoundError

logger = logging.getLogger(__name__)

META_DIR = ".git"


class ObjectStore:
    """Zlib-compressed objects under <objects_dir>/<address[:2]>/<address[2:]>.

    Writes are idempotent: an address that is already stored is never
    rewritten, so the first write wins and read-only objects are left alone.
    """

    def __init__(self, objects_dir: str):
        self.objects_dir = objects_dir

    @classmethod
    def for_repo(cls, workdir: str = ".", meta_dir: str = META_DIR) -> "ObjectStore":
        return cls(os.path.join(workdir, meta_dir, "objects"))

    def path_for(self, address: str) -> str:
        if not objects.is_address(address):
            raise FormatError(f"Not a valid object address: {address!r}")
        return os.path.join(self.objects_dir, address[:2], address[2:])

    def exists(self, address: str) -> bool:
        return os.path.exists(self.path_for(address))

    def read(self, address: str) -> bytes:
        path = self.path_for(address)
        try:
            with open(path, "rb") as f:
                compressed = f.read()
        except FileNotFoundError:
            raise NotFoundError(address) from None
        except OSError as e:
            raise IOFailure(f"Cannot read object {address}: {e}") from e

        try:
            return zlib.decompress(compressed)
        except zlib.error as e:
            raise IOFailure(f"Cannot decompress object {address}: {e}") from e

    def write(self, address: str, encoded: bytes) -> None:
        path = self.path_for(address)
        if os.path.exists(path):
            logger.debug("object %s already stored, skipping write", address)
            return

        compressed = zlib.compress(encoded)
        try:
            # another writer may create the fan-out directory first
            os.makedirs(os.path.dirname(path), exist_ok=True)
            obj_file = open(path, "xb")
        except FileExistsError:
            logger.debug("object %s written concurrently, skipping write", address)
            return
        except OSError as e:
            raise IOFailure(f"Cannot write object {address}: {e}") from e

        try:
            with obj_file:
                obj_file.write(compressed)
        except OSError as e:
            # a truncated file would shadow every later write of this address
            try:
                os.remove(path)
            except OSError:
                logger.warning("could not remove partial object %s", path)
            raise IOFailure(f"Cannot write object {address}: {e}") from e
        logger.debug("wrote object %s (%d bytes)", address, len(encoded))

    def put(self, kind: str, payload: bytes) -> str:
        address, encoded = objects.hash_object(kind, payload)
        self.write(address, encoded)
        return address

    def get(self, address: str) -> tuple[str, bytes]:
        return objects.decode(self.read(address))
