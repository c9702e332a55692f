"""Local storage implementation, for development/testing or sharing objects
through a mounted file system.
"""
import shutil
from collections.abc import Iterator
from pathlib import Path
from typing import Any, BinaryIO

from courier.storage import SizedStorageProvider, exc
from courier.types import ObjectRef

DEFAULT_CHUNK_SIZE = 64 * 1024


class LocalStorage(SizedStorageProvider):
    """Local storage implementation.

    This storage backend works by storing files in a local directory, under
    ``<path>/<oid[0:2]>/<oid[2:4]>/<oid>`` (the same layout Git LFS uses
    for its own object store). The content address of an object is its path
    relative to the storage root.
    """

    def __init__(
        self,
        path: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        **_: Any,
    ) -> None:
        if path is None:
            path = "lfs-storage"
        self.path = path
        self.chunk_size = chunk_size
        self._create_path(self.path)

    def download(self, address: str, obj: ObjectRef) -> Iterator[bytes]:
        path = self._get_path(address)
        if not path.is_file():
            raise exc.ObjectNotFoundError(f"Object {address} was not found")
        return self._read_chunks(path.open("br"))

    def upload(self, obj: ObjectRef, path: str) -> str:
        address = self._address_for(obj.oid)
        dest = self._get_path(address)
        self._create_path(str(dest.parent))
        with Path(path).open("br") as source, dest.open("bw") as target:
            shutil.copyfileobj(source, target)

        if not self.verify_object(address, obj.size):
            dest.unlink()
            raise exc.InvalidObjectError(
                f"Size of {path} does not match object size {obj.size}"
            )
        return address

    def get_size(self, address: str) -> int:
        path = self._get_path(address)
        if path.is_file():
            return path.stat().st_size
        raise exc.ObjectNotFoundError("Object was not found")

    def _read_chunks(self, stream: BinaryIO) -> Iterator[bytes]:
        with stream:
            while chunk := stream.read(self.chunk_size):
                yield chunk

    def _get_path(self, address: str) -> Path:
        root = Path(self.path).resolve()
        path = (root / self.strip_scheme(address)).resolve()
        if not path.is_relative_to(root):
            raise exc.InvalidObjectError(
                f"Address {address} is outside of the storage path"
            )
        return path

    @staticmethod
    def _address_for(oid: str) -> str:
        return f"{oid[0:2]}/{oid[2:4]}/{oid}"

    @staticmethod
    def _create_path(spath: str) -> None:
        path = Path(spath)
        if not path.is_dir():
            path.mkdir(parents=True)
