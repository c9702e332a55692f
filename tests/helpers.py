"""Test helpers."""
import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from courier.exc import DecodeError
from courier.storage import StorageProvider
from courier.storage.exc import ObjectNotFoundError, StorageError
from courier.transfer import TransferAgent
from courier.types import Event, ObjectRef

ARBITRARY_OID = (
    "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
)
OTHER_OID = (
    "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
)


def event_line(event: str, **kwargs: Any) -> str:
    """Generate a protocol line as Git LFS would send it."""
    payload = {"event": event, **kwargs}
    return json.dumps(payload) + "\n"


def init_line(operation: str = "download", **kwargs: Any) -> str:
    payload = {
        "operation": operation,
        "remote": "origin",
        "concurrent": True,
        "concurrenttransfers": 3,
    }
    payload.update(kwargs)
    return event_line("init", **payload)


def create_file(directory: Path, name: str, content: bytes) -> Path:
    """Create a staged object file as Git LFS would before an upload."""
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def run_agent(
    agent: TransferAgent, events: Iterable[Event | DecodeError]
) -> list[Event]:
    """Run a session to the end and collect the events it produced."""
    return list(agent.process(events))


class MemoryStorage(StorageProvider):
    """In-memory storage provider that counts calls made to it.

    Addresses are handed out as ``addr1``, ``addr2``, ... in upload order.
    """

    def __init__(self, chunk_size: int = 4) -> None:
        self.chunk_size = chunk_size
        self.objects: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.availability_checks: list[str] = []
        self.fail_uploads = False
        self.fail_after_chunks: int | None = None

    def download(self, address: str, obj: ObjectRef) -> Iterator[bytes]:
        try:
            content = self.objects[address]
        except KeyError:
            raise ObjectNotFoundError(f"{address} was not found") from None
        return self._chunks(content)

    def upload(self, obj: ObjectRef, path: str) -> str:
        self.uploads.append(obj.oid)
        if self.fail_uploads:
            raise StorageError("Storage is unavailable")
        address = f"addr{len(self.uploads)}"
        self.objects[address] = Path(path).read_bytes()
        return address

    def is_available(self, address: str) -> bool:
        self.availability_checks.append(address)
        return address in self.objects

    def _chunks(self, content: bytes) -> Iterator[bytes]:
        for i, start in enumerate(range(0, len(content), self.chunk_size)):
            if i == self.fail_after_chunks:
                raise StorageError("Connection reset by peer")
            yield content[start : start + self.chunk_size]
