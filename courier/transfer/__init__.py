"""Transfer engine.

Implements the agent side of the Git LFS custom transfer protocol. See
https://github.com/git-lfs/git-lfs/blob/main/docs/custom-transfers.md
for more information about what custom transfer agents do in Git LFS.
"""
import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path

from courier.exc import DecodeError, ProtocolError, UploadError
from courier.mapping import MappingCache
from courier.storage import StorageProvider
from courier.storage.exc import InvalidObjectError, StorageError
from courier.types import (
    AcknowledgeInit,
    Complete,
    Download,
    Event,
    Init,
    Operation,
    Progress,
    Terminate,
    TransferError,
    Upload,
)

DEFAULT_DOWNLOAD_DIR = ".git/lfs/tmp/courier"
INTERNAL_SERVER_ERROR = 500
NOT_FOUND = 404
UNPROCESSABLE_ENTITY = 422

_log = logging.getLogger(__name__)


class SessionState(Enum):
    awaiting_init = "awaiting_init"
    active = "active"
    terminated = "terminated"


class TransferAgent:
    """A custom transfer agent session.

    Feed :meth:`process` the decoded events received from Git LFS, and write
    out the events it yields. Requests are handled one at a time: all events
    for a request (any number of ``progress`` events followed by exactly one
    ``complete``) are yielded before the next input event is read.

    Protocol violations raise :class:`~courier.exc.ProtocolError`; a failed
    upload raises :class:`~courier.exc.UploadError`. Either ends the session.
    """

    def __init__(
        self,
        storage: StorageProvider,
        mapping: MappingCache,
        download_dir: str | Path = DEFAULT_DOWNLOAD_DIR,
    ) -> None:
        self.storage = storage
        self.mapping = mapping
        self.download_dir = Path(download_dir)
        self.state = SessionState.awaiting_init
        self.init: Init | None = None

    @property
    def operation(self) -> Operation | None:
        return self.init.operation if self.init else None

    def process(
        self, events: Iterable[Event | DecodeError]
    ) -> Iterator[Event]:
        """Run the session over a sequence of input events."""
        if self.state is SessionState.terminated:
            raise ProtocolError("Session has already terminated")

        for event in events:
            if isinstance(event, DecodeError):
                raise event

            _log.debug("Received event: %r", event)

            if self.state is SessionState.awaiting_init:
                if not isinstance(event, Init):
                    raise ProtocolError(
                        f"Unexpected event before init: {event!r}"
                    )
                yield self._start(event)
                continue

            if isinstance(event, Init):
                raise ProtocolError(f"Unexpected duplicate init: {event!r}")

            if isinstance(event, Terminate):
                _log.debug("Terminating session")
                self.state = SessionState.terminated
                return

            if (
                isinstance(event, Download)
                and self.operation is Operation.download
            ):
                yield from self.download(event)
            elif (
                isinstance(event, Upload)
                and self.operation is Operation.upload
            ):
                yield from self.upload(event)
            else:
                raise ProtocolError(
                    f"Unexpected event for {self.operation.value} "
                    f"operation: {event!r}"
                )

        _log.debug("Input closed without terminate event")

    def download(self, request: Download) -> Iterator[Event]:
        """Fetch an object into the download directory."""
        obj = request.object
        address = self.mapping.get(obj.oid)
        if address is None:
            _log.warning("No content address recorded for %s", obj.oid)
            yield Complete(
                oid=obj.oid,
                error=TransferError(
                    NOT_FOUND,
                    f"No content address recorded for object {obj.oid}",
                ),
            )
            return

        destination = self.download_dir / obj.oid
        if not _is_directly_in(destination, self.download_dir):
            _log.warning(
                "Refusing to download %r outside of %s",
                obj.oid,
                self.download_dir,
            )
            yield Complete(
                oid=obj.oid,
                error=TransferError(
                    UNPROCESSABLE_ENTITY, f"Invalid object ID: {obj.oid!r}"
                ),
            )
            return

        _log.info(
            "Downloading %s from %s to %s", obj.oid, address, destination
        )
        bytes_so_far = 0
        try:
            self.download_dir.mkdir(parents=True, exist_ok=True)
            with destination.open("wb") as f:
                for chunk in self.storage.download(address, obj):
                    if not chunk:
                        continue
                    bytes_so_far += len(chunk)
                    # Size 0 is an empty object, not an unknown size
                    if bytes_so_far > obj.size:
                        raise InvalidObjectError(
                            f"Received more than the expected {obj.size} "
                            "bytes"
                        )
                    f.write(chunk)
                    yield Progress(
                        oid=obj.oid,
                        bytes_so_far=bytes_so_far,
                        bytes_since_last=len(chunk),
                    )
            if bytes_so_far != obj.size:
                raise InvalidObjectError(
                    f"Object size does not match: expected {obj.size} bytes, "
                    f"received {bytes_so_far}"
                )
        except StorageError as e:
            _log.error("Failed to download %s: %s", obj.oid, e)
            yield Complete(oid=obj.oid, error=TransferError(e.code, str(e)))
            return
        except OSError as e:
            _log.error("Failed to write %s: %s", destination, e)
            yield Complete(
                oid=obj.oid,
                error=TransferError(INTERNAL_SERVER_ERROR, str(e)),
            )
            return

        _log.info("Downloaded %s (%d bytes)", obj.oid, bytes_so_far)
        yield Complete(oid=obj.oid, path=str(destination))

    def upload(self, request: Upload) -> Iterator[Event]:
        """Upload an object unless a still-available copy is recorded."""
        oid = request.object.oid
        address = self.mapping.get(oid)
        if address is not None:
            if self._is_available(address):
                _log.info("Object %s is already stored at %s", oid, address)
                yield Complete(oid=oid)
                return
            _log.info("Content for %s is no longer available, unmapping", oid)
            self.mapping.remove(oid)

        _log.info("Uploading %s from %s", oid, request.path)
        try:
            address = self.storage.upload(request.object, request.path)
        except (StorageError, OSError) as e:
            raise UploadError(oid, e) from e

        self.mapping.set(oid, address)
        _log.info("Uploaded %s to %s", oid, address)
        yield Complete(oid=oid)

    def _start(self, init: Init) -> AcknowledgeInit:
        self.init = init
        self.state = SessionState.active
        _log.info(
            "Starting %s session for remote %s",
            init.operation.value,
            init.remote,
        )
        if init.concurrent:
            _log.debug(
                "Concurrent transfers requested (%s); requests will be "
                "handled sequentially",
                init.concurrent_transfers,
            )
        return AcknowledgeInit()

    def _is_available(self, address: str) -> bool:
        try:
            return self.storage.is_available(address)
        except StorageError as e:
            _log.warning("Could not check availability of %s: %s", address, e)
            return False


def _is_directly_in(path: Path, directory: Path) -> bool:
    return path.resolve().parent == directory.resolve()
