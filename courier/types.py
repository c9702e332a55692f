"""Event types for the Git LFS custom transfer protocol.

See
https://github.com/git-lfs/git-lfs/blob/main/docs/custom-transfers.md
for the wire level description of each event.
"""
from dataclasses import dataclass
from enum import Enum


class Operation(Enum):
    """Transfer operations."""

    upload = "upload"
    download = "download"


@dataclass(frozen=True)
class ObjectRef:
    """An LFS object as identified by Git LFS."""

    oid: str
    size: int


@dataclass(frozen=True)
class Init:
    """First event of every session, sent once by Git LFS."""

    operation: Operation
    remote: str
    concurrent: bool = False
    concurrent_transfers: int | None = None


@dataclass(frozen=True)
class Download:
    object: ObjectRef


@dataclass(frozen=True)
class Upload:
    object: ObjectRef
    path: str


@dataclass(frozen=True)
class Terminate:
    pass


@dataclass(frozen=True)
class AcknowledgeInit:
    pass


@dataclass(frozen=True)
class Progress:
    oid: str
    bytes_so_far: int
    bytes_since_last: int


@dataclass(frozen=True)
class TransferError:
    """Error payload of a failed ``complete`` event."""

    code: int
    message: str


@dataclass(frozen=True)
class Complete:
    """Final event for a single download or upload request.

    At most one of ``path`` (the local file a download was written to) and
    ``error`` may be set; neither is set for a successful upload.
    """

    oid: str
    path: str | None = None
    error: TransferError | None = None

    def __post_init__(self) -> None:
        if self.path is not None and self.error is not None:
            raise ValueError(
                "A complete event cannot carry both a path and an error"
            )

    @property
    def ok(self) -> bool:
        return self.error is None


Request = Download | Upload

Event = (
    Init
    | Download
    | Upload
    | Terminate
    | AcknowledgeInit
    | Progress
    | Complete
)
