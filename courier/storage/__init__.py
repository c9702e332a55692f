"""Storage provider base class.

A storage provider moves object content to and from a remote blob store.
On upload the provider returns a content address: an opaque,
provider-specific locator which is later handed back to it to fetch or
check the same content.
"""
from abc import ABC, abstractmethod
from collections.abc import Iterable

from courier.types import ObjectRef

from . import exc


class StorageProvider(ABC):
    """Interface for storage providers."""

    # URI scheme the provider prefixes its addresses with, if any. Addresses
    # are cached without it, and providers must accept both forms.
    address_scheme: str | None = None

    @abstractmethod
    def download(self, address: str, obj: ObjectRef) -> Iterable[bytes]:
        """Stream the content stored at ``address``.

        Should raise ``exc.ObjectNotFoundError`` if there is nothing at
        ``address``, and ``exc.StorageError`` for any other failure, either
        right away or while the returned chunks are being iterated.
        """

    @abstractmethod
    def upload(self, obj: ObjectRef, path: str) -> str:
        """Upload the local file at ``path`` and return its content address."""

    @abstractmethod
    def is_available(self, address: str) -> bool:
        """Check that content can still be fetched from ``address``.

        This method should not throw an error if the content does not
        exist, but return False.
        """

    def strip_scheme(self, address: str) -> str:
        """Get an address without this provider's URI scheme."""
        prefix = f"{self.address_scheme}://"
        if self.address_scheme and address.startswith(prefix):
            return address[len(prefix):]
        return address


class SizedStorageProvider(StorageProvider, ABC):
    """A provider that can tell the size of stored content, and uses that
    to check availability.
    """

    @abstractmethod
    def get_size(self, address: str) -> int:
        """Get the size of stored content; raise
        ``exc.ObjectNotFoundError`` if there is none.
        """

    def is_available(self, address: str) -> bool:
        try:
            self.get_size(address)
        except exc.ObjectNotFoundError:
            return False
        return True

    def verify_object(self, address: str, size: int) -> bool:
        """Verify that content exists and has the right size."""
        try:
            return self.get_size(address) == size
        except exc.ObjectNotFoundError:
            return False
