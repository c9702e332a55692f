"""OID -> content address mapping cache.

Storage backends hand out their own locator (an S3 key, a skylink, ...)
for every uploaded object. Git LFS only knows objects by OID, so we keep
track of which locator each OID was uploaded to. Values are stored base64
encoded because the underlying store (e.g. git config) only deals in
printable text.
"""
import base64
import binascii
import logging

from courier.config_store import ConfigStore

_log = logging.getLogger(__name__)

DEFAULT_TRANSFER_NAME = "courier"


class MappingCache:
    """Persisted OID -> content address mapping.

    There is no locking here; a single writer per store is assumed.
    """

    def __init__(
        self,
        store: ConfigStore,
        transfer_name: str = DEFAULT_TRANSFER_NAME,
        scheme: str | None = None,
    ) -> None:
        self.store = store
        self.transfer_name = transfer_name
        self.scheme = scheme

    def get(self, oid: str) -> str | None:
        value = self.store.get(self.key_for(oid))
        if value is None:
            return None
        try:
            return base64.b64decode(value, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            _log.warning(
                "Ignoring undecodable mapping value for %s: %r", oid, value
            )
            return None

    def set(self, oid: str, address: str) -> None:
        encoded = base64.b64encode(self.normalize(address).encode("utf-8"))
        self.store.set(self.key_for(oid), encoded.decode("ascii"))

    def remove(self, oid: str) -> None:
        self.store.remove(self.key_for(oid))

    def key_for(self, oid: str) -> str:
        """Get the store key for an OID.

        Git config variable names may not start with a digit, hence the
        ``oid-`` prefix.

        >>> MappingCache(None).key_for('1234abcd')
        'lfs.customtransfer.courier.mapping.oid-1234abcd'
        """
        return f"lfs.customtransfer.{self.transfer_name}.mapping.oid-{oid}"

    def normalize(self, address: str) -> str:
        """Strip the storage backend's URI scheme from an address.

        >>> MappingCache(None, scheme='sia').normalize('sia://AABC5fIelZ')
        'AABC5fIelZ'

        >>> MappingCache(None).normalize('sia://AABC5fIelZ')
        'sia://AABC5fIelZ'
        """
        prefix = f"{self.scheme}://"
        if self.scheme and address.startswith(prefix):
            return address[len(prefix):]
        return address
