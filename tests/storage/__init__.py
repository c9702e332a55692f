from pathlib import Path

import pytest

from courier.storage import SizedStorageProvider, StorageProvider
from courier.storage.exc import ObjectNotFoundError
from courier.types import ObjectRef

from ..helpers import ARBITRARY_OID

CONTENT = b"The contents of a file-like object"


class StorageProviderAbstractTests:
    """Mixin for testing the StorageProvider methods of a backend

    To use, create a concrete test class mixing this class in, and define a
    fixture named ``storage_backend`` that returns an appropriate storage
    backend object, and a fixture named ``missing_address`` that returns
    an address with no content behind it.
    """

    def test_upload_then_download(
        self, storage_backend: StorageProvider, staged_file: Path
    ) -> None:
        """Test a full upload-then-download cycle"""
        obj = ObjectRef(ARBITRARY_OID, len(CONTENT))
        address = storage_backend.upload(obj, str(staged_file))

        fetched = b"".join(storage_backend.download(address, obj))
        assert fetched == CONTENT

    def test_download_raises_if_not_found(
        self, storage_backend: StorageProvider, missing_address: str
    ) -> None:
        obj = ObjectRef(ARBITRARY_OID, len(CONTENT))
        with pytest.raises(ObjectNotFoundError):
            b"".join(storage_backend.download(missing_address, obj))

    def test_is_available_after_upload(
        self, storage_backend: StorageProvider, staged_file: Path
    ) -> None:
        obj = ObjectRef(ARBITRARY_OID, len(CONTENT))
        address = storage_backend.upload(obj, str(staged_file))
        assert storage_backend.is_available(address)

    def test_is_available_not_there(
        self, storage_backend: StorageProvider, missing_address: str
    ) -> None:
        assert not storage_backend.is_available(missing_address)


class SizedStorageProviderAbstractTests(StorageProviderAbstractTests):
    """Mixin for backends that implement SizedStorageProvider"""

    def test_get_size(
        self, storage_backend: SizedStorageProvider, staged_file: Path
    ) -> None:
        obj = ObjectRef(ARBITRARY_OID, len(CONTENT))
        address = storage_backend.upload(obj, str(staged_file))
        assert storage_backend.get_size(address) == len(CONTENT)

    def test_get_size_not_existing(
        self, storage_backend: SizedStorageProvider, missing_address: str
    ) -> None:
        with pytest.raises(ObjectNotFoundError):
            storage_backend.get_size(missing_address)

    def test_verify_object_ok(
        self, storage_backend: SizedStorageProvider, staged_file: Path
    ) -> None:
        obj = ObjectRef(ARBITRARY_OID, len(CONTENT))
        address = storage_backend.upload(obj, str(staged_file))
        assert storage_backend.verify_object(address, len(CONTENT))

    def test_verify_object_wrong_size(
        self, storage_backend: SizedStorageProvider, staged_file: Path
    ) -> None:
        obj = ObjectRef(ARBITRARY_OID, len(CONTENT))
        address = storage_backend.upload(obj, str(staged_file))
        assert not storage_backend.verify_object(address, len(CONTENT) + 2)

    def test_verify_object_not_there(
        self, storage_backend: SizedStorageProvider, missing_address: str
    ) -> None:
        assert not storage_backend.verify_object(missing_address, 0)
