"""Amazon S3 backend.

Works with any S3 compatible service (e.g. the StorJ S3 gateway) by setting
``endpoint``.
"""
import logging
import posixpath
from collections.abc import Iterator
from typing import Any, NoReturn

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from courier.storage import SizedStorageProvider
from courier.storage.exc import (
    InvalidObjectError,
    ObjectNotFoundError,
    StorageError,
)
from courier.types import ObjectRef

DEFAULT_CHUNK_SIZE = 1024 * 1024

_log = logging.getLogger(__name__)


class AmazonS3Storage(SizedStorageProvider):
    """AWS S3 Blob Storage backend.

    Objects are stored under ``<path_prefix>/<oid>``; that key is the
    content address.
    """

    def __init__(
        self,
        bucket_name: str,
        path_prefix: str | None = None,
        endpoint: str | None = None,
        region: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        **_: Any,
    ) -> None:
        self.bucket_name = bucket_name
        self.path_prefix = path_prefix
        self.chunk_size = chunk_size
        self.s3_client = boto3.client(
            "s3", endpoint_url=endpoint, region_name=region
        )

    def download(self, address: str, obj: ObjectRef) -> Iterator[bytes]:
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name, Key=address
            )
        except ClientError as e:
            self._raise_storage_error(e, address)
        except BotoCoreError as e:
            raise StorageError(f"Failed to fetch {address}: {e}") from e
        return self._iter_body(response["Body"], address)

    def upload(self, obj: ObjectRef, path: str) -> str:
        key = self._get_blob_path(obj.oid)
        _log.debug("Uploading %s to s3://%s/%s", path, self.bucket_name, key)
        try:
            self.s3_client.upload_file(path, self.bucket_name, key)
        except (S3UploadFailedError, BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {path}: {e}") from e

        if not self.verify_object(key, obj.size):
            raise InvalidObjectError(
                f"Uploaded object {key} does not match size {obj.size}"
            )
        return key

    def get_size(self, address: str) -> int:
        try:
            result = self.s3_client.head_object(
                Bucket=self.bucket_name, Key=address
            )
        except ClientError as e:
            self._raise_storage_error(e, address)
        except BotoCoreError as e:
            raise StorageError(f"Failed to look up {address}: {e}") from e
        return int(result["ContentLength"])

    def _iter_body(self, body: Any, address: str) -> Iterator[bytes]:
        try:
            yield from body.iter_chunks(self.chunk_size)
        except BotoCoreError as e:
            raise StorageError(f"Failed reading {address}: {e}") from e
        finally:
            body.close()

    def _get_blob_path(self, oid: str) -> str:
        """Get the path to a blob in storage."""
        if not self.path_prefix:
            storage_prefix = ""
        elif self.path_prefix[0] == "/":
            storage_prefix = self.path_prefix[1:]
        else:
            storage_prefix = self.path_prefix
        return posixpath.join(storage_prefix, oid)

    @staticmethod
    def _raise_storage_error(error: ClientError, address: str) -> NoReturn:
        if error.response["Error"]["Code"] in ("404", "NoSuchKey"):
            raise ObjectNotFoundError(
                f"Object {address} was not found"
            ) from None
        raise StorageError(f"Request for {address} failed: {error}") from error
