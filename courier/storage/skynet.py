"""Skynet portal backend.

Uploads objects to a Skynet web portal and addresses them by the skylink
the portal returns (``sia://<skylink>``).
"""
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import requests

from courier.storage import StorageProvider
from courier.storage.exc import ObjectNotFoundError, StorageError
from courier.types import ObjectRef

DEFAULT_PORTAL_URL = "https://skynetfree.net"
DEFAULT_CHUNK_SIZE = 256 * 1024
DEFAULT_TIMEOUT = 60

_log = logging.getLogger(__name__)


class SkynetStorage(StorageProvider):
    """Skynet portal storage backend."""

    address_scheme = "sia"

    def __init__(
        self,
        portal_url: str = DEFAULT_PORTAL_URL,
        api_key: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        **_: Any,
    ) -> None:
        self.portal_url = portal_url.rstrip("/")
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._session = requests.Session()
        if api_key:
            self._session.headers["Skynet-Api-Key"] = api_key
        _log.debug("Using Skynet portal: %s", self.portal_url)

    def download(self, address: str, obj: ObjectRef) -> Iterator[bytes]:
        skylink = self.strip_scheme(address)
        try:
            response = self._session.get(
                self._url_for(skylink), stream=True, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise StorageError(f"Failed to fetch {skylink}: {e}") from e

        if response.status_code == 404:
            response.close()
            raise ObjectNotFoundError(f"Skylink {skylink} was not found")
        if not response.ok:
            response.close()
            raise StorageError(
                f"Unexpected reply from Skynet portal for {skylink}: "
                f"{response.status_code}"
            )
        return self._iter_content(response, skylink)

    def upload(self, obj: ObjectRef, path: str) -> str:
        _log.debug("Uploading %s to %s", path, self.portal_url)
        with Path(path).open("rb") as f:
            try:
                response = self._session.post(
                    self._url_for("skynet", "skyfile"),
                    files={"file": (obj.oid, f)},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                raise StorageError(f"Failed to upload {path}: {e}") from e

        if not response.ok:
            raise StorageError(
                "There was an error trying to upload to the Skynet portal: "
                f"{response.status_code} {response.text}"
            )

        try:
            skylink = response.json()["skylink"]
        except (ValueError, KeyError, TypeError):
            raise StorageError(
                f"Unexpected upload reply from Skynet portal: {response.text}"
            ) from None

        _log.debug("Upload complete: %s", skylink)
        return f"{self.address_scheme}://{self.strip_scheme(skylink)}"

    def is_available(self, address: str) -> bool:
        skylink = self.strip_scheme(address)
        try:
            response = self._session.get(
                self._url_for("skynet", "metadata", skylink),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StorageError(f"Failed to look up {skylink}: {e}") from e
        return response.ok

    def _iter_content(
        self, response: requests.Response, skylink: str
    ) -> Iterator[bytes]:
        try:
            yield from response.iter_content(self.chunk_size)
        except requests.RequestException as e:
            raise StorageError(f"Failed reading {skylink}: {e}") from e
        finally:
            response.close()

    def _url_for(self, *segments: str) -> str:
        path = "/".join(s.strip("/") for s in segments)
        return f"{self.portal_url}/{path}"
