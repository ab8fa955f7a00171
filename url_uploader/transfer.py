"""
Module for the two data transfers of an upload: fetching the source and
PUTting it to a signed URL.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import requests

from .exceptions import FetchError, TransferError

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = (200, 201)

ProgressCallback = Callable[[int, int], None]


def upload_headers(provider: str, content_type: str) -> Dict[str, str]:
    """Headers a signed-URL PUT needs for a provider.

    Args:
        provider: Provider name
        content_type: Media type the URL was signed for

    Returns:
        Header mapping
    """
    headers = {"Content-Type": content_type}
    if provider == "azure":
        # Single-shot upload of the whole blob
        headers["x-ms-blob-type"] = "BlockBlob"
    return headers


class ProgressReader:
    """File-like view over a byte payload that reports bytes read.

    ``requests`` sizes the body with ``len()`` and streams it through
    ``read()``, so every chunk sent triggers the callback with
    ``(bytes_sent, total_bytes)``.
    """

    def __init__(self, data: bytes, callback: Optional[ProgressCallback] = None):
        self._data = data
        self._position = 0
        self._callback = callback

    def __len__(self) -> int:
        return len(self._data)

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = len(self._data) - self._position
        chunk = self._data[self._position:self._position + size]
        self._position += len(chunk)
        if chunk and self._callback:
            self._callback(self._position, len(self._data))
        return chunk


@dataclass
class FetchedSource:
    """Bytes and metadata of a fetched source URL."""
    url: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class HttpTransfer:
    """Performs source fetches and signed-URL uploads over HTTP."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        """Initialize the transfer.

        Args:
            session: Optional requests session to reuse
            timeout: Per-request timeout in seconds; None waits indefinitely
        """
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: str) -> FetchedSource:
        """Download a source URL into memory.

        Args:
            url: Source URL

        Returns:
            FetchedSource with the body and its Content-Type

        Raises:
            FetchError: Connection failure or non-success status
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Fetch failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Fetch failed: {response.status_code} {response.reason}",
                details={"status_code": response.status_code},
            )

        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return FetchedSource(
            url=url,
            content=response.content,
            content_type=response.headers.get("Content-Type"),
        )

    def upload(self, signed_url: str, content: bytes, content_type: str,
               provider: str, progress_callback: Optional[ProgressCallback] = None) -> int:
        """PUT a payload to a signed URL.

        Args:
            signed_url: URL returned by a credential broker
            content: Bytes to upload
            content_type: Media type the URL was signed for
            provider: Provider name, selects extra headers
            progress_callback: Called with (bytes_sent, total_bytes)

        Returns:
            HTTP status code of the upload

        Raises:
            TransferError: Connection failure or status other than 200/201
        """
        try:
            response = self.session.put(
                signed_url,
                data=ProgressReader(content, progress_callback),
                headers=upload_headers(provider, content_type),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransferError(f"Network error: {e}") from e

        if response.status_code not in SUCCESS_STATUSES:
            raise TransferError(
                f"Upload failed: {response.status_code}",
                details={"status_code": response.status_code},
            )
        return response.status_code
