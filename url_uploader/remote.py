"""
Client for obtaining write credentials from a running credential service.
"""
import logging
from typing import Optional
from urllib.parse import urljoin

import requests

from .config import ProviderConfig
from .exceptions import ProviderError, ValidationError
from .intake import sanitize_file_name, sanitize_input

logger = logging.getLogger(__name__)

ROUTES = {
    "s3": "api/s3-presigned-url",
    "gcp": "api/gcp-signed-url",
    "azure": "api/azure-sas-url",
}


class RemoteCredentialBroker:
    """Requests signed URLs from the credential service's HTTP routes."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        """Initialize the client.

        Args:
            base_url: Root URL of the credential service
            session: Optional requests session to reuse
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.session = session or requests.Session()
        self.timeout = timeout

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.session.close()

    def issue_write_credential(self, object_name: str, content_type: str,
                               provider_config: ProviderConfig) -> str:
        """POST a signing request for the config's provider.

        Args:
            object_name: Target object name
            content_type: Media type the upload will be sent with
            provider_config: Active credential variant

        Returns:
            Signed URL from the service

        Raises:
            ProviderError: The service rejected the request or was unreachable
        """
        provider = provider_config.provider
        if provider not in ROUTES:
            raise ValidationError(f"Unknown provider: {provider}")

        url = urljoin(self.base_url, ROUTES[provider])
        payload = {
            "fileName": sanitize_file_name(object_name),
            "fileType": sanitize_input(content_type),
            "config": provider_config.to_payload(),
        }

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"Failed to reach credential service: {e}") from e

        if not response.ok:
            error = self._error_body(response)
            raise ProviderError(
                error.get("message") or f"Failed to get {provider.upper()} signed URL",
                code=error.get("code"),
                status_code=response.status_code,
                details=error.get("details"),
            )

        signed_url = response.json().get("signedUrl")
        if not signed_url:
            raise ProviderError(f"Credential service returned no signed URL for {provider}")
        logger.debug(f"Received {provider} signed URL for {object_name}")
        return signed_url

    @staticmethod
    def _error_body(response: requests.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        error = body.get("error") if isinstance(body, dict) else None
        return error if isinstance(error, dict) else {}
