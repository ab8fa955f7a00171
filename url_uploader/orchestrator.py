"""
Module for driving upload batches from source URLs to cloud storage.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Iterable, Optional, Protocol

from .brokers import LocalCredentialBroker
from .config import CloudConfig, ProviderConfig
from .exceptions import BatchInProgressError, ConfigurationError, ValidationError
from .intake import (
    derive_file_name,
    is_valid_url,
    parse_urls,
    read_url_file,
    sanitize_input,
    sanitize_url,
)
from .models import BatchSummary, UploadItem
from .tracker import BatchTracker
from .transfer import FetchedSource, HttpTransfer

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class WriteCredentialIssuer(Protocol):
    def issue_write_credential(self, object_name: str, content_type: str,
                               provider_config: ProviderConfig) -> str:
        ...


class BatchOrchestrator:
    """Uploads a batch of source URLs one item at a time.

    Items are fetched, signed and uploaded strictly in order; item N+1 is
    not started until item N has succeeded or failed. A failing item is
    marked as such and the batch moves on.
    """

    def __init__(self, broker: Optional[WriteCredentialIssuer] = None,
                 transfer: Optional[HttpTransfer] = None,
                 tracker: Optional[BatchTracker] = None):
        """Initialize the orchestrator.

        Args:
            broker: Issues write credentials; defaults to in-process signing
            transfer: Performs fetches and uploads
            tracker: Holds batch state observed by callers
        """
        self.broker = broker or LocalCredentialBroker()
        self.transfer = transfer or HttpTransfer()
        self.tracker = tracker or BatchTracker()

    def run_single(self, url: str, config: CloudConfig) -> BatchSummary:
        """Upload one URL.

        Raises:
            ValidationError: The URL is not an absolute http(s) URL
        """
        sanitized = sanitize_url(url)
        if not is_valid_url(sanitized):
            raise ValidationError(f"Invalid URL: {url}")
        return self.run_batch([sanitized], config)

    def run_bulk(self, text: str, config: CloudConfig) -> BatchSummary:
        """Upload every valid URL in comma/newline separated text."""
        return self.run_batch(parse_urls(text), config)

    def run_file(self, path: Path, config: CloudConfig) -> BatchSummary:
        """Upload every valid URL listed in a text file.

        Raises:
            ValidationError: The file holds no valid URL
        """
        urls = read_url_file(path)
        if not urls:
            raise ValidationError("No valid URLs found in file")
        return self.run_batch(urls, config)

    def run_batch(self, urls: Iterable[str], config: CloudConfig) -> BatchSummary:
        """Process a batch to completion.

        Args:
            urls: Source URLs; invalid entries are dropped
            config: Credential store; its active variant is used throughout

        Returns:
            BatchSummary of the finished batch

        Raises:
            BatchInProgressError: Another batch is running
            ConfigurationError: The active provider is not configured
            ValidationError: No valid URL remains after filtering
        """
        if self.tracker.is_running:
            raise BatchInProgressError("A batch is already running")
        if not config.is_configured():
            raise ConfigurationError(f"{config.provider.upper()} configuration required")

        provider_config = config.active
        valid_urls = [url for url in map(sanitize_url, urls) if is_valid_url(url)]
        items = self.tracker.start_batch(valid_urls)

        try:
            for item in items:
                if self.tracker.get_item(item.id) is None:
                    logger.info(f"Skipping removed item {item.id}")
                    continue
                self._process_item(item, provider_config)
        finally:
            summary = self.tracker.finish_batch()
        return summary

    def _process_item(self, item: UploadItem, provider_config: ProviderConfig) -> None:
        self.tracker.mark_uploading(item.id)

        try:
            source = self.transfer.fetch(item.url)

            file_name = derive_file_name(item.url, item.file_name)
            self.tracker.set_file_name(item.id, file_name)
            content_type = self._content_type(source, file_name)

            signed_url = self.broker.issue_write_credential(
                file_name, content_type, provider_config
            )

            def on_progress(sent: int, total: int) -> None:
                if total:
                    self.tracker.update_progress(item.id, round(sent * 100 / total))

            self.transfer.upload(
                signed_url,
                source.content,
                content_type,
                provider_config.provider,
                progress_callback=on_progress,
            )
        except Exception as e:
            logger.error(f"Error uploading {item.url}: {e}")
            self.tracker.mark_error(item.id, str(e))
            return

        self.tracker.mark_success(item.id)
        logger.info(f"Uploaded {item.url} as {item.file_name}")

    @staticmethod
    def _content_type(source: FetchedSource, file_name: str) -> str:
        content_type = sanitize_input(source.content_type or "")
        if not content_type:
            content_type = mimetypes.guess_type(file_name)[0] or DEFAULT_CONTENT_TYPE
        return content_type
