"""
Module for tracking the state of the current upload batch.
"""
import logging
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from .exceptions import BatchInProgressError, ValidationError
from .models import BatchSummary, ItemStatus, UploadItem

logger = logging.getLogger(__name__)

ItemCallback = Callable[[UploadItem], None]


class BatchTracker:
    """Holds the items of the current batch and its running flag.

    Only the orchestrator's sequential loop mutates item state, so no
    locking is done here.
    """

    def __init__(self):
        self.batch_id: Optional[str] = None
        self._items: List[UploadItem] = []
        self._is_running = False
        self._callbacks: List[ItemCallback] = []

    @property
    def items(self) -> List[UploadItem]:
        return list(self._items)

    @property
    def is_running(self) -> bool:
        return self._is_running

    def register_callback(self, callback: ItemCallback) -> None:
        """Register a callback to be called after every item change.

        Args:
            callback: Function called with the changed item
        """
        self._callbacks.append(callback)

    def _notify(self, item: UploadItem) -> None:
        for callback in self._callbacks:
            callback(item)

    def get_item(self, item_id: str) -> Optional[UploadItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _require_item(self, item_id: str) -> UploadItem:
        item = self.get_item(item_id)
        if item is None:
            raise KeyError(f"Unknown upload item: {item_id}")
        return item

    def start_batch(self, urls: Iterable[str]) -> List[UploadItem]:
        """Replace the working set with fresh pending items.

        Args:
            urls: Source URLs in processing order

        Returns:
            The created items

        Raises:
            BatchInProgressError: A batch is already running
            ValidationError: No URLs were given
        """
        if self._is_running:
            raise BatchInProgressError("A batch is already running")

        urls = list(urls)
        if not urls:
            raise ValidationError("No valid URLs to upload")

        self.batch_id = uuid.uuid4().hex[:12]
        self._items = [
            UploadItem(id=f"{self.batch_id}-{index}", url=url)
            for index, url in enumerate(urls)
        ]
        self._is_running = True
        logger.info(f"Starting batch {self.batch_id} with {len(self._items)} items")
        return list(self._items)

    def finish_batch(self) -> BatchSummary:
        """Clear the running flag and log the batch summary."""
        self._is_running = False
        summary = self.summary()
        logger.info(
            f"Completed batch {summary.batch_id}: "
            f"{summary.successful_uploads}/{summary.total_items} files uploaded successfully"
        )
        return summary

    def mark_uploading(self, item_id: str) -> UploadItem:
        item = self._require_item(item_id)
        item.status = ItemStatus.UPLOADING
        item.progress = 0
        item.error = None
        self._notify(item)
        return item

    def update_progress(self, item_id: str, progress: int) -> UploadItem:
        """Raise an uploading item's progress; lower values are ignored.

        Args:
            item_id: Item to update
            progress: New percentage, clamped to 0-100
        """
        item = self._require_item(item_id)
        progress = max(0, min(100, int(progress)))
        if item.status == ItemStatus.UPLOADING and progress > item.progress:
            item.progress = progress
            self._notify(item)
        return item

    def set_file_name(self, item_id: str, file_name: str) -> UploadItem:
        item = self._require_item(item_id)
        item.file_name = file_name
        return item

    def mark_success(self, item_id: str) -> UploadItem:
        item = self._require_item(item_id)
        item.status = ItemStatus.SUCCESS
        item.progress = 100
        item.error = None
        self._notify(item)
        return item

    def mark_error(self, item_id: str, message: str) -> UploadItem:
        item = self._require_item(item_id)
        item.status = ItemStatus.ERROR
        item.progress = 0
        item.error = message or "Upload failed"
        self._notify(item)
        return item

    def remove_item(self, item_id: str) -> None:
        """Drop an item from the working set.

        Raises:
            ValueError: The item is currently uploading
        """
        item = self._require_item(item_id)
        if item.status == ItemStatus.UPLOADING:
            raise ValueError(f"Cannot remove item {item_id} while it is uploading")
        self._items.remove(item)
        logger.debug(f"Removed item {item_id}")

    def clear(self) -> None:
        """Discard all items of a finished batch.

        Raises:
            BatchInProgressError: A batch is still running
        """
        if self._is_running:
            raise BatchInProgressError("Cannot clear a running batch")
        self._items = []
        self.batch_id = None

    def overall_progress(self) -> float:
        """Mean progress of all items, 0.0 when there are none."""
        if not self._items:
            return 0.0
        return sum(item.progress for item in self._items) / len(self._items)

    def status_counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in ItemStatus}
        for item in self._items:
            counts[item.status.value] += 1
        return counts

    def summary(self) -> BatchSummary:
        counts = self.status_counts()
        return BatchSummary(
            batch_id=self.batch_id or "",
            total_items=len(self._items),
            successful_uploads=counts[ItemStatus.SUCCESS.value],
            failed_uploads=counts[ItemStatus.ERROR.value],
            items=list(self._items),
        )
