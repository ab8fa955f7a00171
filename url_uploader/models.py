"""
Module containing data models for the URL uploader.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ItemStatus(str, Enum):
    """Lifecycle of a single upload item."""
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.SUCCESS, ItemStatus.ERROR)


@dataclass
class UploadItem:
    """Represents one source URL moving through a batch."""
    id: str
    url: str
    status: ItemStatus = ItemStatus.PENDING
    progress: int = 0  # 0-100
    error: Optional[str] = None
    file_name: Optional[str] = None

    def __post_init__(self):
        """Validate the upload item."""
        if not self.id:
            raise ValueError("id cannot be empty")
        if not self.url:
            raise ValueError("url cannot be empty")
        if not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be between 0 and 100, got {self.progress}")


@dataclass
class BatchSummary:
    """Represents a summary of a finished batch."""
    batch_id: str
    total_items: int
    successful_uploads: int
    failed_uploads: int
    items: List[UploadItem] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return self.failed_uploads == 0 and self.successful_uploads == self.total_items
