__version__ = "0.1.0"

from .brokers import AzureBroker, CredentialBroker, GCSBroker, S3Broker, get_broker
from .config import AzureConfig, CloudConfig, GCPConfig, S3Config, is_configured
from .models import BatchSummary, ItemStatus, UploadItem
from .orchestrator import BatchOrchestrator
from .remote import RemoteCredentialBroker
from .tracker import BatchTracker

__all__ = [
    "AzureBroker",
    "AzureConfig",
    "BatchOrchestrator",
    "BatchSummary",
    "BatchTracker",
    "CloudConfig",
    "CredentialBroker",
    "GCPConfig",
    "GCSBroker",
    "ItemStatus",
    "RemoteCredentialBroker",
    "S3Broker",
    "S3Config",
    "UploadItem",
    "get_broker",
    "is_configured",
]
