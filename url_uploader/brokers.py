"""
Module for issuing short-lived write credentials (signed URLs).

Each broker turns a target object name, its media type and the provider's
credential variant into a URL that allows a single PUT of that one object
for one hour. Validation and name sanitization are shared; only the signing
call differs per provider.
"""
import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple, Type

import boto3
from azure.core.exceptions import AzureError
from azure.storage.blob import BlobClient, BlobSasPermissions, generate_blob_sas
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from .config import AzureConfig, GCPConfig, ProviderConfig, S3Config
from .exceptions import (
    ConfigurationError,
    InvalidCredentialsError,
    ProviderError,
    UploaderError,
    ValidationError,
)
from .intake import MAX_FILE_NAME_LENGTH, sanitize_file_name

logger = logging.getLogger(__name__)

SIGNED_URL_EXPIRY_SECONDS = 3600


class CredentialBroker(ABC):
    """Issues write-only signed URLs for one storage provider."""

    provider: str = ""
    config_class: Type[ProviderConfig] = ProviderConfig
    error_code = "PROVIDER_ERROR"
    error_status = 400
    # Generic message returned instead of the SDK's own text, if set
    error_message: Optional[str] = None
    sdk_errors: Tuple[Type[Exception], ...] = ()

    def issue_write_credential(self, object_name: str, content_type: str,
                               provider_config: ProviderConfig) -> str:
        """Return a URL allowing a single PUT of ``object_name``.

        Args:
            object_name: Target object name, sanitized before use
            content_type: Media type the upload will be sent with
            provider_config: This broker's credential variant

        Returns:
            Signed URL valid for ``SIGNED_URL_EXPIRY_SECONDS``

        Raises:
            ValidationError: Missing input or required configuration
            InvalidCredentialsError: Unparsable credential material
            ConfigurationError: No usable authentication method
            ProviderError: The provider SDK failed
        """
        object_name, content_type = self._validate(object_name, content_type, provider_config)

        try:
            signed_url = self._sign(object_name, content_type, provider_config)
        except UploaderError:
            raise
        except self.sdk_errors as e:
            logger.error(f"Error issuing {self.provider} write credential for {object_name}: {e}")
            raise ProviderError(
                self.error_message or str(e),
                code=self.error_code,
                status_code=self.error_status,
            ) from e

        logger.info(f"{self.provider} signed URL generated for {object_name}")
        return signed_url

    def _validate(self, object_name: str, content_type: str,
                  provider_config: ProviderConfig) -> Tuple[str, str]:
        if not object_name:
            raise ValidationError("fileName cannot be empty")
        if len(object_name) > MAX_FILE_NAME_LENGTH:
            raise ValidationError(
                f"fileName must be at most {MAX_FILE_NAME_LENGTH} characters"
            )
        content_type = (content_type or "").strip()
        if not content_type:
            raise ValidationError("fileType cannot be empty")
        if not isinstance(provider_config, self.config_class):
            raise ValidationError(
                f"{self.provider} broker requires {self.config_class.__name__}, "
                f"got {type(provider_config).__name__}"
            )
        self._check_config(provider_config)
        return sanitize_file_name(object_name), content_type

    def _check_config(self, provider_config: ProviderConfig) -> None:
        missing = provider_config.missing_fields()
        if missing:
            raise ValidationError(
                f"Missing required {self.provider} configuration: {', '.join(missing)}",
                details=missing,
            )

    @abstractmethod
    def _sign(self, object_name: str, content_type: str,
              provider_config: ProviderConfig) -> str:
        """Produce the signed URL using the provider SDK."""


class S3Broker(CredentialBroker):
    """Presigns S3 ``PutObject`` requests."""

    provider = "s3"
    config_class = S3Config
    error_code = "S3_PRESIGNED_URL_ERROR"
    sdk_errors = (BotoCoreError, ClientError, ValueError)

    def _create_client(self, config: S3Config):
        return boto3.client(
            "s3",
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            aws_session_token=config.session_token or None,
            endpoint_url=config.endpoint or None,
            config=Config(signature_version="s3v4"),
        )

    def _sign(self, object_name: str, content_type: str, config: S3Config) -> str:
        client = self._create_client(config)
        return client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": config.bucket,
                "Key": object_name,
                "ContentType": content_type,
            },
            ExpiresIn=SIGNED_URL_EXPIRY_SECONDS,
        )


class GCSBroker(CredentialBroker):
    """Issues v4 signed PUT URLs for Google Cloud Storage."""

    provider = "gcp"
    config_class = GCPConfig
    error_code = "GCP_SIGNED_URL_ERROR"
    sdk_errors = (GoogleAPIError, GoogleAuthError, ValueError)

    def _load_credentials(self, key_file: str) -> service_account.Credentials:
        """Parse service-account key JSON into credentials.

        Args:
            key_file: JSON content of the service-account key

        Returns:
            Service-account credentials

        Raises:
            InvalidCredentialsError: The key is not valid JSON or not a key
        """
        try:
            info = json.loads(key_file)
        except ValueError as e:
            raise InvalidCredentialsError("Service account key is not valid JSON") from e
        if not isinstance(info, dict):
            raise InvalidCredentialsError("Service account key must be a JSON object")

        try:
            return service_account.Credentials.from_service_account_info(info)
        except (ValueError, GoogleAuthError) as e:
            raise InvalidCredentialsError(f"Invalid service account key: {e}") from e

    def _sign(self, object_name: str, content_type: str, config: GCPConfig) -> str:
        credentials = self._load_credentials(config.key_file)
        client = storage.Client(project=config.project_id, credentials=credentials)
        blob = client.bucket(config.bucket).blob(object_name)
        return blob.generate_signed_url(
            version="v4",
            method="PUT",
            expiration=timedelta(seconds=SIGNED_URL_EXPIRY_SECONDS),
            content_type=content_type,
        )


class AzureBroker(CredentialBroker):
    """Issues write-only blob SAS URLs for Azure Blob Storage.

    An account key takes precedence over a pre-issued SAS token when both
    are configured.
    """

    provider = "azure"
    config_class = AzureConfig
    error_code = "AZURE_ERROR"
    error_status = 500
    error_message = "Failed to generate Azure SAS URL"
    sdk_errors = (AzureError, ValueError)

    def _check_config(self, config: AzureConfig) -> None:
        missing = [name for name in config.required_fields if not getattr(config, name)]
        if missing:
            raise ValidationError(
                f"Missing required azure configuration: {', '.join(missing)}",
                details=missing,
            )
        if not config.account_key and not config.sas_token:
            raise ConfigurationError("Either accountKey or sasToken must be provided")

    def _blob_url(self, config: AzureConfig, object_name: str) -> str:
        account_url = f"https://{config.account_name}.blob.core.windows.net"
        return BlobClient(account_url, config.container_name, object_name).url

    def _sign(self, object_name: str, content_type: str, config: AzureConfig) -> str:
        blob_url = self._blob_url(config, object_name)

        if config.account_key:
            try:
                base64.b64decode(config.account_key, validate=True)
            except (binascii.Error, ValueError) as e:
                raise InvalidCredentialsError("Azure account key is not valid base64") from e

            starts_on = datetime.now(timezone.utc)
            sas_token = generate_blob_sas(
                account_name=config.account_name,
                container_name=config.container_name,
                blob_name=object_name,
                account_key=config.account_key,
                permission=BlobSasPermissions(write=True),
                start=starts_on,
                expiry=starts_on + timedelta(seconds=SIGNED_URL_EXPIRY_SECONDS),
            )
            return f"{blob_url}?{sas_token}"

        # Pre-issued token is reused as-is
        return f"{blob_url}?{config.sas_token.lstrip('?')}"


BROKERS: Dict[str, Type[CredentialBroker]] = {
    "s3": S3Broker,
    "gcp": GCSBroker,
    "azure": AzureBroker,
}


def get_broker(provider: str) -> CredentialBroker:
    """Return the broker for a provider name.

    Args:
        provider: One of ``s3``, ``gcp``, ``azure``

    Returns:
        CredentialBroker instance
    """
    try:
        return BROKERS[provider]()
    except KeyError:
        raise ValidationError(f"Unknown provider: {provider}") from None


class LocalCredentialBroker:
    """Dispatches to the in-process broker matching the config's provider."""

    def issue_write_credential(self, object_name: str, content_type: str,
                               provider_config: ProviderConfig) -> str:
        broker = get_broker(provider_config.provider)
        return broker.issue_write_credential(object_name, content_type, provider_config)
