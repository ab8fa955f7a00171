"""
Request models for the credential service routes.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import AzureConfig, GCPConfig, ProviderConfig, S3Config


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class S3ConfigModel(_WireModel):
    provider: Literal["s3"]
    bucket: str = Field(min_length=1)
    region: str = Field(min_length=1)
    access_key_id: str = Field(alias="accessKeyId", min_length=1)
    secret_access_key: str = Field(alias="secretAccessKey", min_length=1)
    session_token: Optional[str] = Field(default=None, alias="sessionToken")
    endpoint: Optional[str] = None

    def to_config(self) -> S3Config:
        return S3Config(**self.model_dump(exclude={"provider"}))


class GCPConfigModel(_WireModel):
    provider: Literal["gcp"]
    bucket: str = Field(min_length=1)
    project_id: str = Field(alias="projectId", min_length=1)
    key_file: str = Field(alias="keyFile", min_length=1)

    def to_config(self) -> GCPConfig:
        return GCPConfig(**self.model_dump(exclude={"provider"}))


class AzureConfigModel(_WireModel):
    provider: Literal["azure"]
    account_name: str = Field(alias="accountName", min_length=1)
    container_name: str = Field(alias="containerName", min_length=1)
    account_key: Optional[str] = Field(default=None, alias="accountKey")
    sas_token: Optional[str] = Field(default=None, alias="sasToken")

    @model_validator(mode="after")
    def check_auth_method(self) -> "AzureConfigModel":
        if not self.account_key and not self.sas_token:
            raise ValueError("Either accountKey or sasToken must be provided")
        return self

    def to_config(self) -> AzureConfig:
        return AzureConfig(**self.model_dump(exclude={"provider"}))


class SignedUrlRequest(_WireModel):
    file_name: str = Field(alias="fileName", min_length=1, max_length=255)
    file_type: str = Field(alias="fileType", min_length=1)

    def provider_config(self) -> ProviderConfig:
        return self.config.to_config()


class S3SignedUrlRequest(SignedUrlRequest):
    config: S3ConfigModel


class GCPSignedUrlRequest(SignedUrlRequest):
    config: GCPConfigModel


class AzureSasUrlRequest(SignedUrlRequest):
    config: AzureConfigModel


class SignedUrlResponse(_WireModel):
    signed_url: str = Field(serialization_alias="signedUrl")
