"""
Routes of the credential service.
"""
import logging
import time

from fastapi import APIRouter, Request

from ..brokers import get_broker
from .middleware import get_request_id, utc_timestamp
from .schemas import (
    AzureSasUrlRequest,
    GCPSignedUrlRequest,
    S3SignedUrlRequest,
    SignedUrlRequest,
    SignedUrlResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue(request: Request, body: SignedUrlRequest) -> SignedUrlResponse:
    config = body.provider_config()
    broker = get_broker(config.provider)
    signed_url = broker.issue_write_credential(body.file_name, body.file_type, config)
    logger.info(
        f"Issued {config.provider} write credential for {body.file_name} "
        f"(request {get_request_id(request)})"
    )
    return SignedUrlResponse(signed_url=signed_url)


@router.post("/s3-presigned-url", response_model=SignedUrlResponse)
def s3_presigned_url(body: S3SignedUrlRequest, request: Request):
    return _issue(request, body)


@router.post("/gcp-signed-url", response_model=SignedUrlResponse)
def gcp_signed_url(body: GCPSignedUrlRequest, request: Request):
    return _issue(request, body)


@router.post("/azure-sas-url", response_model=SignedUrlResponse)
def azure_sas_url(body: AzureSasUrlRequest, request: Request):
    return _issue(request, body)


@router.get("/health")
def health(request: Request):
    state = request.app.state
    return {
        "status": "healthy",
        "timestamp": utc_timestamp(),
        "uptime": time.monotonic() - state.started_at,
        "environment": state.settings.environment,
    }
