"""boto3 client factory with shared retry and timeout configuration."""

from typing import Any

import boto3
from botocore.config import Config

from src.commons.settings.models import AwsSettings
from src.commons.telemetry import get_logger

logger = get_logger(__name__)


def create_client(service: str, settings: AwsSettings) -> Any:
    """Build a low-level boto3 client for ``service``.

    Args:
        service: boto3 service name, e.g. "sqs", "ecs", "dynamodb".
        settings: Region, optional endpoint override and retry/timeouts.

    Returns:
        The boto3 client.
    """
    config = Config(
        region_name=settings.region,
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
        connect_timeout=settings.connect_timeout_seconds,
        read_timeout=settings.read_timeout_seconds,
    )
    kwargs: dict[str, Any] = {"config": config}
    if settings.endpoint_url:
        kwargs["endpoint_url"] = settings.endpoint_url
    if settings.access_key_id and settings.secret_access_key:
        kwargs["aws_access_key_id"] = settings.access_key_id
        kwargs["aws_secret_access_key"] = settings.secret_access_key

    client = boto3.client(service, **kwargs)
    logger.info(
        "AWS client initialized",
        extra={"service": service, "region": settings.region},
    )
    return client
