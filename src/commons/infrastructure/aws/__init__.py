"""Shared boto3 client construction."""

from src.commons.infrastructure.aws.client import create_client

__all__ = ["create_client"]
