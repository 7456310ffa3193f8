# core/s3_client.py

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from core.config import Settings


def get_s3_client(settings: Settings) -> BaseClient:
    """
    S3 client for the S3-compatible storage endpoint.
    Raises RuntimeError if credentials are missing.
    """
    key = settings.AWS_ACCESS_KEY_ID
    secret = settings.AWS_SECRET_ACCESS_KEY

    if not all([key, secret, settings.S3_ENDPOINT_URL]):
        raise RuntimeError("Missing S3 storage credentials")

    return boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL.rstrip("/"),
        aws_access_key_id=key,
        aws_secret_access_key=secret,
        region_name=settings.S3_REGION,
        # Supabase's S3 gateway only accepts path-style addressing
        config=Config(s3={"addressing_style": "path"}),
    )
