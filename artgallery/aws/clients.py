from functools import lru_cache
from typing import Optional

import boto3

from ..core.config import settings


@lru_cache(maxsize=None)
def _session(region: str, endpoint: Optional[str], key_id: str, secret: str):
    # One client/resource pair per configuration, reused across requests.
    session = boto3.session.Session(
        aws_access_key_id=key_id,
        aws_secret_access_key=secret,
        region_name=region,
    )
    return (
        session.client("s3", endpoint_url=endpoint),
        session.resource("dynamodb", endpoint_url=endpoint),
    )


def _handles():
    return _session(
        settings.aws_region,
        settings.aws_endpoint_url,
        settings.aws_access_key_id,
        settings.aws_secret_access_key,
    )


def s3():
    """Return the S3 client for the configured region/endpoint/creds."""
    return _handles()[0]


def dynamodb():
    return _handles()[1]


def table(name: str):
    """Return a DynamoDB Table handle for ``name``."""
    return dynamodb().Table(name)


def reset() -> None:
    """Drop cached handles (tests and settings changes)."""
    _session.cache_clear()
