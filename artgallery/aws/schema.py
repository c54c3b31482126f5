"""DynamoDB table layouts and bootstrap helpers.

Used by ``artgallery-admin init`` and by the test fixtures so both create the
exact same keys and indexes.
"""
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..core.config import settings
from ..core.logging import get_logger
from . import clients

logger = get_logger(__name__)


def _gsi(name: str, hash_key: str, range_key: Optional[str] = None) -> Dict[str, Any]:
    key_schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    if range_key:
        key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
    return {"IndexName": name, "KeySchema": key_schema, "Projection": {"ProjectionType": "ALL"}}


def table_definitions() -> List[Dict[str, Any]]:
    return [
        {
            "TableName": settings.artworks_table,
            "AttributeDefinitions": [
                {"AttributeName": "artwork_id", "AttributeType": "S"},
                {"AttributeName": "name", "AttributeType": "S"},
            ],
            "KeySchema": [{"AttributeName": "artwork_id", "KeyType": "HASH"}],
            "GlobalSecondaryIndexes": [_gsi("by_name", "name")],
        },
        {
            "TableName": settings.tags_table,
            "AttributeDefinitions": [
                {"AttributeName": "tag_id", "AttributeType": "S"},
                {"AttributeName": "type", "AttributeType": "S"},
                {"AttributeName": "label", "AttributeType": "S"},
            ],
            "KeySchema": [{"AttributeName": "tag_id", "KeyType": "HASH"}],
            "GlobalSecondaryIndexes": [_gsi("by_type_label", "type", "label")],
        },
        {
            "TableName": settings.profiles_table,
            "AttributeDefinitions": [
                {"AttributeName": "auth_id", "AttributeType": "S"},
                {"AttributeName": "username", "AttributeType": "S"},
            ],
            "KeySchema": [{"AttributeName": "auth_id", "KeyType": "HASH"}],
            "GlobalSecondaryIndexes": [_gsi("by_username", "username")],
        },
        {
            "TableName": settings.users_table,
            "AttributeDefinitions": [
                {"AttributeName": "user_id", "AttributeType": "S"},
                {"AttributeName": "email", "AttributeType": "S"},
            ],
            "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
            "GlobalSecondaryIndexes": [_gsi("by_email", "email")],
        },
        {
            "TableName": settings.sessions_table,
            "AttributeDefinitions": [
                {"AttributeName": "session_token", "AttributeType": "S"},
            ],
            "KeySchema": [{"AttributeName": "session_token", "KeyType": "HASH"}],
        },
    ]


def create_tables() -> List[str]:
    """Create any missing table; return the names that were created."""
    client = clients.dynamodb().meta.client
    existing = set(client.list_tables().get("TableNames", []))
    created = []
    for definition in table_definitions():
        name = definition["TableName"]
        if name in existing:
            continue
        client.create_table(BillingMode="PAY_PER_REQUEST", **definition)
        client.get_waiter("table_exists").wait(TableName=name)
        logger.info("table_created", table=name)
        created.append(name)
    return created


def create_bucket() -> bool:
    s3 = clients.s3()
    try:
        s3.head_bucket(Bucket=settings.bucket_name)
        return False
    except ClientError:
        pass
    params: Dict[str, Any] = {"Bucket": settings.bucket_name}
    if settings.aws_region != "us-east-1":
        params["CreateBucketConfiguration"] = {"LocationConstraint": settings.aws_region}
    s3.create_bucket(**params)
    logger.info("bucket_created", bucket=settings.bucket_name)
    return True
