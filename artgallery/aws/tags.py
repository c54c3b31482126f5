"""Tag records: (type, label) pairs attached to artworks."""
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional

from boto3.dynamodb.conditions import Key

from ..core.config import settings
from ..core.errors import ConflictError
from .clients import dynamodb, table as table_factory

LABEL_MAX = 60
TAG_TYPES = ("category", "medium", "size")
DEFAULT_LABELS = {
    "category": "Uncategorized",
    "medium": "Mixed Media",
    "size": "Various",
}


def _table():
    return table_factory(settings.tags_table)


def _validate(label: Optional[str], tag_type: Optional[str]) -> str:
    if tag_type not in TAG_TYPES:
        raise ValueError("invalid_tag_type")
    label = (label or "").strip()
    if not label:
        raise ValueError("missing_label")
    if len(label) > LABEL_MAX:
        raise ValueError("label_too_long")
    return label


def find_tag(label: str, tag_type: str) -> Optional[Dict[str, Any]]:
    label = _validate(label, tag_type)
    resp = _table().query(
        IndexName="by_type_label",
        KeyConditionExpression=Key("type").eq(tag_type) & Key("label").eq(label),
    )
    items = resp.get("Items", [])
    return items[0] if items else None


def _put(label: str, tag_type: str) -> Dict[str, Any]:
    now = int(time.time())
    item = {
        "tag_id": uuid.uuid4().hex,
        "label": label,
        "type": tag_type,
        "created_at": now,
        "updated_at": now,
    }
    _table().put_item(Item=item, ConditionExpression="attribute_not_exists(tag_id)")
    return item


def create_tag(label: str, tag_type: str) -> Dict[str, Any]:
    label = _validate(label, tag_type)
    if find_tag(label, tag_type):
        raise ConflictError("tag_exists")
    return _put(label, tag_type)


def upsert_tag(label: Optional[str], tag_type: str) -> Dict[str, Any]:
    """Find the tag with this (type, label) or create it.

    An empty label falls back to the type's default label. The lookup and the
    write are two separate requests, so concurrent upserts may race.
    """
    label = (label or "").strip() or DEFAULT_LABELS.get(tag_type, "")
    existing = find_tag(label, tag_type)
    if existing:
        return existing
    return _put(label, tag_type)


def list_tags(tag_type: Optional[str]) -> List[Dict[str, Any]]:
    """All tags of one type, sorted by label."""
    if not tag_type:
        raise ValueError("missing_type")
    if tag_type not in TAG_TYPES:
        raise ValueError("invalid_tag_type")

    items: List[Dict[str, Any]] = []
    exclusive_start_key = None
    while True:
        params: Dict[str, Any] = {
            "IndexName": "by_type_label",
            "KeyConditionExpression": Key("type").eq(tag_type),
        }
        if exclusive_start_key is not None:
            params["ExclusiveStartKey"] = exclusive_start_key
        resp = _table().query(**params)
        items.extend(resp.get("Items", []))
        exclusive_start_key = resp.get("LastEvaluatedKey")
        if not exclusive_start_key:
            break
    return sorted(items, key=lambda t: t["label"])


def get_tag(tag_id: str) -> Optional[Dict[str, Any]]:
    if not tag_id:
        return None
    return _table().get_item(Key={"tag_id": tag_id}).get("Item")


def get_tags(tag_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Resolve many ids at once; unknown ids are simply absent from the result."""
    wanted = sorted({t for t in tag_ids if t})
    found: Dict[str, Dict[str, Any]] = {}
    if not wanted:
        return found
    # BatchGetItem accepts at most 100 keys per request
    for start in range(0, len(wanted), 100):
        request = {
            settings.tags_table: {"Keys": [{"tag_id": t} for t in wanted[start:start + 100]]}
        }
        while request:
            resp = dynamodb().batch_get_item(RequestItems=request)
            for item in resp.get("Responses", {}).get(settings.tags_table, []):
                found[item["tag_id"]] = item
            request = resp.get("UnprocessedKeys") or None
    return found


def delete_tag(tag_id: str) -> Dict[str, Any]:
    """Delete a tag. Artworks still referencing it are left untouched."""
    resp = _table().delete_item(Key={"tag_id": tag_id}, ReturnValues="ALL_OLD")
    item = resp.get("Attributes")
    if not item:
        raise KeyError("not_found")
    return item
