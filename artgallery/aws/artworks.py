"""Artwork records in DynamoDB."""
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from ..core.config import settings
from .clients import table as table_factory

NAME_MAX = 60
TEXT_MAX = 255


def _table():
    return table_factory(settings.artworks_table)


def validate_fields(fields: Dict[str, Any]) -> None:
    """Length bounds on the text fields; raises ValueError with a field code."""
    name = fields.get("name")
    if "name" in fields and (not name or not str(name).strip()):
        raise ValueError("missing_title")
    if name and len(name) > NAME_MAX:
        raise ValueError("title_too_long")
    for field in ("description", "alt", "src", "thumb_src"):
        value = fields.get(field)
        if value and len(value) > TEXT_MAX:
            raise ValueError(f"{field}_too_long")


def new_artwork_id() -> str:
    return uuid.uuid4().hex


def find_by_name(name: str) -> Optional[Dict[str, Any]]:
    resp = _table().query(IndexName="by_name", KeyConditionExpression=Key("name").eq(name))
    items = resp.get("Items", [])
    return items[0] if items else None


def put_artwork(
    *,
    name: str,
    description: str,
    src: str,
    thumb_src: str,
    medium: str,
    size: str,
    categories: List[str],
    meta_width: Optional[int] = None,
    meta_height: Optional[int] = None,
    alt: Optional[str] = None,
    artwork_id: Optional[str] = None,
) -> Dict[str, Any]:
    now = int(time.time())
    item: Dict[str, Any] = {
        "artwork_id": artwork_id or new_artwork_id(),
        "name": name,
        "description": description or "",
        "src": src,
        "thumb_src": thumb_src,
        "medium": medium,
        "size": size,
        "categories": list(categories),
        "created_at": now,
        "updated_at": now,
    }
    if meta_width is not None and meta_height is not None:
        item["meta_width"] = int(meta_width)
        item["meta_height"] = int(meta_height)
    if alt:
        item["alt"] = alt
    validate_fields(item)
    _table().put_item(Item=item, ConditionExpression="attribute_not_exists(artwork_id)")
    return item


def get_artwork(artwork_id: str) -> Dict[str, Any]:
    item = _table().get_item(Key={"artwork_id": artwork_id}).get("Item")
    if not item:
        raise KeyError("not_found")
    return item


def update_artwork(artwork_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Set the given attributes and return the updated record.

    A value of None removes the attribute.
    """
    validate_fields(fields)
    fields = dict(fields, updated_at=int(time.time()))
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    sets: List[str] = []
    removes: List[str] = []
    for i, (field, value) in enumerate(sorted(fields.items())):
        names[f"#f{i}"] = field
        if value is None:
            removes.append(f"#f{i}")
        else:
            values[f":v{i}"] = value
            sets.append(f"#f{i} = :v{i}")
    expression = "SET " + ", ".join(sets)
    if removes:
        expression += " REMOVE " + ", ".join(removes)
    try:
        resp = _table().update_item(
            Key={"artwork_id": artwork_id},
            UpdateExpression=expression,
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ConditionExpression="attribute_exists(artwork_id)",
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            raise KeyError("not_found") from e
        raise
    return resp["Attributes"]


def delete_artwork(artwork_id: str) -> None:
    _table().delete_item(Key={"artwork_id": artwork_id})


def list_artworks(
    page: int = 1,
    limit: int = 12,
    category_id: Optional[str] = None,
    medium_id: Optional[str] = None,
    size_id: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """Return one page of artworks (newest first) and the total match count.

    The table is scanned and sorted in memory; a gallery is small enough that
    this stays cheap.
    """
    filter_expr = None
    for cond in (
        Attr("categories").contains(category_id) if category_id else None,
        Attr("medium").eq(medium_id) if medium_id else None,
        Attr("size").eq(size_id) if size_id else None,
    ):
        if cond is not None:
            filter_expr = cond if filter_expr is None else (filter_expr & cond)

    items: List[Dict[str, Any]] = []
    exclusive_start_key = None
    while True:
        params: Dict[str, Any] = {}
        if filter_expr is not None:
            params["FilterExpression"] = filter_expr
        if exclusive_start_key is not None:
            params["ExclusiveStartKey"] = exclusive_start_key
        resp = _table().scan(**params)
        items.extend(resp.get("Items", []))
        exclusive_start_key = resp.get("LastEvaluatedKey")
        if not exclusive_start_key:
            break

    items.sort(key=lambda a: (int(a.get("created_at", 0)), a["artwork_id"]), reverse=True)
    start = (page - 1) * limit
    return items[start:start + limit], len(items)
