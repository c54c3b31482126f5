"""Artwork workflows shared by the HTTP routers and the admin CLI.

Each workflow is a short sequence of independent DynamoDB and S3 calls; there
is no transaction around them. Object-store cleanup after a failed or removed
artwork is best effort and only logged.
"""
import math
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..aws import artworks, storage, tags
from ..core.errors import ConflictError, StorageError, error_code
from ..core.imaging import create_thumbnail, to_webp
from ..core.logging import get_logger

logger = get_logger(__name__)


def _category_labels(category: Optional[str], categories: Optional[Iterable[str]]) -> List[str]:
    labels: List[str] = []
    for label in [category or ""] + list(categories or []):
        label = (label or "").strip()
        if label and label not in labels:
            labels.append(label)
    return labels or [tags.DEFAULT_LABELS["category"]]


def _resolve_tags(
    category: Optional[str],
    medium: Optional[str],
    size: Optional[str],
    categories: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    return {
        "categories": [tags.upsert_tag(label, "category") for label in _category_labels(category, categories)],
        "medium": tags.upsert_tag(medium, "medium"),
        "size": tags.upsert_tag(size, "size"),
    }


def _ensure_name_free(title: str, artwork_id: Optional[str] = None) -> None:
    other = artworks.find_by_name(title)
    if other and other["artwork_id"] != artwork_id:
        raise ConflictError("artwork_exists")


def _stored_keys(artwork: Dict[str, Any]) -> Tuple[str, str]:
    return storage.key_from_url(artwork.get("src")), storage.key_from_url(artwork.get("thumb_src"))


def _free_keys(title: str, artwork_id: str) -> Tuple[str, str]:
    """Object keys for a title; a key still held by another object gets an id suffix."""
    image_key, thumb_key = storage.image_keys(title)
    if storage.object_exists(image_key):
        logger.info("image_key_in_use", key=image_key, artwork_id=artwork_id)
        image_key, thumb_key = storage.image_keys(title, suffix=artwork_id[:8])
    return image_key, thumb_key


def _encode(data_bytes: bytes) -> Tuple[bytes, bytes, int, int]:
    webp, width, height = to_webp(data_bytes)
    return webp, create_thumbnail(data_bytes), width, height


def create_artwork(
    *,
    title: Optional[str],
    data_bytes: Optional[bytes],
    description: Optional[str] = None,
    category: Optional[str] = None,
    medium: Optional[str] = None,
    size: Optional[str] = None,
    alt: Optional[str] = None,
    categories: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    title = (title or "").strip()
    if not title or not data_bytes:
        raise ValueError("title_and_image_required")
    artworks.validate_fields({"name": title, "description": description, "alt": alt})
    _ensure_name_free(title)

    webp, thumb, width, height = _encode(data_bytes)
    resolved = _resolve_tags(category, medium, size, categories)

    artwork_id = artworks.new_artwork_id()
    image_key, thumb_key = _free_keys(title, artwork_id)
    try:
        storage.put_object(image_key, webp)
        storage.put_object(thumb_key, thumb)
        item = artworks.put_artwork(
            artwork_id=artwork_id,
            name=title,
            description=description or "",
            src=storage.object_url(image_key),
            thumb_src=storage.object_url(thumb_key),
            medium=resolved["medium"]["tag_id"],
            size=resolved["size"]["tag_id"],
            categories=[t["tag_id"] for t in resolved["categories"]],
            meta_width=width,
            meta_height=height,
            alt=alt,
        )
    except Exception:
        storage.delete_quietly([image_key, thumb_key])
        raise
    logger.info("artwork_created", artwork_id=item["artwork_id"], name=title)
    return item


def update_artwork(artwork_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply an edit. Omitted fields keep their value; tag fields are upserted.

    A title change moves the original and the thumbnail to keys derived from
    the new title: both are copied first, then the old keys are deleted best
    effort. A failed copy aborts the edit with StorageError.
    """
    existing = artworks.get_artwork(artwork_id)
    fields: Dict[str, Any] = {}

    title = (data.get("title") or "").strip() or existing["name"]
    if "description" in data:
        fields["description"] = data.get("description") or ""
    if "alt" in data:
        fields["alt"] = data.get("alt") or None
    artworks.validate_fields(dict(fields, name=title))

    if "category" in data or "categories" in data:
        extra = data.get("categories")
        if extra is None:
            # a lone primary category keeps the secondary ones
            extra = _current_labels(existing.get("categories") or [])[1:]
        labels = _category_labels(data.get("category"), extra)
        fields["categories"] = [tags.upsert_tag(label, "category")["tag_id"] for label in labels]
    if "medium" in data:
        fields["medium"] = tags.upsert_tag(data.get("medium"), "medium")["tag_id"]
    if "size" in data:
        fields["size"] = tags.upsert_tag(data.get("size"), "size")["tag_id"]

    if title != existing["name"]:
        _ensure_name_free(title, artwork_id)
        fields["name"] = title
        fields.update(_rename_objects(existing, title))

    if not fields:
        return existing
    item = artworks.update_artwork(artwork_id, fields)
    logger.info("artwork_updated", artwork_id=artwork_id, fields=sorted(fields))
    return item


def _current_labels(tag_ids: List[str]) -> List[str]:
    found = tags.get_tags(tag_ids)
    return [found[t]["label"] for t in tag_ids if t in found]


def _rename_objects(existing: Dict[str, Any], new_title: str) -> Dict[str, Any]:
    old_image, old_thumb = _stored_keys(existing)
    new_image, new_thumb = storage.image_keys(new_title)
    if new_image != old_image and storage.object_exists(new_image):
        logger.info("image_key_in_use", key=new_image, artwork_id=existing["artwork_id"])
        new_image, new_thumb = storage.image_keys(new_title, suffix=existing["artwork_id"][:8])
    if (old_image, old_thumb) == (new_image, new_thumb):
        return {}
    try:
        if old_image:
            storage.copy_object(old_image, new_image)
        if old_thumb:
            storage.copy_object(old_thumb, new_thumb)
    except Exception as e:
        logger.error("s3_rename_failed", artwork_id=existing["artwork_id"], error=str(e))
        raise StorageError("s3_update_failed") from e
    storage.delete_quietly([old_image, old_thumb])
    return {"src": storage.object_url(new_image), "thumb_src": storage.object_url(new_thumb)}


def replace_image(artwork_id: str, data_bytes: Optional[bytes]) -> Dict[str, Any]:
    """Upload a new image (and thumbnail) for an existing artwork."""
    if not data_bytes:
        raise ValueError("missing_image")
    existing = artworks.get_artwork(artwork_id)
    derived_image, derived_thumb = storage.image_keys(existing["name"])
    old_image, old_thumb = _stored_keys(existing)
    image_key = old_image or derived_image
    thumb_key = old_thumb or derived_thumb

    webp, thumb, width, height = _encode(data_bytes)
    try:
        storage.put_object(image_key, webp)
        storage.put_object(thumb_key, thumb)
    except Exception as e:
        logger.error("s3_replace_failed", artwork_id=artwork_id, error=str(e))
        raise StorageError("s3_update_failed") from e

    item = artworks.update_artwork(
        artwork_id,
        {
            "src": storage.object_url(image_key),
            "thumb_src": storage.object_url(thumb_key),
            "meta_width": width,
            "meta_height": height,
        },
    )
    logger.info("artwork_image_replaced", artwork_id=artwork_id, width=width, height=height)
    return item


def delete_artwork(artwork_id: str) -> None:
    """Remove an artwork; its objects are deleted best effort."""
    existing = artworks.get_artwork(artwork_id)
    storage.delete_quietly(_stored_keys(existing))
    artworks.delete_artwork(artwork_id)
    logger.info("artwork_deleted", artwork_id=artwork_id, name=existing["name"])


def batch_upload(
    files: Sequence[Tuple[str, bytes]],
    *,
    category: Optional[str] = None,
    medium: Optional[str] = None,
    size: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Create one artwork per file, sequentially, titled after the file name.

    A failing file is recorded and the batch carries on.
    """
    results: List[Dict[str, Any]] = []
    total = len(files)
    for index, (filename, data_bytes) in enumerate(files, start=1):
        title = os.path.splitext(os.path.basename(filename or ""))[0]
        try:
            item = create_artwork(
                title=title,
                data_bytes=data_bytes,
                description=description,
                category=category,
                medium=medium,
                size=size,
            )
            results.append({"filename": filename, "status": "ok", "id": item["artwork_id"]})
        except (ValueError, KeyError, ConflictError, StorageError) as e:
            results.append({"filename": filename, "status": "error", "error": error_code(e)})
        except Exception as e:
            logger.error("batch_item_failed", filename=filename, error=str(e))
            results.append({"filename": filename, "status": "error", "error": "upload_failed"})
        logger.info("batch_upload_progress", done=index, total=total, filename=filename)

    succeeded = sum(1 for r in results if r["status"] == "ok")
    return {"total": total, "succeeded": succeeded, "failed": total - succeeded, "results": results}


def bulk_delete(artwork_ids: Sequence[str]) -> Dict[str, Any]:
    results: List[Dict[str, Any]] = []
    for artwork_id in artwork_ids:
        try:
            delete_artwork(artwork_id)
            results.append({"id": artwork_id, "status": "ok"})
        except KeyError:
            results.append({"id": artwork_id, "status": "error", "error": "not_found"})
        except Exception as e:
            logger.error("bulk_delete_item_failed", artwork_id=artwork_id, error=str(e))
            results.append({"id": artwork_id, "status": "error", "error": "delete_failed"})
    succeeded = sum(1 for r in results if r["status"] == "ok")
    return {"total": len(results), "succeeded": succeeded, "failed": len(results) - succeeded, "results": results}


def present(artwork: Dict[str, Any], tags_by_id: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Any]:
    """API view of an artwork with tag labels and freshly signed image URLs."""
    category_ids = list(artwork.get("categories") or [])
    if tags_by_id is None:
        tags_by_id = tags.get_tags(category_ids + [artwork.get("medium"), artwork.get("size")])

    category_labels = [tags_by_id[t]["label"] for t in category_ids if t in tags_by_id]
    medium = tags_by_id.get(artwork.get("medium") or "")
    size = tags_by_id.get(artwork.get("size") or "")
    width, height = artwork.get("meta_width"), artwork.get("meta_height")
    image_key, thumb_key = _stored_keys(artwork)

    return {
        "id": artwork["artwork_id"],
        "title": artwork["name"],
        "description": artwork.get("description") or "",
        "category": category_labels[0] if category_labels else "Uncategorized",
        "medium": medium["label"] if medium else "Unknown",
        "size": size["label"] if size else "Unknown",
        "dimensions": f"{int(width)}x{int(height)}" if width and height else "Unknown",
        "alt": artwork.get("alt") or artwork["name"],
        "image_url": storage.presigned_get(image_key),
        "thumbnail_url": storage.presigned_get(thumb_key),
        "tags": category_labels,
        "created_at": int(artwork.get("created_at") or 0),
    }


def get_artwork(artwork_id: str) -> Dict[str, Any]:
    return present(artworks.get_artwork(artwork_id))


def list_gallery(
    page: int = 1,
    limit: int = 12,
    category: Optional[str] = None,
    medium: Optional[str] = None,
    size: Optional[str] = None,
) -> Dict[str, Any]:
    """One page of the public gallery.

    Filters are tag labels; a label with no matching tag does not filter.
    """
    filter_ids: Dict[str, Optional[str]] = {}
    for key, label, tag_type in (
        ("category_id", category, "category"),
        ("medium_id", medium, "medium"),
        ("size_id", size, "size"),
    ):
        tag = None
        if label and label.strip():
            try:
                tag = tags.find_tag(label, tag_type)
            except ValueError:
                # over-long labels can never match a stored tag
                tag = None
        filter_ids[key] = tag["tag_id"] if tag else None

    items, total = artworks.list_artworks(page=page, limit=limit, **filter_ids)

    wanted: List[str] = []
    for item in items:
        wanted.extend(item.get("categories") or [])
        wanted.extend([item.get("medium"), item.get("size")])
    tags_by_id = tags.get_tags(wanted)

    return {
        "artworks": [present(item, tags_by_id) for item in items],
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "page": page,
        "limit": limit,
    }
