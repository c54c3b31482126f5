"""Object-store helpers for putting, copying, signing and deleting images.
"""
from typing import Iterable, Optional, Tuple
from urllib.parse import unquote, urlparse

from botocore.exceptions import ClientError

from ..core.config import settings
from ..core.imaging import sanitize_filename, thumbnail_name
from ..core.logging import get_logger
from .clients import s3 as s3_client_factory

logger = get_logger(__name__)


def image_keys(title: str, suffix: Optional[str] = None) -> Tuple[str, str]:
    """Return (original_key, thumbnail_key) for an artwork title.

    ``suffix`` is appended to the file stem when the plain key is already taken.
    """
    filename = sanitize_filename(title)
    if suffix:
        filename = f"{filename[:-len('.webp')]}-{suffix}.webp"
    prefix = settings.key_prefix.strip("/")
    return (
        f"{prefix}/{filename}",
        f"{prefix}/thumbnails/{thumbnail_name(filename)}",
    )


def object_url(key: str) -> str:
    """Permanent (unsigned) URL of an object; stored on the artwork record."""
    if settings.aws_endpoint_url:
        return f"{settings.aws_endpoint_url.rstrip('/')}/{settings.bucket_name}/{key}"
    return f"https://{settings.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"


def key_from_url(url: Optional[str]) -> str:
    """Recover the object key from a stored URL, or "" if it cannot be parsed."""
    if not url:
        return ""
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""
    path = unquote(parsed.path).lstrip("/")
    # path-style URLs (custom endpoints) carry the bucket as first segment
    virtual_host = parsed.netloc.startswith(f"{settings.bucket_name}.")
    if not virtual_host and path.startswith(f"{settings.bucket_name}/"):
        path = path[len(settings.bucket_name) + 1:]
    return path


def put_object(key: str, data_bytes: bytes, content_type: str = "image/webp") -> None:
    s3_client_factory().put_object(
        Bucket=settings.bucket_name,
        Key=key,
        Body=data_bytes,
        ContentType=content_type,
    )


def copy_object(source_key: str, dest_key: str) -> None:
    s3_client_factory().copy_object(
        Bucket=settings.bucket_name,
        CopySource={"Bucket": settings.bucket_name, "Key": source_key},
        Key=dest_key,
    )


def delete_object(key: str) -> None:
    s3_client_factory().delete_object(Bucket=settings.bucket_name, Key=key)


def delete_quietly(keys: Iterable[str]) -> int:
    """Delete each key, logging failures instead of raising. Returns deletions."""
    deleted = 0
    for key in keys:
        if not key:
            continue
        try:
            delete_object(key)
            deleted += 1
        except Exception as e:
            logger.warning("s3_delete_failed", key=key, error=str(e))
    return deleted


def presigned_get(key: str) -> str:
    """Create a short-lived URL to fetch an object; "" when signing fails."""
    if not key:
        return ""
    try:
        return s3_client_factory().generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": settings.bucket_name, "Key": key},
            ExpiresIn=int(settings.url_expiry),
        )
    except Exception as e:
        logger.error("s3_presign_failed", key=key, error=str(e))
        return ""


def object_exists(key: str) -> bool:
    try:
        s3_client_factory().head_object(Bucket=settings.bucket_name, Key=key)
    except ClientError:
        return False
    return True
