import hashlib
import re
from io import BytesIO
from typing import Tuple

from PIL import Image, ImageOps

from .config import settings

ALLOWED_FORMATS = {"JPEG", "PNG", "WEBP", "GIF"}
MAX_NAME_LENGTH = 60


def sanitize_filename(title: str) -> str:
    """Turn an artwork title into the object-store file name.

    >>> sanitize_filename("Blue Hour Over the Bay.png")
    'blue-hour-over-the-bay.webp'
    """
    stem = re.sub(r"\.[^/.]+$", "", title)[:MAX_NAME_LENGTH]
    stem = re.sub(r"\s+", "-", stem)
    stem = re.sub(r"[^a-zA-Z0-9-]", "", stem).lower()
    if not stem.strip("-"):
        # nothing usable left (e.g. non-latin titles): stable stem from the title
        stem = "artwork-" + hashlib.sha1(title.encode("utf-8")).hexdigest()[:10]
    return f"{stem}.webp"


def thumbnail_name(filename: str) -> str:
    return filename.replace(".webp", "-thumbnail.webp")


def load_image(data_bytes: bytes) -> Image.Image:
    """Open and validate an uploaded image, raising ValueError when it is not one."""
    if not data_bytes:
        raise ValueError("missing_image")
    try:
        with Image.open(BytesIO(data_bytes)) as probe:
            fmt = (probe.format or "").upper()
            probe.verify()
    except Exception:
        raise ValueError("unsupported_image_type")
    if fmt not in ALLOWED_FORMATS:
        raise ValueError("unsupported_image_type")
    # verify() leaves the image unusable, reopen for real work
    img = Image.open(BytesIO(data_bytes))
    return ImageOps.exif_transpose(img)


def _encode_webp(img: Image.Image, quality: int) -> bytes:
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
    buf = BytesIO()
    img.save(buf, format="WEBP", quality=quality)
    return buf.getvalue()


def to_webp(data_bytes: bytes) -> Tuple[bytes, int, int]:
    """Re-encode an upload as WebP; returns (bytes, width, height)."""
    img = load_image(data_bytes)
    width, height = img.size
    return _encode_webp(img, settings.webp_quality), width, height


def create_thumbnail(data_bytes: bytes) -> bytes:
    """Resize to fit inside the thumbnail width, never enlarging."""
    img = load_image(data_bytes)
    width, height = img.size
    target = settings.thumbnail_width
    if width > target:
        img = img.resize((target, max(1, round(height * target / width))), Image.LANCZOS)
    return _encode_webp(img, settings.webp_quality)
