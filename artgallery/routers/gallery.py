from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from ..auth.deps import require_admin
from ..core.errors import ConflictError, StorageError, error_code
from ..core.logging import get_logger
from ..core.models import (
    ArtworkListResponse,
    ArtworkOut,
    ArtworkUpdate,
    BatchResponse,
    BulkDeleteRequest,
    MessageResponse,
    SessionUser,
)
from ..services import gallery

router = APIRouter(prefix="/api/gallery", tags=["gallery"])
logger = get_logger(__name__)


def _split(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


@router.get(
    "",
    response_model=ArtworkListResponse,
    summary="List artworks",
    description=(
        "Newest first, paginated with `page`/`limit`.\n\n"
        "`category`, `medium` and `size` filter by tag label; an unknown label does not filter."
    ),
)
def list_artworks(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[str] = Query(None, description="Category tag label"),
    medium: Optional[str] = Query(None, description="Medium tag label"),
    size: Optional[str] = Query(None, description="Size tag label"),
):
    try:
        return gallery.list_gallery(page=page, limit=limit, category=category, medium=medium, size=size)
    except Exception as e:
        logger.exception("list_artworks_failed", error=str(e))
        raise HTTPException(status_code=500, detail="list_failed")


@router.post(
    "",
    response_model=ArtworkOut,
    status_code=201,
    summary="Upload an artwork",
    description=(
        "Multipart form. `title` and `image` are required. The image is stored as WebP "
        "together with a thumbnail; missing tags default to Uncategorized / Mixed Media / Various."
    ),
)
async def create_artwork(
    title: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    categories: Optional[str] = Form(None, description="Comma-separated extra categories"),
    medium: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    alt: Optional[str] = Form(None),
    user: SessionUser = Depends(require_admin),
):
    try:
        data = await image.read() if image is not None else None
        item = gallery.create_artwork(
            title=title,
            data_bytes=data,
            description=description,
            category=category,
            categories=_split(categories),
            medium=medium,
            size=size,
            alt=alt,
        )
        return gallery.present(item)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=e.code)
    except Exception as e:
        logger.exception("create_artwork_failed", title=title, error=str(e))
        raise HTTPException(status_code=500, detail="create_failed")


@router.post(
    "/batch",
    response_model=BatchResponse,
    summary="Upload several artworks",
    description="Each file becomes one artwork titled after its file name; files are processed in order.",
)
async def batch_upload(
    images: List[UploadFile] = File(...),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    medium: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    user: SessionUser = Depends(require_admin),
):
    try:
        files = [(f.filename or "", await f.read()) for f in images]
        return gallery.batch_upload(files, category=category, medium=medium, size=size, description=description)
    except Exception as e:
        logger.exception("batch_upload_failed", error=str(e))
        raise HTTPException(status_code=500, detail="batch_upload_failed")


@router.post("/bulk-delete", response_model=BatchResponse, summary="Delete several artworks")
def bulk_delete(payload: BulkDeleteRequest, user: SessionUser = Depends(require_admin)):
    try:
        return gallery.bulk_delete(payload.ids)
    except Exception as e:
        logger.exception("bulk_delete_failed", error=str(e))
        raise HTTPException(status_code=500, detail="delete_failed")


@router.get("/{artwork_id}", response_model=ArtworkOut, summary="Get one artwork")
def get_artwork(artwork_id: str):
    try:
        return gallery.get_artwork(artwork_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except Exception as e:
        logger.exception("get_artwork_failed", artwork_id=artwork_id, error=str(e))
        raise HTTPException(status_code=500, detail="fetch_failed")


@router.put(
    "/{artwork_id}",
    response_model=ArtworkOut,
    summary="Edit an artwork",
    description="Omitted fields are kept. Changing the title renames the stored image and thumbnail.",
)
def update_artwork(artwork_id: str, payload: ArtworkUpdate, user: SessionUser = Depends(require_admin)):
    try:
        item = gallery.update_artwork(artwork_id, payload.model_dump(exclude_unset=True))
        return gallery.present(item)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=error_code(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=e.code)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("update_artwork_failed", artwork_id=artwork_id, error=str(e))
        raise HTTPException(status_code=500, detail="update_failed")


@router.post("/{artwork_id}/image", response_model=ArtworkOut, summary="Replace an artwork's image")
async def replace_image(
    artwork_id: str,
    image: UploadFile = File(...),
    user: SessionUser = Depends(require_admin),
):
    try:
        item = gallery.replace_image(artwork_id, await image.read())
        return gallery.present(item)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=error_code(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("replace_image_failed", artwork_id=artwork_id, error=str(e))
        raise HTTPException(status_code=500, detail="update_failed")


@router.delete(
    "/{artwork_id}",
    response_model=MessageResponse,
    summary="Delete an artwork",
    description="Removes the record; image objects are deleted best effort.",
)
def delete_artwork(artwork_id: str, user: SessionUser = Depends(require_admin)):
    try:
        gallery.delete_artwork(artwork_id)
        return {"message": "artwork_deleted"}
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except Exception as e:
        logger.exception("delete_artwork_failed", artwork_id=artwork_id, error=str(e))
        raise HTTPException(status_code=500, detail="delete_failed")
