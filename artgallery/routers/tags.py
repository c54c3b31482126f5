from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth.deps import require_admin
from ..aws import tags as tag_store
from ..core.errors import ConflictError
from ..core.logging import get_logger
from ..core.models import MessageResponse, SessionUser, TagIn, TagOut

router = APIRouter(prefix="/api/tags", tags=["tags"])
logger = get_logger(__name__)


def _out(item) -> TagOut:
    return TagOut(id=item["tag_id"], label=item["label"], type=item["type"])


@router.get("", response_model=List[TagOut], summary="List tags of one type")
def list_tags(type: Optional[str] = Query(None, description="category, medium or size")):
    try:
        return [_out(t) for t in tag_store.list_tags(type)]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("list_tags_failed", type=type, error=str(e))
        raise HTTPException(status_code=500, detail="list_failed")


@router.post("", response_model=TagOut, status_code=201, summary="Create a tag")
def create_tag(payload: TagIn, user: SessionUser = Depends(require_admin)):
    try:
        item = tag_store.create_tag(payload.label, payload.type)
        logger.info("tag_created", tag_id=item["tag_id"], label=item["label"], type=item["type"])
        return _out(item)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=e.code)
    except Exception as e:
        logger.exception("create_tag_failed", error=str(e))
        raise HTTPException(status_code=500, detail="create_failed")


@router.delete(
    "/{tag_id}",
    response_model=MessageResponse,
    summary="Delete a tag",
    description="Artworks that reference the tag keep the dangling reference.",
)
def delete_tag(tag_id: str, user: SessionUser = Depends(require_admin)):
    try:
        item = tag_store.delete_tag(tag_id)
        logger.info("tag_deleted", tag_id=tag_id, label=item["label"], type=item["type"])
        return {"message": "tag_deleted"}
    except KeyError:
        raise HTTPException(status_code=404, detail="not_found")
    except Exception as e:
        logger.exception("delete_tag_failed", tag_id=tag_id, error=str(e))
        raise HTTPException(status_code=500, detail="delete_failed")
