"""Server-rendered pages: public gallery, artwork detail and the admin dashboard."""
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from ..auth.deps import optional_user
from ..aws import tags as tag_store
from ..core.models import SessionUser
from ..services import gallery

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
ITEMS_PER_PAGE = 12

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
router = APIRouter(include_in_schema=False)


def _tag_options():
    return {t: tag_store.list_tags(t) for t in tag_store.TAG_TYPES}


@router.get("/")
def home():
    return RedirectResponse("/gallery", status_code=302)


@router.get("/gallery")
def gallery_page(
    request: Request,
    category: Optional[str] = Query(None),
    medium: Optional[str] = Query(None),
    size: Optional[str] = Query(None),
    user: Optional[SessionUser] = Depends(optional_user),
):
    filters = {
        "category": None if category in (None, "", "All") else category,
        "medium": None if medium in (None, "", "All") else medium,
        "size": None if size in (None, "", "All") else size,
    }
    first_page = gallery.list_gallery(page=1, limit=ITEMS_PER_PAGE, **filters)
    return templates.TemplateResponse(
        request,
        "gallery.html",
        {
            "user": user,
            "result": first_page,
            "filters": filters,
            "options": _tag_options(),
            "per_page": ITEMS_PER_PAGE,
        },
    )


@router.get("/gallery/{artwork_id}")
def artwork_page(request: Request, artwork_id: str, user: Optional[SessionUser] = Depends(optional_user)):
    try:
        artwork = gallery.get_artwork(artwork_id)
    except KeyError:
        return templates.TemplateResponse(
            request, "error.html", {"user": user, "message": "Artwork not found"}, status_code=404
        )
    return templates.TemplateResponse(request, "artwork.html", {"user": user, "artwork": artwork})


@router.get("/dashboard")
def dashboard_page(
    request: Request,
    page: int = Query(1, ge=1),
    user: Optional[SessionUser] = Depends(optional_user),
):
    if user is None:
        return RedirectResponse("/api/auth/signin?next=/dashboard", status_code=302)
    if user.role != "admin":
        return templates.TemplateResponse(
            request,
            "error.html",
            {"user": user, "message": "This page is only available to administrators."},
            status_code=403,
        )
    options = _tag_options()
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": user,
            "result": gallery.list_gallery(page=page, limit=24),
            "options": options,
            # rows show an empty field for tags that no longer resolve
            "known": {kind: {t["label"] for t in tags} for kind, tags in options.items()},
        },
    )
