from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from .core.config import settings
from .core.logging import get_logger, setup_logging
from .routers.auth import router as auth_router
from .routers.gallery import router as gallery_router
from .routers.pages import router as pages_router
from .routers.profile import router as profile_router
from .routers.tags import router as tags_router

STATIC_DIR = Path(__file__).resolve().parent / "static"

setup_logging()
logger = get_logger(__name__)

tags_metadata = [
    {
        "name": "gallery",
        "description": (
            "Browse, upload, edit and delete artworks.\n\n"
            "- Listing is public and paginated (`page`, `limit`).\n"
            "- Mutations require an admin session.\n"
            "- Images are stored as WebP with a derived thumbnail; URLs are short-lived presigned links."
        ),
    },
    {"name": "tags", "description": "Category, medium and size tags."},
    {"name": "auth", "description": "Sign-in through Google and session handling."},
    {"name": "profile", "description": "The signed-in user's profile and preferences."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "starting_application",
        bucket=settings.bucket_name,
        region=settings.aws_region,
        endpoint=settings.aws_endpoint_url,
        oauth_configured=settings.oauth_configured,
    )
    yield
    logger.info("shutting_down_application")


app = FastAPI(
    title="Art Gallery",
    description=(
        "How to Use:\n\n"
        "1) Browse: GET /api/gallery with optional `category`, `medium`, `size`, `page`, `limit`.\n"
        "2) Sign in: open /api/auth/signin; admins can then use /dashboard.\n"
        "3) Upload: POST /api/gallery (multipart) or POST /api/gallery/batch for several files.\n"
        "4) Edit: PUT /api/gallery/{id}; changing the title renames the stored files.\n"
        "5) Tags: GET /api/tags?type=category|medium|size, POST /api/tags, DELETE /api/tags/{id}."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie="gallery_session",
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=not settings.debug and settings.oauth_redirect_uri.startswith("https://"),
)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
app.include_router(gallery_router)
app.include_router(tags_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(pages_router)


@app.get("/health", tags=["system"], summary="Liveness probe")
def health():
    return {"status": "ok"}
