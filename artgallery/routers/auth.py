import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from ..auth import oauth
from ..auth.deps import SESSION_KEY, optional_user
from ..aws import profiles
from ..core.logging import get_logger
from ..core.models import MessageResponse, SessionUser

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = get_logger(__name__)

STATE_KEY = "oauth_state"
VERIFIER_KEY = "oauth_verifier"
NEXT_KEY = "oauth_next"


def _safe_next(target: Optional[str]) -> str:
    # only same-site relative paths
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return "/"


@router.get("/signin", summary="Start sign-in with the identity provider")
def signin(request: Request, next: Optional[str] = Query(None)):
    state = secrets.token_urlsafe(32)
    try:
        url, verifier = oauth.authorization_url(state)
    except oauth.OAuthError as e:
        logger.error("oauth_signin_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    request.session[STATE_KEY] = state
    request.session[NEXT_KEY] = _safe_next(next)
    if verifier:
        request.session[VERIFIER_KEY] = verifier
    logger.info("oauth_initiated", state=state[:8])
    return RedirectResponse(url, status_code=302)


@router.get("/callback/google", summary="OAuth callback")
def callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
):
    expected = request.session.pop(STATE_KEY, None)
    verifier = request.session.pop(VERIFIER_KEY, None)
    target = request.session.pop(NEXT_KEY, "/")
    if error:
        logger.warning("oauth_denied", error=error)
        raise HTTPException(status_code=400, detail="oauth_denied")
    if not code or not state or not expected or not secrets.compare_digest(state, expected):
        raise HTTPException(status_code=400, detail="invalid_oauth_state")

    try:
        info = oauth.exchange_code(code, verifier)
    except oauth.OAuthError as e:
        logger.error("oauth_callback_failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    try:
        user = profiles.upsert_user(
            str(info["id"]), info["email"], name=info.get("name"), image=info.get("picture")
        )
        profiles.ensure_profile(user["user_id"], user["email"])
        session = profiles.create_session(user["user_id"])
    except Exception as e:
        logger.exception("session_create_failed", error=str(e))
        raise HTTPException(status_code=500, detail="signin_failed")

    request.session[SESSION_KEY] = session["session_token"]
    logger.info("signed_in", user_id=user["user_id"])
    return RedirectResponse(_safe_next(target), status_code=302)


@router.get("/session", summary="Current session")
def get_session(user: Optional[SessionUser] = Depends(optional_user)):
    if user is None:
        return {}
    return {"user": user.model_dump()}


@router.post("/signout", response_model=MessageResponse, summary="End the current session")
def signout(request: Request):
    token = request.session.pop(SESSION_KEY, None)
    try:
        profiles.delete_session(token)
    except Exception as e:
        logger.error("session_delete_failed", error=str(e))
    request.session.clear()
    return {"message": "signed_out"}
