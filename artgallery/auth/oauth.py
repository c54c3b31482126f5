"""Google OAuth 2.0 authorization-code flow."""
from typing import Any, Dict, Optional, Tuple

from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from ..core.config import settings

SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


class OAuthError(Exception):
    """Misconfiguration or a failed exchange with the identity provider."""


def _flow(state: Optional[str] = None, code_verifier: Optional[str] = None) -> Flow:
    if not settings.oauth_configured:
        raise OAuthError("oauth_not_configured")
    return Flow.from_client_config(
        {
            "web": {
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        },
        scopes=SCOPES,
        redirect_uri=settings.oauth_redirect_uri,
        state=state,
        code_verifier=code_verifier,
    )


def authorization_url(state: str) -> Tuple[str, Optional[str]]:
    """Provider sign-in URL plus the PKCE verifier to keep for the callback."""
    flow = _flow(state)
    url, _ = flow.authorization_url(
        include_granted_scopes="true",
        prompt="select_account",
        state=state,
    )
    return url, flow.code_verifier


def exchange_code(code: str, code_verifier: Optional[str] = None) -> Dict[str, Any]:
    """Trade an authorization code for the signed-in user's profile.

    Returns the provider's userinfo (``id``, ``email``, ``name``, ``picture``).
    """
    flow = _flow(code_verifier=code_verifier)
    try:
        flow.fetch_token(code=code)
        service = build("oauth2", "v2", credentials=flow.credentials, cache_discovery=False)
        info = service.userinfo().get().execute()
    except Exception as e:
        raise OAuthError("oauth_exchange_failed") from e
    if not info.get("id") or not info.get("email"):
        raise OAuthError("oauth_profile_incomplete")
    return info
