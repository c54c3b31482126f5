"""Request dependencies resolving the signed-in user from the session cookie."""
from typing import Optional

from fastapi import Depends, HTTPException, Request

from ..aws import profiles
from ..core.models import SessionUser

SESSION_KEY = "session_token"


def optional_user(request: Request) -> Optional[SessionUser]:
    user = profiles.get_session_user(request.session.get(SESSION_KEY))
    if not user:
        return None
    return SessionUser(
        id=user["user_id"],
        email=user["email"],
        name=user.get("name"),
        image=user.get("image"),
        role=profiles.role_for(user["user_id"]),
    )


def current_user(user: Optional[SessionUser] = Depends(optional_user)) -> SessionUser:
    if user is None:
        raise HTTPException(status_code=401, detail="unauthorized")
    return user


def require_admin(user: SessionUser = Depends(current_user)) -> SessionUser:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="admin_required")
    return user
