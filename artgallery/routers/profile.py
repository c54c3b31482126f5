from fastapi import APIRouter, Depends, HTTPException

from ..auth.deps import current_user
from ..aws import profiles
from ..core.logging import get_logger
from ..core.models import ProfileOut, ProfileUpdate, SessionUser

router = APIRouter(prefix="/api/profile", tags=["profile"])
logger = get_logger(__name__)


@router.get("", response_model=ProfileOut, summary="Own profile")
def get_profile(user: SessionUser = Depends(current_user)):
    try:
        profile = profiles.ensure_profile(user.id, user.email)
    except Exception as e:
        logger.exception("get_profile_failed", user_id=user.id, error=str(e))
        raise HTTPException(status_code=500, detail="fetch_failed")
    return profile


@router.patch("", response_model=ProfileOut, summary="Update own profile and preferences")
def update_profile(payload: ProfileUpdate, user: SessionUser = Depends(current_user)):
    try:
        profiles.ensure_profile(user.id, user.email)
        return profiles.update_profile(user.id, **payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("update_profile_failed", user_id=user.id, error=str(e))
        raise HTTPException(status_code=500, detail="update_failed")
