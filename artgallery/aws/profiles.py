"""Profiles, identity-provider users and login sessions."""
import re
import secrets
import time
from typing import Any, Dict, Optional

from boto3.dynamodb.conditions import Key

from ..core.config import settings
from ..core.logging import get_logger
from .clients import table as table_factory

logger = get_logger(__name__)

ROLES = ("user", "admin")
THEMES = ("light", "dark")
DEFAULT_AVATAR = "/default-avatar.png"


def _profiles():
    return table_factory(settings.profiles_table)


def _users():
    return table_factory(settings.users_table)


def _sessions():
    return table_factory(settings.sessions_table)


# Identity users

def upsert_user(user_id: str, email: str, name: Optional[str] = None, image: Optional[str] = None) -> Dict[str, Any]:
    """Record (or refresh) the identity-provider account behind a sign-in."""
    if not user_id or not email:
        raise ValueError("missing_required_fields")
    item: Dict[str, Any] = {"user_id": user_id, "email": email.lower(), "updated_at": int(time.time())}
    if name:
        item["name"] = name
    if image:
        item["image"] = image
    _users().put_item(Item=item)
    return item


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    return _users().get_item(Key={"user_id": user_id}).get("Item")


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    resp = _users().query(IndexName="by_email", KeyConditionExpression=Key("email").eq(email.lower()))
    items = resp.get("Items", [])
    return items[0] if items else None


# Profiles

def get_profile(auth_id: str) -> Optional[Dict[str, Any]]:
    return _profiles().get_item(Key={"auth_id": auth_id}).get("Item")


def _username_taken(username: str) -> bool:
    resp = _profiles().query(IndexName="by_username", KeyConditionExpression=Key("username").eq(username))
    return bool(resp.get("Items"))


def _unique_username(email: str) -> str:
    base = re.sub(r"[^a-z0-9._-]", "", email.split("@")[0].lower()) or "user"
    candidate = base
    while _username_taken(candidate):
        candidate = f"{base}-{secrets.token_hex(2)}"
    return candidate


def ensure_profile(auth_id: str, email: str, role: str = "user") -> Dict[str, Any]:
    """Return the profile for ``auth_id``, creating it on first use."""
    existing = get_profile(auth_id)
    if existing:
        return existing
    if role not in ROLES:
        raise ValueError("invalid_role")
    now = int(time.time())
    item = {
        "auth_id": auth_id,
        "username": _unique_username(email),
        "role": role,
        "avatar": DEFAULT_AVATAR,
        "preferences": {"theme": "light", "notifications": True},
        "created_at": now,
        "updated_at": now,
    }
    _profiles().put_item(Item=item)
    logger.info("profile_created", auth_id=auth_id, username=item["username"], role=role)
    return item


def set_role(auth_id: str, role: str) -> Dict[str, Any]:
    if role not in ROLES:
        raise ValueError("invalid_role")
    if not get_profile(auth_id):
        raise KeyError("not_found")
    resp = _profiles().update_item(
        Key={"auth_id": auth_id},
        UpdateExpression="SET #r = :r, updated_at = :u",
        ExpressionAttributeNames={"#r": "role"},
        ExpressionAttributeValues={":r": role, ":u": int(time.time())},
        ReturnValues="ALL_NEW",
    )
    return resp["Attributes"]


def update_profile(
    auth_id: str,
    *,
    bio: Optional[str] = None,
    avatar: Optional[str] = None,
    theme: Optional[str] = None,
    notifications: Optional[bool] = None,
) -> Dict[str, Any]:
    profile = get_profile(auth_id)
    if not profile:
        raise KeyError("not_found")
    if theme is not None and theme not in THEMES:
        raise ValueError("invalid_theme")

    preferences = dict(profile.get("preferences") or {"theme": "light", "notifications": True})
    if theme is not None:
        preferences["theme"] = theme
    if notifications is not None:
        preferences["notifications"] = bool(notifications)

    profile["preferences"] = preferences
    if bio is not None:
        profile["bio"] = bio
    if avatar is not None:
        profile["avatar"] = avatar
    profile["updated_at"] = int(time.time())
    _profiles().put_item(Item=profile)
    return profile


def role_for(auth_id: str) -> str:
    """Role of a user; "user" when there is no profile or the lookup fails."""
    try:
        profile = get_profile(auth_id)
    except Exception as e:
        logger.error("role_lookup_failed", auth_id=auth_id, error=str(e))
        return "user"
    return (profile or {}).get("role") or "user"


# Sessions

def create_session(user_id: str) -> Dict[str, Any]:
    item = {
        "session_token": secrets.token_urlsafe(32),
        "user_id": user_id,
        "expires": int(time.time()) + int(settings.session_max_age),
    }
    _sessions().put_item(Item=item)
    return item


def get_session_user(session_token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Resolve a session token to its user, dropping expired sessions."""
    if not session_token:
        return None
    session = _sessions().get_item(Key={"session_token": session_token}).get("Item")
    if not session:
        return None
    if int(session["expires"]) < int(time.time()):
        delete_session(session_token)
        return None
    return get_user(session["user_id"])


def delete_session(session_token: Optional[str]) -> None:
    if session_token:
        _sessions().delete_item(Key={"session_token": session_token})
