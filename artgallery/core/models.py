from typing import List, Literal, Optional
from pydantic import BaseModel, Field

TagType = Literal["category", "medium", "size"]


class ArtworkOut(BaseModel):
    id: str
    title: str
    description: str = ""
    category: str
    medium: str
    size: str
    dimensions: str
    alt: str = ""
    image_url: str = ""
    thumbnail_url: str = ""
    tags: List[str] = []
    created_at: int = 0


class ArtworkListResponse(BaseModel):
    artworks: List[ArtworkOut]
    total: int
    total_pages: int
    page: int
    limit: int


class ArtworkUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    alt: Optional[str] = None
    category: Optional[str] = None
    categories: Optional[List[str]] = None
    medium: Optional[str] = None
    size: Optional[str] = None


class BatchItemResult(BaseModel):
    filename: Optional[str] = None
    id: Optional[str] = None
    status: Literal["ok", "error"]
    error: Optional[str] = None


class BatchResponse(BaseModel):
    total: int
    succeeded: int
    failed: int
    results: List[BatchItemResult]


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class TagIn(BaseModel):
    # validated by the tag store so bad input answers 400
    label: Optional[str] = None
    type: Optional[str] = None


class TagOut(BaseModel):
    id: str
    label: str
    type: TagType


class MessageResponse(BaseModel):
    message: str


class SessionUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    role: Literal["user", "admin"] = "user"


class Preferences(BaseModel):
    theme: Literal["light", "dark"] = "light"
    notifications: bool = True


class ProfileOut(BaseModel):
    username: str
    role: Literal["user", "admin"]
    bio: Optional[str] = None
    avatar: Optional[str] = None
    preferences: Preferences = Preferences()


class ProfileUpdate(BaseModel):
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = Field(None, max_length=255)
    theme: Optional[Literal["light", "dark"]] = None
    notifications: Optional[bool] = None
