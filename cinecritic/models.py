from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field, EmailStr
from datetime import datetime, timezone
from typing import List, Literal, Optional
from pymongo import ASCENDING, DESCENDING, IndexModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserStats(BaseModel):
    reviews_count: int = 0


class User(Document):
    name: str
    email: EmailStr
    username: str
    password: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    role: Literal["admin", "critic", "viewer"] = "viewer"
    stats: UserStats = Field(default_factory=UserStats)
    following: List[PydanticObjectId] = Field(default_factory=list)
    followers: List[PydanticObjectId] = Field(default_factory=list)
    favorites: List[str] = Field(default_factory=list)  # IMDb ids
    watchlist: List[str] = Field(default_factory=list)  # IMDb ids
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("email", ASCENDING)], unique=True),
            IndexModel([("username", ASCENDING)], unique=True),
        ]


class CommentAuthor(BaseModel):
    """Snapshot of the author taken when the comment is written."""
    id: PydanticObjectId
    name: str
    username: str
    avatar: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "CommentAuthor":
        return cls(id=user.id, name=user.name, username=user.username, avatar=user.avatar)


class CommentBase(BaseModel):
    id: PydanticObjectId = Field(default_factory=PydanticObjectId)
    user: CommentAuthor
    content: str
    mentions: List[PydanticObjectId] = Field(default_factory=list)
    parent_id: Optional[PydanticObjectId] = None
    likes: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None


class Reply(CommentBase):
    """A reply to a top-level comment. Replies do not have replies."""
    parent_id: PydanticObjectId


class Comment(CommentBase):
    """A top-level comment on a review."""
    parent_id: None = None
    replies: List[Reply] = Field(default_factory=list)


class Review(Document):
    user: PydanticObjectId
    movie: Indexed(str)
    movie_title: str
    movie_poster: Optional[str] = None
    rating: float = Field(..., ge=1, le=5)
    content: str
    likes: List[PydanticObjectId] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    comment_count: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    comments_updated_at: Optional[datetime] = None

    class Settings:
        name = "reviews"
        use_revision = True


class LocalRating(BaseModel):
    average: float = 0.0
    count: int = 0


class Movie(Document):
    movie_id: Indexed(str, unique=True)  # IMDb id
    title: Optional[str] = None
    poster: Optional[str] = None
    local_rating: LocalRating = Field(default_factory=LocalRating)
    views: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "movies"


class Notification(Document):
    recipient_id: PydanticObjectId
    sender_id: PydanticObjectId
    type: Literal["mention"] = "mention"
    content: str
    review_id: PydanticObjectId
    comment_id: PydanticObjectId
    read: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "notifications"
        indexes = [IndexModel([("recipient_id", ASCENDING), ("created_at", DESCENDING)])]


DOCUMENT_MODELS = [User, Review, Movie, Notification]
