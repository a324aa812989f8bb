from typing import List, Optional, Union
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from beanie import PydanticObjectId

from .models import Comment, CommentBase, LocalRating, Reply, Review, UserStats


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    username: str = Field(..., pattern=r"^\w+$", min_length=2, max_length=30)
    password: str = Field(..., min_length=6)
    avatar: Optional[str] = None

class UserPublic(BaseModel):
    id: PydanticObjectId
    name: str
    username: str
    avatar: Optional[str] = None

class UserResponseModel(UserPublic):
    email: EmailStr
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    role: str
    stats: UserStats
    following: List[PydanticObjectId] = []
    followers: List[PydanticObjectId] = []
    favorites: List[str] = []
    watchlist: List[str] = []
    created_at: datetime

class UserUpdateModel(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    username: Optional[str] = Field(None, pattern=r"^\w+$", min_length=2, max_length=30)
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    avatar: Optional[str] = None

class PasswordChangeModel(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, description="New password must be at least 8 characters long")


class FollowRequest(BaseModel):
    target_user_id: Optional[str] = None

class FollowResponse(BaseModel):
    message: str
    action: str

class FollowStatus(BaseModel):
    is_following: bool


class MovieListAction(BaseModel):
    movie_id: Optional[str] = None
    action: Optional[str] = None

class MovieListResponse(BaseModel):
    message: str
    action: str
    movies: List[str]


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenResponseData(BaseModel):
    id: PydanticObjectId
    email: EmailStr


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, pages=-(-total // limit) if limit else 0)


class ReviewCreateModel(BaseModel):
    movie: str = Field(..., min_length=1, description="IMDb id of the reviewed movie")
    movie_title: str = Field(..., min_length=1)
    movie_poster: Optional[str] = None
    rating: float = Field(..., ge=1, le=5, description="Rating must be between 1 and 5")
    content: str = Field(..., min_length=1)

class ReviewEditModel(BaseModel):
    rating: Optional[float] = Field(None, ge=1, le=5, description="Rating must be between 1 and 5")
    content: Optional[str] = None

class ReviewResponseModel(BaseModel):
    id: PydanticObjectId
    user: PydanticObjectId
    author: Optional[UserPublic] = None
    movie: str
    movie_title: str
    movie_poster: Optional[str] = None
    rating: float
    content: str
    likes: List[PydanticObjectId]
    comments: List[Comment]
    comment_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_review(cls, review: Review, author=None) -> "ReviewResponseModel":
        data = review.model_dump(exclude={"revision_id", "comments_updated_at"})
        if author is not None:
            data["author"] = UserPublic(**author.model_dump())
        return cls(**data)

class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponseModel]
    pagination: Pagination


class LikeAction(BaseModel):
    action: Optional[str] = None

class LikeResponse(BaseModel):
    message: str
    likes: List[PydanticObjectId]


class CommentCreateModel(BaseModel):
    content: Optional[str] = None
    parent_comment_id: Optional[str] = None

class CommentEditModel(BaseModel):
    content: Optional[str] = None

class CommentResponse(BaseModel):
    message: str
    comment: Union[Reply, Comment]

class CommentPagination(BaseModel):
    total: int
    limit: int
    skip: int

class CommentListResponse(BaseModel):
    comments: List[Comment]
    pagination: CommentPagination

class UserCommentEntry(BaseModel):
    id: PydanticObjectId
    review_id: PydanticObjectId
    movie_title: str
    content: str
    parent_id: Optional[PydanticObjectId] = None
    is_reply: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, review: Review, comment: CommentBase) -> "UserCommentEntry":
        return cls(
            id=comment.id,
            review_id=review.id,
            movie_title=review.movie_title,
            content=comment.content,
            parent_id=comment.parent_id,
            is_reply=comment.is_reply,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )

class UserCommentListResponse(BaseModel):
    comments: List[UserCommentEntry]
    pagination: Pagination


class MovieResponseModel(BaseModel):
    movie_id: str
    title: Optional[str] = None
    poster: Optional[str] = None
    local_rating: LocalRating
    views: int


class NotificationResponseModel(BaseModel):
    id: PydanticObjectId
    sender_id: PydanticObjectId
    type: str
    content: str
    review_id: PydanticObjectId
    comment_id: PydanticObjectId
    read: bool
    created_at: datetime
