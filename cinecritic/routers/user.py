from typing import List
from fastapi import APIRouter, status, Depends, HTTPException, Query
from ..schemas import (
    UserCreate, UserResponseModel, UserPublic, UserUpdateModel, PasswordChangeModel,
    UserCommentListResponse, Pagination, FollowRequest, FollowResponse, FollowStatus,
    MovieListAction, MovieListResponse,
)
from ..models import User
from ..utils import hash
from ..OAuth2 import get_current_user
from ..comments import list_user_comments
from .. import users as user_service



router = APIRouter(prefix="/users", tags=['users'])

@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponseModel)
async def create_user(user: UserCreate):
    email = user.email.lower()
    if await User.find_one(User.email == email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already created")
    if await User.find_one(User.username == user.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already taken")

    new_user = User(
        name=user.name,
        email=email,
        username=user.username,
        password=hash(user.password),
        avatar=user.avatar,
    )
    await new_user.insert()
    return UserResponseModel(**new_user.model_dump())


@router.get("/me", response_model=UserResponseModel)
async def get_me(user=Depends(get_current_user)):
    return UserResponseModel(**user.model_dump())


@router.put("/me", response_model=UserResponseModel)
async def update_me(payload: UserUpdateModel, user=Depends(get_current_user)):
    updated = await user_service.update_profile(user, payload)
    return UserResponseModel(**updated.model_dump())


@router.post("/me/password")
async def change_password(payload: PasswordChangeModel, user=Depends(get_current_user)):
    await user_service.change_password(user, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}


@router.post("/follow", response_model=FollowResponse)
async def follow(payload: FollowRequest, user=Depends(get_current_user)):
    """Toggle following another user."""
    now_following = await user_service.toggle_follow(user, payload.target_user_id)
    if now_following:
        return FollowResponse(message="User followed", action="followed")
    return FollowResponse(message="User unfollowed", action="unfollowed")


@router.delete("/me/followers/{follower_id}")
async def remove_follower(follower_id: str, user=Depends(get_current_user)):
    await user_service.remove_follower(user, follower_id)
    return {"message": "Follower removed"}


@router.get("/me/watchlist", response_model=List[str])
async def get_watchlist(user=Depends(get_current_user)):
    return user.watchlist


@router.post("/me/watchlist", response_model=MovieListResponse)
async def update_watchlist(payload: MovieListAction, user=Depends(get_current_user)):
    movies = await user_service.update_movie_list(user, "watchlist", payload.movie_id, payload.action)
    message = "Added to watchlist" if payload.action == "add" else "Removed from watchlist"
    return MovieListResponse(message=message, action=payload.action, movies=movies)


@router.get("/me/favorites", response_model=List[str])
async def get_favorites(user=Depends(get_current_user)):
    return user.favorites


@router.post("/me/favorites", response_model=MovieListResponse)
async def update_favorites(payload: MovieListAction, user=Depends(get_current_user)):
    movies = await user_service.update_movie_list(user, "favorites", payload.movie_id, payload.action)
    message = "Added to favorites" if payload.action == "add" else "Removed from favorites"
    return MovieListResponse(message=message, action=payload.action, movies=movies)


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(user_id: str):
    user = await user_service.get_user(user_id)
    return UserPublic(**user.model_dump())


@router.get("/{user_id}/followers", response_model=List[UserPublic])
async def get_followers(user_id: str):
    users = await user_service.list_connections(user_id, "followers")
    return [UserPublic(**u.model_dump()) for u in users]


@router.get("/{user_id}/following", response_model=List[UserPublic])
async def get_following(user_id: str):
    users = await user_service.list_connections(user_id, "following")
    return [UserPublic(**u.model_dump()) for u in users]


@router.get("/{user_id}/is-following", response_model=FollowStatus)
async def check_following(user_id: str, user=Depends(get_current_user)):
    """Whether the caller follows ``user_id``."""
    return FollowStatus(is_following=await user_service.is_following(user, user_id))


@router.get("/{user_id}/comments", response_model=UserCommentListResponse)
async def get_user_comments(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    comments, total = await list_user_comments(user_id, page=page, limit=limit)
    return UserCommentListResponse(comments=comments, pagination=Pagination.build(total, page, limit))
