"""Profiles, the follow graph and per-user movie lists.

A follow is stored on both sides: the follower's ``following`` and the
followee's ``followers``. Both sides are written with set operators, so
repeating a follow or an unfollow leaves the lists unchanged.
"""

import logging
from typing import List, Literal

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import AddToSet, In, Pull, Set

from .exceptions import InvalidInput, NotFound
from .models import User, utc_now
from .schemas import UserUpdateModel
from .utils import hash, parse_object_id, verify

logger = logging.getLogger(__name__)

MOVIE_LISTS = ("watchlist", "favorites")


async def get_user(user_id, label: str = "User") -> User:
    user = await User.get(parse_object_id(user_id, "user id"))
    if not user:
        raise NotFound(f"{label} not found")
    return user


async def _link(follower_id: PydanticObjectId, followee_id: PydanticObjectId) -> None:
    now = utc_now()
    await User.find_one(User.id == follower_id).update(
        AddToSet({User.following: followee_id}), Set({User.updated_at: now})
    )
    await User.find_one(User.id == followee_id).update(
        AddToSet({User.followers: follower_id}), Set({User.updated_at: now})
    )


async def _unlink(follower_id: PydanticObjectId, followee_id: PydanticObjectId) -> None:
    now = utc_now()
    await User.find_one(User.id == follower_id).update(
        Pull({User.following: followee_id}), Set({User.updated_at: now})
    )
    await User.find_one(User.id == followee_id).update(
        Pull({User.followers: follower_id}), Set({User.updated_at: now})
    )


async def toggle_follow(current: User, target_user_id) -> bool:
    """Follow the target, or stop following it if already followed.

    Returns True when ``current`` follows the target afterwards.
    """
    if not target_user_id:
        raise InvalidInput("Target user ID is required")
    target_id = parse_object_id(target_user_id, "target user id")
    if target_id == current.id:
        raise InvalidInput("You cannot follow yourself")
    target = await get_user(target_id, "Target user")

    if target.id in current.following:
        await _unlink(current.id, target.id)
        logger.info("User %s unfollowed %s", current.id, target.id)
        return False

    await _link(current.id, target.id)
    logger.info("User %s followed %s", current.id, target.id)
    return True


async def is_following(current: User, target_user_id) -> bool:
    target_id = parse_object_id(target_user_id, "user id")
    if target_id == current.id:
        raise InvalidInput("Cannot check following status with yourself")
    target = await get_user(target_id, "Target user")
    return target.id in current.following


async def remove_follower(current: User, follower_id) -> None:
    """Make ``follower_id`` stop following ``current``."""
    follower = await get_user(follower_id, "Follower")
    if follower.id not in current.followers:
        raise InvalidInput("This user is not following you")
    await _unlink(follower.id, current.id)
    logger.info("User %s removed follower %s", current.id, follower.id)


async def list_connections(user_id, kind: Literal["followers", "following"]) -> List[User]:
    user = await get_user(user_id)
    ids = getattr(user, kind)
    if not ids:
        return []
    return await User.find(In(User.id, ids)).to_list()


async def update_movie_list(user: User, list_name: str, movie_id, action) -> List[str]:
    """Add a movie to, or remove it from, the user's watchlist or favorites."""
    if list_name not in MOVIE_LISTS:
        raise ValueError(f"Unknown movie list {list_name!r}")
    if not movie_id or not action:
        raise InvalidInput("Missing required fields")
    if action not in ("add", "remove"):
        raise InvalidInput("Invalid action")

    operator = AddToSet({list_name: movie_id}) if action == "add" else Pull({list_name: movie_id})
    updated = await User.find_one(User.id == user.id).update(
        operator, Set({User.updated_at: utc_now()}), response_type=UpdateResponse.NEW_DOCUMENT
    )
    if not updated:
        raise NotFound("User not found")
    return getattr(updated, list_name)


async def update_profile(user: User, payload: UserUpdateModel) -> User:
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise InvalidInput("No valid fields to update")

    username = updates.get("username")
    if username and username != user.username:
        taken = await User.find_one(User.username == username, User.id != user.id)
        if taken:
            raise InvalidInput("Username already taken")

    updates["updated_at"] = utc_now()
    updated = await User.find_one(User.id == user.id).update(
        Set(updates), response_type=UpdateResponse.NEW_DOCUMENT
    )
    if not updated:
        raise NotFound("User not found")
    return updated


async def change_password(user: User, current_password: str, new_password: str) -> None:
    if not verify(current_password, user.password):
        raise InvalidInput("Current password is incorrect")
    await User.find_one(User.id == user.id).update(
        Set({User.password: hash(new_password), User.updated_at: utc_now()})
    )
    logger.info("User %s changed password", user.id)
