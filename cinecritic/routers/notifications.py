from typing import List
from fastapi import APIRouter, Depends, Query
from ..schemas import NotificationResponseModel
from ..OAuth2 import get_current_user
from ..notifications import list_notifications, mark_all_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponseModel])
async def get_notifications(
    unread: bool = False,
    limit: int = Query(50, ge=1, le=200),
    user=Depends(get_current_user),
):
    notifications = await list_notifications(user.id, unread_only=unread, limit=limit)
    return [NotificationResponseModel(**n.model_dump()) for n in notifications]


@router.post("/read")
async def read_notifications(user=Depends(get_current_user)):
    updated = await mark_all_read(user.id)
    return {"message": "Notifications marked as read", "updated": updated}
