"""Thread, reply and thread follower endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id, get_pagination_params
from ..schemas.threads import (
    ReplyCreate,
    ReplyResponse,
    ReplyUpdate,
    ThreadCreate,
    ThreadFollowerResponse,
    ThreadResponse,
    ThreadUpdate,
)
from ..services.thread_manager import thread_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/threads",
    response_model=ThreadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_thread(
    channel_id: str,
    thread_data: ThreadCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Start a thread on a message. The creator follows it automatically."""
    return await thread_manager.create_thread(db, channel_id, current_user_id, thread_data)


@router.get("/channels/{channel_id}/threads", response_model=List[ThreadResponse])
async def list_threads(
    channel_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Threads ordered by latest reply."""
    return await thread_manager.list_threads(
        db, channel_id, current_user_id, limit=pagination["limit"], offset=pagination["offset"]
    )


@router.get("/channels/{channel_id}/threads/{thread_id}", response_model=ThreadResponse)
async def get_thread(
    channel_id: str,
    thread_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await thread_manager.get_thread(db, channel_id, thread_id, current_user_id)


@router.patch("/channels/{channel_id}/threads/{thread_id}", response_model=ThreadResponse)
async def update_thread(
    channel_id: str,
    thread_id: str,
    thread_data: ThreadUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await thread_manager.update_thread(
        db, channel_id, thread_id, current_user_id, thread_data
    )


@router.delete(
    "/channels/{channel_id}/threads/{thread_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_thread(
    channel_id: str,
    thread_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await thread_manager.delete_thread(db, channel_id, thread_id, current_user_id)


@router.post(
    "/channels/{channel_id}/threads/{thread_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reply(
    channel_id: str,
    thread_id: str,
    reply_data: ReplyCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Reply to a thread. Locked threads reject replies."""
    return await thread_manager.create_reply(
        db, channel_id, thread_id, current_user_id, reply_data
    )


@router.get(
    "/channels/{channel_id}/threads/{thread_id}/replies",
    response_model=List[ReplyResponse],
)
async def list_replies(
    channel_id: str,
    thread_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await thread_manager.list_replies(
        db,
        channel_id,
        thread_id,
        current_user_id,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )


@router.patch(
    "/channels/{channel_id}/threads/{thread_id}/replies/{reply_id}",
    response_model=ReplyResponse,
)
async def update_reply(
    channel_id: str,
    thread_id: str,
    reply_id: str,
    reply_data: ReplyUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await thread_manager.update_reply(
        db, channel_id, thread_id, reply_id, current_user_id, reply_data.content
    )


@router.delete(
    "/channels/{channel_id}/threads/{thread_id}/replies/{reply_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_reply(
    channel_id: str,
    thread_id: str,
    reply_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await thread_manager.delete_reply(db, channel_id, thread_id, reply_id, current_user_id)


@router.post(
    "/channels/{channel_id}/threads/{thread_id}/follow",
    response_model=ThreadFollowerResponse,
)
async def follow_thread(
    channel_id: str,
    thread_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await thread_manager.follow_thread(db, channel_id, thread_id, current_user_id)


@router.delete(
    "/channels/{channel_id}/threads/{thread_id}/follow",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def unfollow_thread(
    channel_id: str,
    thread_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await thread_manager.unfollow_thread(db, channel_id, thread_id, current_user_id)


@router.get(
    "/channels/{channel_id}/threads/{thread_id}/followers",
    response_model=List[ThreadFollowerResponse],
)
async def list_thread_followers(
    channel_id: str,
    thread_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await thread_manager.list_thread_followers(
        db, channel_id, thread_id, current_user_id
    )
