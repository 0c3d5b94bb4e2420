"""Poll endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id
from ..schemas.polls import PollCreate, PollResponse, PollResultsResponse, PollVoteRequest
from ..services.poll_manager import poll_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/polls",
    response_model=PollResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_poll(
    channel_id: str,
    poll_data: PollCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await poll_manager.create_poll(db, channel_id, current_user_id, poll_data)


@router.get("/channels/{channel_id}/polls", response_model=List[PollResponse])
async def list_polls(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await poll_manager.list_polls(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/polls/{poll_id}", response_model=PollResponse)
async def get_poll(
    channel_id: str,
    poll_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await poll_manager.get_poll(db, channel_id, poll_id, current_user_id)


@router.post(
    "/channels/{channel_id}/polls/{poll_id}/vote",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def vote(
    channel_id: str,
    poll_id: str,
    vote_data: PollVoteRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cast the caller's single vote on a poll."""
    await poll_manager.vote(db, channel_id, poll_id, current_user_id, vote_data.option_ids)


@router.post("/channels/{channel_id}/polls/{poll_id}/close", response_model=PollResponse)
async def close_poll(
    channel_id: str,
    poll_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Close a poll. Poll creator, owners and admins."""
    return await poll_manager.close_poll(db, channel_id, poll_id, current_user_id)


@router.get("/channels/{channel_id}/polls/{poll_id}/results", response_model=PollResultsResponse)
async def get_poll_results(
    channel_id: str,
    poll_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await poll_manager.get_poll_results(db, channel_id, poll_id, current_user_id)
