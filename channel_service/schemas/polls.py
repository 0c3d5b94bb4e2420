"""Pydantic schemas for polls."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PollCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=500)
    options: List[str] = Field(..., min_length=2, max_length=10)
    is_anonymous: bool = False
    multi_choice: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: List[str]) -> List[str]:
        cleaned = [option.strip() for option in v]
        if any(not option for option in cleaned):
            raise ValueError("Poll options cannot be empty")
        if any(len(option) > 200 for option in cleaned):
            raise ValueError("Poll options are limited to 200 characters")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Poll options must be unique")
        return cleaned


class PollVoteRequest(BaseModel):
    option_ids: List[str] = Field(..., min_length=1)


class PollOptionResponse(BaseModel):
    id: str
    text: str
    position: int

    class Config:
        from_attributes = True


class PollResponse(BaseModel):
    id: str
    channel_id: str
    created_by: str
    question: str
    is_anonymous: bool
    multi_choice: bool
    is_closed: bool
    closed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    options: List[PollOptionResponse] = []


class PollOptionResult(BaseModel):
    option_id: str
    text: str
    position: int
    votes: int
    voters: Optional[List[str]] = None


class PollResultsResponse(BaseModel):
    poll_id: str
    question: str
    is_closed: bool
    total_votes: int
    total_voters: int
    options: List[PollOptionResult]
