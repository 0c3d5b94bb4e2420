"""Pydantic schemas for tabs, sections, templates and channel links."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..database import ChannelType, LinkType, TabType
from .integrations import SettingsUpdate


# ============================================================================
# Tabs
# ============================================================================


class TabCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    tab_type: TabType
    config: Optional[Dict[str, Any]] = None


class TabUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    config: Optional[Dict[str, Any]] = None


class TabReorderRequest(BaseModel):
    tab_ids: List[str] = Field(..., min_length=1)


class TabResponse(BaseModel):
    id: str
    channel_id: str
    name: str
    tab_type: TabType
    config: Optional[Dict[str, Any]] = None
    position: int
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Sections
# ============================================================================


class SectionCreate(BaseModel):
    workspace_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    channel_ids: List[str] = []


class SectionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_collapsed: Optional[bool] = None
    channel_ids: Optional[List[str]] = None


class SectionResponse(BaseModel):
    id: str
    workspace_id: str
    user_id: str
    name: str
    position: int
    is_collapsed: bool
    channel_ids: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Templates
# ============================================================================


class TemplateCreate(BaseModel):
    """Create a template from explicit values or from an existing channel."""

    workspace_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    type: ChannelType = ChannelType.PUBLIC
    topic: Optional[str] = Field(None, max_length=500)
    settings: Optional[SettingsUpdate] = None
    source_channel_id: Optional[str] = None


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    type: Optional[ChannelType] = None
    topic: Optional[str] = Field(None, max_length=500)
    settings: Optional[SettingsUpdate] = None


class ApplyTemplateRequest(BaseModel):
    channel_name: str = Field(..., min_length=1, max_length=100)


class TemplateResponse(BaseModel):
    id: str
    workspace_id: str
    name: str
    description: Optional[str] = None
    type: ChannelType
    topic: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    created_by: str
    use_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Channel links
# ============================================================================


class LinkCreate(BaseModel):
    target_channel_id: str = Field(..., min_length=1)
    link_type: LinkType = LinkType.MIRROR


class LinkResponse(BaseModel):
    id: str
    source_channel_id: str
    target_channel_id: str
    created_by: str
    link_type: LinkType
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
