"""Tabs, sidebar sections, templates and channel link endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id
from ..schemas.channels import ChannelResponse
from ..schemas.organization import (
    ApplyTemplateRequest,
    LinkCreate,
    LinkResponse,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
    TabCreate,
    TabReorderRequest,
    TabResponse,
    TabUpdate,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from ..services.organization_manager import organization_manager

logger = logging.getLogger(__name__)

router = APIRouter()


# Tabs


@router.post(
    "/channels/{channel_id}/tabs",
    response_model=TabResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_tab(
    channel_id: str,
    tab_data: TabCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.add_tab(db, channel_id, current_user_id, tab_data)


@router.get("/channels/{channel_id}/tabs", response_model=List[TabResponse])
async def list_tabs(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.list_tabs(db, channel_id, current_user_id)


@router.put("/channels/{channel_id}/tabs/order", response_model=List[TabResponse])
async def reorder_tabs(
    channel_id: str,
    order_data: TabReorderRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Rewrite tab positions to follow the given id order."""
    return await organization_manager.reorder_tabs(
        db, channel_id, current_user_id, order_data.tab_ids
    )


@router.patch("/channels/{channel_id}/tabs/{tab_id}", response_model=TabResponse)
async def update_tab(
    channel_id: str,
    tab_id: str,
    tab_data: TabUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.update_tab(db, channel_id, tab_id, current_user_id, tab_data)


@router.delete("/channels/{channel_id}/tabs/{tab_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_tab(
    channel_id: str,
    tab_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await organization_manager.remove_tab(db, channel_id, tab_id, current_user_id)


# Sections


@router.post("/sections", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
async def create_section(
    section_data: SectionCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a personal sidebar section."""
    return await organization_manager.create_section(db, current_user_id, section_data)


@router.get("/sections", response_model=List[SectionResponse])
async def list_sections(
    workspace_id: str = Query(...),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.list_sections(db, workspace_id, current_user_id)


@router.patch("/sections/{section_id}", response_model=SectionResponse)
async def update_section(
    section_id: str,
    section_data: SectionUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.update_section(db, section_id, current_user_id, section_data)


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_section(
    section_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await organization_manager.delete_section(db, section_id, current_user_id)


# Templates


@router.post("/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: TemplateCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.create_template(db, current_user_id, template_data)


@router.get("/templates", response_model=List[TemplateResponse])
async def list_templates(
    workspace_id: str = Query(...),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Workspace templates, most used first."""
    return await organization_manager.list_templates(db, workspace_id)


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.get_template(db, template_id)


@router.patch("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    template_data: TemplateUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.update_template(
        db, template_id, current_user_id, template_data
    )


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await organization_manager.delete_template(db, template_id, current_user_id)


@router.post(
    "/templates/{template_id}/apply",
    response_model=ChannelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_template(
    template_id: str,
    apply_data: ApplyTemplateRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a channel from a template."""
    return await organization_manager.apply_template(
        db, template_id, current_user_id, apply_data.channel_name
    )


# Channel links


@router.post(
    "/channels/{channel_id}/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_link(
    channel_id: str,
    link_data: LinkCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.create_link(db, channel_id, current_user_id, link_data)


@router.get("/channels/{channel_id}/links", response_model=List[LinkResponse])
async def list_links(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.list_links(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/links/{link_id}", response_model=LinkResponse)
async def get_link(
    channel_id: str,
    link_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await organization_manager.get_link(db, channel_id, link_id, current_user_id)


@router.delete("/channels/{channel_id}/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    channel_id: str,
    link_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await organization_manager.delete_link(db, channel_id, link_id, current_user_id)
