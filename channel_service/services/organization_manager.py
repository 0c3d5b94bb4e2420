"""Organization manager - tabs, sidebar sections, templates and channel links."""

import logging
from typing import List, Optional

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import (
    Channel,
    ChannelLink,
    ChannelRole,
    ChannelSection,
    ChannelSetting,
    ChannelTab,
    ChannelTemplate,
    SETTINGS_DEFAULTS,
)
from ..schemas.channels import ChannelCreate
from ..schemas.organization import (
    LinkCreate,
    SectionCreate,
    SectionUpdate,
    TabCreate,
    TabUpdate,
    TemplateCreate,
    TemplateUpdate,
)
from . import authority
from .channel_manager import channel_manager

logger = logging.getLogger(__name__)


def _settings_blob(data) -> Optional[dict]:
    if data is None:
        return None
    return data.model_dump(exclude_none=True, mode="json")


class OrganizationManager:
    """Manages how channels are arranged and reused."""

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    async def _get_tab(self, db: AsyncSession, channel_id: str, tab_id: str) -> ChannelTab:
        result = await db.execute(
            select(ChannelTab).where(ChannelTab.id == tab_id, ChannelTab.channel_id == channel_id)
        )
        tab = result.scalar_one_or_none()
        if not tab:
            raise errors.NotFoundError("tab", tab_id)
        return tab

    def _require_creator_or_admin(self, role: ChannelRole, user_id: str, creator_id: str):
        if creator_id == user_id:
            return
        if not authority.is_governor(role):
            raise errors.NotAuthorizedError("Only the creator or a channel admin can do this")

    async def _tabs_in_order(self, db: AsyncSession, channel_id: str) -> List[ChannelTab]:
        result = await db.execute(
            select(ChannelTab)
            .where(ChannelTab.channel_id == channel_id)
            .order_by(ChannelTab.position, ChannelTab.created_at)
        )
        return list(result.scalars().all())

    async def add_tab(self, db: AsyncSession, channel_id: str, user_id: str, data: TabCreate) -> ChannelTab:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(func.max(ChannelTab.position)).where(ChannelTab.channel_id == channel_id)
        )
        max_position = result.scalar()

        tab = ChannelTab(
            channel_id=channel_id,
            name=data.name,
            tab_type=data.tab_type.value,
            config=data.config,
            position=(max_position or 0) + 1,
            created_by=user_id,
        )
        db.add(tab)
        await db.commit()
        await db.refresh(tab)
        return tab

    async def list_tabs(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelTab]:
        await authority.require_member(db, channel_id, user_id)
        return await self._tabs_in_order(db, channel_id)

    async def update_tab(
        self, db: AsyncSession, channel_id: str, tab_id: str, user_id: str, data: TabUpdate
    ) -> ChannelTab:
        role = await authority.require_member(db, channel_id, user_id)
        tab = await self._get_tab(db, channel_id, tab_id)
        self._require_creator_or_admin(role, user_id, tab.created_by)

        if data.name is not None:
            tab.name = data.name
        if data.config is not None:
            tab.config = data.config

        await db.commit()
        await db.refresh(tab)
        return tab

    async def remove_tab(self, db: AsyncSession, channel_id: str, tab_id: str, user_id: str):
        role = await authority.require_member(db, channel_id, user_id)
        tab = await self._get_tab(db, channel_id, tab_id)
        self._require_creator_or_admin(role, user_id, tab.created_by)

        await db.delete(tab)
        await db.commit()

    async def reorder_tabs(
        self, db: AsyncSession, channel_id: str, user_id: str, tab_ids: List[str]
    ) -> List[ChannelTab]:
        """Assign positions 1..n in the order given.

        Tabs left out of ``tab_ids`` keep their relative order after the
        listed ones, so positions stay dense and start at 1 like ``add_tab``.
        """
        await authority.require_admin(db, channel_id, user_id)

        current = await self._tabs_in_order(db, channel_id)
        tabs = {tab.id: tab for tab in current}
        ordered = list(dict.fromkeys(tab_ids))
        unknown = [tab_id for tab_id in ordered if tab_id not in tabs]
        if unknown:
            raise errors.InvalidRequestError(
                "invalid_tab_order", f"Tab {unknown[0]} does not belong to this channel"
            )

        listed = set(ordered)
        ordered.extend(tab.id for tab in current if tab.id not in listed)
        for position, tab_id in enumerate(ordered, start=1):
            tabs[tab_id].position = position

        await db.commit()
        return await self._tabs_in_order(db, channel_id)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def _get_own_section(self, db: AsyncSession, section_id: str, user_id: str) -> ChannelSection:
        result = await db.execute(select(ChannelSection).where(ChannelSection.id == section_id))
        section = result.scalar_one_or_none()
        if not section:
            raise errors.NotFoundError("section", section_id)
        if section.user_id != user_id:
            raise errors.NotAuthorizedError("Sections can only be changed by their owner")
        return section

    async def create_section(self, db: AsyncSession, user_id: str, data: SectionCreate) -> ChannelSection:
        result = await db.execute(
            select(func.max(ChannelSection.position)).where(
                ChannelSection.workspace_id == data.workspace_id, ChannelSection.user_id == user_id
            )
        )
        max_position = result.scalar()

        section = ChannelSection(
            workspace_id=data.workspace_id,
            user_id=user_id,
            name=data.name,
            position=(max_position or 0) + 1,
            is_collapsed=False,
            channel_ids=list(dict.fromkeys(data.channel_ids)),
        )
        db.add(section)
        await db.commit()
        await db.refresh(section)
        return section

    async def list_sections(self, db: AsyncSession, workspace_id: str, user_id: str) -> List[ChannelSection]:
        result = await db.execute(
            select(ChannelSection)
            .where(ChannelSection.workspace_id == workspace_id, ChannelSection.user_id == user_id)
            .order_by(ChannelSection.position)
        )
        return list(result.scalars().all())

    async def update_section(
        self, db: AsyncSession, section_id: str, user_id: str, data: SectionUpdate
    ) -> ChannelSection:
        section = await self._get_own_section(db, section_id, user_id)

        if data.name is not None:
            section.name = data.name
        if data.is_collapsed is not None:
            section.is_collapsed = data.is_collapsed
        if data.channel_ids is not None:
            section.channel_ids = list(dict.fromkeys(data.channel_ids))

        await db.commit()
        await db.refresh(section)
        return section

    async def delete_section(self, db: AsyncSession, section_id: str, user_id: str):
        section = await self._get_own_section(db, section_id, user_id)
        await db.delete(section)
        await db.commit()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    async def _get_template(self, db: AsyncSession, template_id: str) -> ChannelTemplate:
        result = await db.execute(select(ChannelTemplate).where(ChannelTemplate.id == template_id))
        template = result.scalar_one_or_none()
        if not template:
            raise errors.NotFoundError("template", template_id)
        return template

    async def _get_own_template(self, db: AsyncSession, template_id: str, user_id: str) -> ChannelTemplate:
        template = await self._get_template(db, template_id)
        if template.created_by != user_id:
            raise errors.NotAuthorizedError("Only the template creator can change it")
        return template

    async def create_template(self, db: AsyncSession, user_id: str, data: TemplateCreate) -> ChannelTemplate:
        """Create a template, optionally snapshotting an existing channel.

        Values given explicitly win over the ones taken from the channel.
        """
        channel_type = data.type.value
        topic = data.topic
        settings_blob = _settings_blob(data.settings)

        if data.source_channel_id:
            source = await authority.get_channel(db, data.source_channel_id)
            await authority.require_member(db, source.id, user_id)

            if "type" not in data.model_fields_set:
                channel_type = source.type
            if topic is None:
                topic = source.topic
            if settings_blob is None:
                result = await db.execute(
                    select(ChannelSetting).where(ChannelSetting.channel_id == source.id)
                )
                row = result.scalar_one_or_none()
                if row:
                    settings_blob = {key: getattr(row, key) for key in SETTINGS_DEFAULTS}

        template = ChannelTemplate(
            workspace_id=data.workspace_id,
            name=data.name,
            description=data.description,
            type=channel_type,
            topic=topic,
            settings=settings_blob,
            created_by=user_id,
            use_count=0,
        )
        db.add(template)
        await db.commit()
        await db.refresh(template)
        return template

    async def get_template(self, db: AsyncSession, template_id: str) -> ChannelTemplate:
        return await self._get_template(db, template_id)

    async def list_templates(self, db: AsyncSession, workspace_id: str) -> List[ChannelTemplate]:
        """Most used first."""
        result = await db.execute(
            select(ChannelTemplate)
            .where(ChannelTemplate.workspace_id == workspace_id)
            .order_by(desc(ChannelTemplate.use_count), ChannelTemplate.name)
        )
        return list(result.scalars().all())

    async def update_template(
        self, db: AsyncSession, template_id: str, user_id: str, data: TemplateUpdate
    ) -> ChannelTemplate:
        template = await self._get_own_template(db, template_id, user_id)

        if data.name is not None:
            template.name = data.name
        if data.description is not None:
            template.description = data.description
        if data.type is not None:
            template.type = data.type.value
        if data.topic is not None:
            template.topic = data.topic
        if data.settings is not None:
            template.settings = _settings_blob(data.settings)

        await db.commit()
        await db.refresh(template)
        return template

    async def delete_template(self, db: AsyncSession, template_id: str, user_id: str):
        template = await self._get_own_template(db, template_id, user_id)
        await db.delete(template)
        await db.commit()

    async def apply_template(
        self, db: AsyncSession, template_id: str, user_id: str, channel_name: str
    ) -> Channel:
        """Create a channel from a template and count the use.

        The channel, its owner membership, its settings row and the use
        count are committed together.
        """
        template = await self._get_template(db, template_id)

        channel = await channel_manager.add_channel(
            db,
            user_id,
            ChannelCreate(
                workspace_id=template.workspace_id,
                name=channel_name,
                type=template.type,
                topic=template.topic,
            ),
        )

        if template.settings:
            values = {key: template.settings[key] for key in SETTINGS_DEFAULTS if key in template.settings}
            db.add(ChannelSetting(channel_id=channel.id, **{**SETTINGS_DEFAULTS, **values}))

        await db.execute(
            update(ChannelTemplate)
            .where(ChannelTemplate.id == template_id)
            .values(use_count=ChannelTemplate.use_count + 1)
        )
        await db.commit()
        await db.refresh(channel)

        logger.info(f"Template {template_id} applied as channel {channel.id} by {user_id}")
        await channel_manager.publish_created(channel, user_id)
        return channel

    # ------------------------------------------------------------------
    # Channel links
    # ------------------------------------------------------------------

    async def _get_link(self, db: AsyncSession, channel_id: str, link_id: str) -> ChannelLink:
        result = await db.execute(
            select(ChannelLink).where(
                ChannelLink.id == link_id,
                ChannelLink.is_active.is_(True),
                or_(
                    ChannelLink.source_channel_id == channel_id,
                    ChannelLink.target_channel_id == channel_id,
                ),
            )
        )
        link = result.scalar_one_or_none()
        if not link:
            raise errors.NotFoundError("channel_link", link_id)
        return link

    async def create_link(
        self, db: AsyncSession, channel_id: str, user_id: str, data: LinkCreate
    ) -> ChannelLink:
        """Link two channels. Needs owner/admin on the source and membership of the target."""
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        if data.target_channel_id == channel_id:
            raise errors.InvalidRequestError("invalid_channel_link", "A channel cannot link to itself")

        await authority.get_channel(db, data.target_channel_id)
        await authority.require_member(db, data.target_channel_id, user_id)

        link = ChannelLink(
            source_channel_id=channel_id,
            target_channel_id=data.target_channel_id,
            created_by=user_id,
            link_type=data.link_type.value,
            is_active=True,
        )
        db.add(link)
        await db.commit()
        await db.refresh(link)
        return link

    async def list_links(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelLink]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelLink)
            .where(
                ChannelLink.is_active.is_(True),
                or_(
                    ChannelLink.source_channel_id == channel_id,
                    ChannelLink.target_channel_id == channel_id,
                ),
            )
            .order_by(desc(ChannelLink.created_at))
        )
        return list(result.scalars().all())

    async def get_link(
        self, db: AsyncSession, channel_id: str, link_id: str, user_id: str
    ) -> ChannelLink:
        await authority.require_member(db, channel_id, user_id)
        return await self._get_link(db, channel_id, link_id)

    async def delete_link(self, db: AsyncSession, channel_id: str, link_id: str, user_id: str):
        """Deactivate a link. Creator or owner/admin of the source channel."""
        await authority.require_member(db, channel_id, user_id)
        link = await self._get_link(db, channel_id, link_id)
        if link.created_by != user_id:
            role = await authority.get_role(db, link.source_channel_id, user_id)
            if not authority.is_governor(role):
                raise errors.NotAuthorizedError("Only the link creator or a source channel admin can remove it")

        link.is_active = False
        await db.commit()


# Global instance
organization_manager = OrganizationManager()
