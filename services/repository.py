import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from models.data_models import ActionItem, ActionItemStatus, Channel, MeetingNotes, SlackMessage
from models.db_models import ActionItemModel, ChannelModel, MeetingNotesModel, MessageModel
from services.database import Database


channels = ChannelModel.__table__
messages = MessageModel.__table__
meeting_notes = MeetingNotesModel.__table__
action_items = ActionItemModel.__table__


def _as_dict(row) -> Dict[str, Any]:
    return dict(row._mapping)



class ContextRepository:
    """Parameterized reads and writes for channels, messages, notes and action items.

    Every call checks a connection out of the engine's pool and returns it when
    the statement finishes. Failures are logged and re-raised to the caller.
    """

    def __init__(self, database: Database):
        self.database = database

    @property
    def engine(self):
        return self.database.engine

    def _upsert(self, table):
        # ON CONFLICT is dialect-specific in SQLAlchemy; both dialects share the API
        if self.database.dialect == "postgresql":
            return pg_insert(table)
        return sqlite_insert(table)





    async def store_channel(self, channel: Channel) -> int:
        """Insert or update a channel keyed by its Slack id, returning the internal id"""
        stmt = self._upsert(channels).values(
            slack_id=channel.slack_id,
            name=channel.name,
            is_private=channel.is_private,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[channels.c.slack_id],
            set_={"name": stmt.excluded.name, "is_private": stmt.excluded.is_private},
        ).returning(channels.c.id)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.scalar_one()
        except Exception as e:
            logging.error(f"Error storing channel {channel.slack_id}: {e}")
            raise

    async def ensure_channel(self, slack_id: str) -> int:
        """Return the internal id for a Slack channel, creating a placeholder row if needed.

        An existing row keeps its name and privacy flag.
        """
        stmt = self._upsert(channels).values(slack_id=slack_id, name="", is_private=False)
        stmt = stmt.on_conflict_do_nothing(index_elements=[channels.c.slack_id])
        try:
            async with self.engine.begin() as conn:
                await conn.execute(stmt)
                result = await conn.execute(
                    select(channels.c.id).where(channels.c.slack_id == slack_id)
                )
                return result.scalar_one()
        except Exception as e:
            logging.error(f"Error ensuring channel {slack_id}: {e}")
            raise

    async def get_channel_by_slack_id(self, slack_id: str) -> Optional[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(channels).where(channels.c.slack_id == slack_id))
                row = result.first()
                return _as_dict(row) if row else None
        except Exception as e:
            logging.error(f"Error fetching channel {slack_id}: {e}")
            raise

    async def list_channels(self) -> List[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(channels).order_by(channels.c.name))
                return [_as_dict(row) for row in result]
        except Exception as e:
            logging.error(f"Error listing stored channels: {e}")
            raise





    async def store_message(self, message: SlackMessage, channel_id: int) -> int:
        """Insert a message keyed by its Slack ts; a redelivered message only refreshes its text"""
        stmt = self._upsert(messages).values(
            slack_id=message.timestamp,
            channel_id=channel_id,
            user_id=message.user,
            text=message.text,
            timestamp=message.sent_at,
            thread_ts=message.thread_ts,
            has_attachments=message.has_attachments,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[messages.c.slack_id],
            set_={"text": stmt.excluded.text},
        ).returning(messages.c.id)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.scalar_one()
        except Exception as e:
            logging.error(f"Error storing message {message.timestamp}: {e}")
            raise

    async def get_message_by_slack_id(self, slack_id: str) -> Optional[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(messages).where(messages.c.slack_id == slack_id))
                row = result.first()
                return _as_dict(row) if row else None
        except Exception as e:
            logging.error(f"Error fetching message {slack_id}: {e}")
            raise

    async def get_recent_messages(self, channel_id: int, limit: int = 100) -> List[Dict[str, Any]]:
        stmt = (
            select(messages)
            .where(messages.c.channel_id == channel_id)
            .order_by(messages.c.timestamp.desc())
            .limit(limit)
        )
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [_as_dict(row) for row in result]
        except Exception as e:
            logging.error(f"Error fetching recent messages for channel {channel_id}: {e}")
            raise

    async def search_messages(
        self,
        query: str,
        channel_slack_id: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        """Case-insensitive substring search over stored message text, newest first"""
        stmt = (
            select(
                messages,
                channels.c.slack_id.label("channel_slack_id"),
                channels.c.name.label("channel_name"),
            )
            .join(channels, messages.c.channel_id == channels.c.id)
            .where(func.lower(messages.c.text).contains(query.lower(), autoescape=True))
        )
        if channel_slack_id:
            stmt = stmt.where(channels.c.slack_id == channel_slack_id)
        if from_date:
            stmt = stmt.where(messages.c.timestamp >= from_date)
        if to_date:
            stmt = stmt.where(messages.c.timestamp <= to_date)
        stmt = stmt.order_by(messages.c.timestamp.desc()).limit(limit)

        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [_as_dict(row) for row in result]
        except Exception as e:
            logging.error(f"Error searching messages for '{query}': {e}")
            raise





    async def store_meeting_notes(self, notes: MeetingNotes, channel_id: int) -> int:
        stmt = (
            insert(meeting_notes)
            .values(
                title=notes.title,
                summary=notes.summary,
                channel_id=channel_id,
                start_ts=notes.start_ts,
                end_ts=notes.end_ts,
                participants=list(notes.participants),
                action_items=[item.to_dict() for item in notes.action_items],
                decisions=[decision.to_dict() for decision in notes.decisions],
            )
            .returning(meeting_notes.c.id)
        )
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.scalar_one()
        except Exception as e:
            logging.error(f"Error storing meeting notes '{notes.title}': {e}")
            raise

    async def store_action_item(
        self,
        item: ActionItem,
        channel_id: int,
        message_id: Optional[int] = None,
    ) -> int:
        stmt = (
            insert(action_items)
            .values(
                description=item.description,
                assignee=item.assignee,
                due_date=item.due_date,
                status=(item.status or ActionItemStatus.OPEN).value,
                channel_id=channel_id,
                message_id=message_id,
            )
            .returning(action_items.c.id)
        )
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.scalar_one()
        except Exception as e:
            logging.error(f"Error storing action item: {e}")
            raise

    async def get_action_items(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(action_items, channels.c.name.label("channel_name")).join(
            channels, action_items.c.channel_id == channels.c.id
        )
        if status:
            stmt = stmt.where(action_items.c.status == status)
        stmt = stmt.order_by(action_items.c.id)
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [_as_dict(row) for row in result]
        except Exception as e:
            logging.error(f"Error fetching action items: {e}")
            raise

    async def update_action_item_status(
        self, action_item_id: int, status: ActionItemStatus
    ) -> Optional[Dict[str, Any]]:
        """Set an item's status; returns the updated row with its channel's Slack id, or None"""
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    update(action_items)
                    .where(action_items.c.id == action_item_id)
                    .values(status=status.value)
                )
                if result.rowcount == 0:
                    return None
                result = await conn.execute(
                    select(action_items, channels.c.slack_id.label("channel_slack_id"))
                    .outerjoin(channels, action_items.c.channel_id == channels.c.id)
                    .where(action_items.c.id == action_item_id)
                )
                return _as_dict(result.one())
        except Exception as e:
            logging.error(f"Error updating action item {action_item_id}: {e}")
            raise

    async def get_open_action_items(
        self,
        channel_slack_id: Optional[str] = None,
        due_before: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        stmt = (
            select(
                action_items,
                channels.c.slack_id.label("channel_slack_id"),
                channels.c.name.label("channel_name"),
            )
            .join(channels, action_items.c.channel_id == channels.c.id)
            .where(action_items.c.status == ActionItemStatus.OPEN.value)
        )
        if channel_slack_id:
            stmt = stmt.where(channels.c.slack_id == channel_slack_id)
        if due_before is not None:
            stmt = stmt.where(action_items.c.due_date.is_not(None), action_items.c.due_date < due_before)
        stmt = stmt.order_by(action_items.c.id)
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [_as_dict(row) for row in result]
        except Exception as e:
            logging.error(f"Error fetching open action items: {e}")
            raise





    async def get_stats(self) -> Dict[str, int]:
        tables = {
            "channels": channels,
            "messages": messages,
            "meeting_notes": meeting_notes,
            "action_items": action_items,
        }
        stats = {}
        try:
            async with self.engine.connect() as conn:
                for name, table in tables.items():
                    result = await conn.execute(select(func.count()).select_from(table))
                    stats[name] = result.scalar_one()
            return stats
        except Exception as e:
            logging.error(f"Error counting stored rows: {e}")
            raise
