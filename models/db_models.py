"""models.db_models
=================

SQLAlchemy declarative models backing the relational store.

Rows are keyed by Slack's external ids where Slack provides one (channel id,
message ts) so webhook redeliveries and repeated tool calls upsert instead of
duplicating. Meeting notes and action items are plain inserts.

PostgreSQL gets JSONB and TEXT[] columns; other backends (SQLite in tests)
fall back to JSON.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

JSONDocument = JSON().with_variant(JSONB(), "postgresql")
TextList = JSON().with_variant(ARRAY(Text), "postgresql")


class ChannelModel(Base):
    __tablename__ = "channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slack_id = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    is_private = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class MessageModel(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slack_id = Column(Text, unique=True, nullable=False)  # Slack ts
    channel_id = Column(Integer, ForeignKey("channels.id"))
    user_id = Column(Text, nullable=False)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    thread_ts = Column(Text)
    has_attachments = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class MeetingNotesModel(Base):
    __tablename__ = "meeting_notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    channel_id = Column(Integer, ForeignKey("channels.id"))
    start_ts = Column(Text, nullable=False)
    end_ts = Column(Text, nullable=False)
    participants = Column(TextList)
    action_items = Column(JSONDocument)
    decisions = Column(JSONDocument)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ActionItemModel(Base):
    __tablename__ = "action_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(Text, nullable=False)
    assignee = Column(Text)
    due_date = Column(DateTime(timezone=True))
    status = Column(String(16), nullable=False, default="open", server_default="open")
    channel_id = Column(Integer, ForeignKey("channels.id"))
    message_id = Column(Integer, ForeignKey("messages.id"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
