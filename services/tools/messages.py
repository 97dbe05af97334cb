from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.data_models import SlackMessage
from services.tools.base import ToolContext, ToolDefinition, as_utc


class ChannelHistoryArgs(BaseModel):
    channel_id: str = Field(description='The Slack channel ID to retrieve messages from (e.g., "C1234567890")')
    limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of recent messages to retrieve (default: 100, max: 1000)",
    )


class ThreadRepliesArgs(BaseModel):
    channel_id: str = Field(description='The Slack channel ID containing the thread (e.g., "C1234567890")')
    thread_ts: str = Field(description='The parent message timestamp identifying the thread (e.g., "1234567890.123456")')


class SendMessageArgs(BaseModel):
    channel_id: str = Field(description='The Slack channel ID to send the message to (e.g., "C1234567890")')
    text: str = Field(description="The message content to send. Supports Slack markdown formatting.")
    thread_ts: Optional[str] = Field(
        default=None,
        description="Optional thread timestamp; when set the message is posted as a thread reply",
    )


class AddReactionArgs(BaseModel):
    channel_id: str = Field(description="Channel ID")
    timestamp: str = Field(description="Message timestamp")
    reaction: str = Field(description="Emoji name without colons (e.g., 'thumbsup')")


class SearchMessagesArgs(BaseModel):
    query: str = Field(min_length=1, description="Text to look for (case-insensitive)")
    channel_id: Optional[str] = Field(default=None, description="Slack channel ID to search in")
    from_date: Optional[datetime] = Field(default=None, description="Only messages at or after this ISO 8601 date")
    to_date: Optional[datetime] = Field(default=None, description="Only messages at or before this ISO 8601 date")
    limit: int = Field(default=50, ge=1, le=500, description="Maximum number of results")



async def _store_messages(ctx: ToolContext, channel_slack_id: str, messages):
    channel_id = await ctx.repository.ensure_channel(channel_slack_id)
    for message in messages:
        if not message.get("ts"):
            continue
        await ctx.repository.store_message(SlackMessage.from_event(message, channel=channel_slack_id), channel_id)



async def get_channel_history(ctx: ToolContext, args: ChannelHistoryArgs):
    messages = await ctx.slack.get_channel_history(args.channel_id, args.limit)
    await _store_messages(ctx, args.channel_id, messages)
    return messages



async def get_thread_replies(ctx: ToolContext, args: ThreadRepliesArgs):
    replies = await ctx.slack.get_thread_replies(args.channel_id, args.thread_ts)
    await _store_messages(ctx, args.channel_id, replies)
    return replies



async def send_message(ctx: ToolContext, args: SendMessageArgs):
    return await ctx.slack.post_message(args.channel_id, args.text, args.thread_ts)



async def add_reaction(ctx: ToolContext, args: AddReactionArgs):
    await ctx.slack.add_reaction(args.channel_id, args.timestamp, args.reaction)
    return {
        "success": True,
        "channel_id": args.channel_id,
        "timestamp": args.timestamp,
        "reaction": args.reaction,
    }



async def search_messages(ctx: ToolContext, args: SearchMessagesArgs):
    results = await ctx.repository.search_messages(
        args.query,
        channel_slack_id=args.channel_id,
        from_date=as_utc(args.from_date),
        to_date=as_utc(args.to_date),
        limit=args.limit,
    )
    return {
        "query": args.query,
        "channel_id": args.channel_id,
        "from_date": args.from_date,
        "to_date": args.to_date,
        "results": results,
    }



TOOLS = [
    ToolDefinition(
        name="get_channel_history",
        description=(
            "Retrieve recent messages from a Slack channel. Messages are persisted to the "
            "database for conversation context and analysis."
        ),
        arguments=ChannelHistoryArgs,
        handler=get_channel_history,
    ),
    ToolDefinition(
        name="get_thread_replies",
        description=(
            "Retrieve all replies in a Slack message thread, including the parent message. "
            "Messages are persisted to the database."
        ),
        arguments=ThreadRepliesArgs,
        handler=get_thread_replies,
    ),
    ToolDefinition(
        name="send_message",
        description="Send a message to a Slack channel or as a reply in a thread",
        arguments=SendMessageArgs,
        handler=send_message,
    ),
    ToolDefinition(
        name="add_reaction",
        description="Add an emoji reaction to a Slack message",
        arguments=AddReactionArgs,
        handler=add_reaction,
    ),
    ToolDefinition(
        name="search_messages",
        description="Search messages already stored from Slack channels",
        arguments=SearchMessagesArgs,
        handler=search_messages,
    ),
]
