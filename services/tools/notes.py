import time
import asyncio
from typing import Optional

from pydantic import BaseModel, Field

from models.data_models import ActionItem, Channel, MeetingNotes, SlackMessage
from services.extraction import (
    build_summary,
    collect_action_items,
    collect_decisions,
    filter_messages_by_range,
    format_action_items_summary,
    format_meeting_notes_post,
    unique_participants,
)
from services.tools.base import ToolContext, ToolDefinition


HISTORY_LIMIT = 1000


class MeetingNotesArgs(BaseModel):
    channel_id: str = Field(description="Channel ID")
    start_ts: str = Field(description="Start timestamp (Slack ts)")
    end_ts: str = Field(description="End timestamp (Slack ts)")
    title: str = Field(description="Meeting title")
    post_to_channel: bool = Field(default=True, description="Post notes to channel")


class ExtractActionItemsArgs(BaseModel):
    channel_id: str = Field(description="Channel ID")
    start_ts: str = Field(default="0", description="Start timestamp (Slack ts)")
    end_ts: Optional[str] = Field(default=None, description="End timestamp (Slack ts), defaults to now")
    post_summary: bool = Field(default=False, description="Post summary to channel")



async def _messages_in_range(ctx: ToolContext, channel_id: str, start_ts: str, end_ts: str):
    channel_info = await ctx.slack.get_channel_info(channel_id)
    all_messages = await ctx.slack.get_channel_history(channel_id, HISTORY_LIMIT)

    selected = filter_messages_by_range(all_messages, start_ts, end_ts)
    if not selected:
        raise ValueError("No messages found in the specified time range")

    return channel_info, selected



def _channel_record(channel_id: str, channel_info) -> Channel:
    return Channel(
        slack_id=channel_id,
        name=channel_info.get("name") or "",
        is_private=bool(channel_info.get("is_private", False)),
    )



async def create_meeting_notes(ctx: ToolContext, args: MeetingNotesArgs):
    channel_info, meeting_messages = await _messages_in_range(ctx, args.channel_id, args.start_ts, args.end_ts)

    participant_ids = unique_participants(meeting_messages)
    participants = list(await asyncio.gather(
        *(ctx.slack.get_user_display_name(user_id) for user_id in participant_ids)
    ))

    action_items = collect_action_items(meeting_messages, resolve_mentions=False)
    decisions = collect_decisions(meeting_messages)

    summary = build_summary(
        channel_info.get("name") or args.channel_id,
        participants,
        args.start_ts,
        len(meeting_messages),
        action_items,
        decisions,
    )

    channel_id = await ctx.repository.store_channel(_channel_record(args.channel_id, channel_info))

    notes = MeetingNotes(
        title=args.title,
        summary=summary,
        start_ts=args.start_ts,
        end_ts=args.end_ts,
        participants=participants,
        action_items=action_items,
        decisions=decisions,
    )
    await ctx.repository.store_meeting_notes(notes, channel_id)

    if args.post_to_channel:
        await ctx.slack.post_message(args.channel_id, format_meeting_notes_post(args.title, summary))

    for item in action_items:
        await ctx.repository.store_action_item(
            ActionItem(description=item.description, assignee=item.assignee),
            channel_id,
        )

    return {
        "title": args.title,
        "summary": summary,
        "participants": participants,
        "action_items": [item.to_dict() for item in action_items],
        "decisions": [decision.to_dict() for decision in decisions],
        "posted": args.post_to_channel,
    }



async def extract_action_items(ctx: ToolContext, args: ExtractActionItemsArgs):
    end_ts = args.end_ts or str(time.time())
    channel_info, timeframe_messages = await _messages_in_range(ctx, args.channel_id, args.start_ts, end_ts)

    action_items = collect_action_items(timeframe_messages)
    by_ts = {msg.get("ts"): msg for msg in timeframe_messages}

    channel_id = await ctx.repository.store_channel(_channel_record(args.channel_id, channel_info))

    for item in action_items:
        # Link each action item to its stored source message; messages without a ts stay unlinked
        message_id = None
        if item.message_ts:
            source = SlackMessage.from_event(by_ts[item.message_ts], channel=args.channel_id)
            message_id = await ctx.repository.store_message(source, channel_id)
        await ctx.repository.store_action_item(
            ActionItem(description=item.description, assignee=item.assignee),
            channel_id,
            message_id=message_id,
        )

    if args.post_summary and action_items:
        await ctx.slack.post_message(args.channel_id, format_action_items_summary(action_items))

    return [item.to_dict() for item in action_items]



TOOLS = [
    ToolDefinition(
        name="create_meeting_notes",
        description=(
            "Create meeting notes from a Slack conversation between two timestamps: participants, "
            "action items and decisions. Notes are stored and optionally posted to the channel."
        ),
        arguments=MeetingNotesArgs,
        handler=create_meeting_notes,
    ),
    ToolDefinition(
        name="extract_action_items",
        description="Extract action items from a Slack conversation and store them",
        arguments=ExtractActionItemsArgs,
        handler=extract_action_items,
    ),
]
