from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field

from models.data_models import ActionItem, ActionItemStatus, Channel
from services.extraction import format_follow_up, format_reminder, format_status_update
from services.tools.base import ToolContext, ToolDefinition, as_utc


class CreateFollowUpArgs(BaseModel):
    channel_id: str = Field(description='The ID of the Slack channel to post the follow-up reminder (e.g., "C1234567890")')
    description: str = Field(description="Detailed description of the action item or task")
    assignee: Optional[str] = Field(default=None, description='Slack user ID of the assigned person (e.g., "U1234567890")')
    due_date: Optional[datetime] = Field(
        default=None,
        description='Optional due date in ISO 8601 format (e.g., "2024-12-31T17:00:00Z")',
    )
    thread_ts: Optional[str] = Field(default=None, description="Optional thread timestamp to post the reminder in")


class TrackFollowUpArgs(BaseModel):
    status: Optional[str] = Field(default=None, description='Status filter for retrieval ("open", "completed", "blocked")')
    action_item_id: Optional[int] = Field(default=None, description="Action item ID to update")
    new_status: Optional[str] = Field(default=None, description='New status when updating ("open", "completed", "blocked")')


class RemindActionItemsArgs(BaseModel):
    channel_id: Optional[str] = Field(default=None, description="Limit reminders to this Slack channel ID")
    days_overdue: int = Field(
        default=0,
        ge=0,
        description="Only remind items whose due date is at least this many days past (0: every open item)",
    )



async def create_follow_up(ctx: ToolContext, args: CreateFollowUpArgs):
    channel_info = await ctx.slack.get_channel_info(args.channel_id)
    channel_id = await ctx.repository.store_channel(Channel(
        slack_id=args.channel_id,
        name=channel_info.get("name") or "",
        is_private=bool(channel_info.get("is_private", False)),
    ))

    due_date = as_utc(args.due_date)
    action_item_id = await ctx.repository.store_action_item(
        ActionItem(description=args.description, assignee=args.assignee, due_date=due_date),
        channel_id,
    )

    message = format_follow_up(args.description, args.assignee, due_date)
    result = await ctx.slack.post_message(args.channel_id, message, args.thread_ts)

    return {
        "id": action_item_id,
        "description": args.description,
        "assignee": args.assignee,
        "due_date": due_date.isoformat() if due_date else None,
        "status": ActionItemStatus.OPEN.value,
        "message_ts": result.get("ts"),
    }



async def track_follow_up_status(ctx: ToolContext, args: TrackFollowUpArgs):
    if args.action_item_id is None or not args.new_status:
        return await ctx.repository.get_action_items(args.status)

    new_status = ActionItemStatus.parse(args.new_status)
    item = await ctx.repository.update_action_item_status(args.action_item_id, new_status)
    if item is None:
        raise LookupError(f"Action item with ID {args.action_item_id} not found")

    if item.get("channel_slack_id"):
        await ctx.slack.post_message(
            item["channel_slack_id"],
            format_status_update(item["description"], new_status.value),
        )

    return {
        "id": item["id"],
        "description": item["description"],
        "assignee": item["assignee"],
        "status": new_status.value,
        "updated": True,
    }



async def remind_action_items(ctx: ToolContext, args: RemindActionItemsArgs):
    due_before = None
    if args.days_overdue > 0:
        due_before = datetime.now(timezone.utc) - timedelta(days=args.days_overdue)

    items = await ctx.repository.get_open_action_items(args.channel_id, due_before)

    reminders_sent = []
    for item in items:
        message = format_reminder(item["description"], item["assignee"], item["due_date"], item["status"])
        await ctx.slack.post_message(item["channel_slack_id"], message)
        reminders_sent.append({
            "id": item["id"],
            "description": item["description"],
            "assignee": item["assignee"],
            "due_date": item["due_date"],
            "channel": item["channel_name"],
        })

    return {"reminders_sent": len(reminders_sent), "action_items": reminders_sent}



TOOLS = [
    ToolDefinition(
        name="create_follow_up",
        description=(
            "Create a follow-up action item and post a formatted reminder message to Slack. "
            "The action item is stored with assignee and due date."
        ),
        arguments=CreateFollowUpArgs,
        handler=create_follow_up,
    ),
    ToolDefinition(
        name="track_follow_up_status",
        description=(
            "Retrieve action items by status, or update the status of one action item "
            "(posts a status update to its channel)."
        ),
        arguments=TrackFollowUpArgs,
        handler=track_follow_up_status,
    ),
    ToolDefinition(
        name="remind_action_items",
        description=(
            "Send a reminder to each open action item's channel, optionally limited to one "
            "channel or to items overdue by a number of days."
        ),
        arguments=RemindActionItemsArgs,
        handler=remind_action_items,
    ),
]
