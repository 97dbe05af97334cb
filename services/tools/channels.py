from pydantic import BaseModel, Field

from models.data_models import Channel
from services.tools.base import NoArguments, ToolContext, ToolDefinition


class ChannelInfoArgs(BaseModel):
    channel_id: str = Field(description='The ID of the channel to get info for (e.g., "C1234567890")')



async def list_channels(ctx: ToolContext, args: NoArguments):
    channels = await ctx.slack.get_channels()

    for channel in channels:
        await ctx.repository.store_channel(Channel.from_slack(channel))

    return [
        {
            "id": c["id"],
            "name": c.get("name"),
            "is_private": c.get("is_private", False),
            "num_members": c.get("num_members"),
        }
        for c in channels
    ]



async def get_channel_info(ctx: ToolContext, args: ChannelInfoArgs):
    channel = await ctx.slack.get_channel_info(args.channel_id)

    if channel:
        await ctx.repository.store_channel(Channel.from_slack(channel))

    return channel



TOOLS = [
    ToolDefinition(
        name="list_channels",
        description="List available Slack channels (public and private, archived excluded) and store them",
        arguments=NoArguments,
        handler=list_channels,
    ),
    ToolDefinition(
        name="get_channel_info",
        description="Get detailed information about a Slack channel",
        arguments=ChannelInfoArgs,
        handler=get_channel_info,
    ),
]
