from datetime import datetime, timezone

from services.tools.base import NoArguments, ToolContext, ToolDefinition


async def get_workspace_info(ctx: ToolContext, args: NoArguments):
    team = await ctx.slack.get_team_info()
    stored = await ctx.repository.get_stats()
    return {
        "workspace": {
            "id": team.get("id"),
            "name": team.get("name"),
            "domain": team.get("domain"),
        },
        "stored": stored,
        "accessed": datetime.now(timezone.utc).isoformat(),
    }



TOOLS = [
    ToolDefinition(
        name="get_workspace_info",
        description="Get information about the current Slack workspace and what has been stored from it",
        arguments=NoArguments,
        handler=get_workspace_info,
    ),
]
