import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

import mcp.types as types
from pydantic import BaseModel

from core.exceptions import tool_wrapper
from services.repository import ContextRepository
from services.slack_client import SlackClient


@dataclass
class ToolContext:
    """Collaborators every tool handler works against"""
    slack: SlackClient
    repository: ContextRepository



@dataclass
class ToolDefinition:
    name: str
    description: str
    arguments: Type[BaseModel]
    handler: Callable[[ToolContext, Any], Awaitable[Any]]

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.arguments.model_json_schema(),
        )

    async def run(self, ctx: ToolContext, arguments: Optional[Dict[str, Any]]) -> Any:
        """Validate the arguments and run the handler; failures surface as ToolError"""

        @tool_wrapper(self.name)
        async def invoke():
            args = self.arguments.model_validate(arguments or {})
            return await self.handler(ctx, args)

        return await invoke()



class NoArguments(BaseModel):
    pass



def json_content(payload: Any) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]



def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
