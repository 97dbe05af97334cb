import json
import logging
from typing import Any, Dict, List

import mcp.types as types
import mcp.server.stdio
from mcp.server import Server
from mcp.types import Resource, ResourceTemplate, Tool

from core.config import settings
from core.exceptions import ToolError
from services.repository import ContextRepository
from services.slack_client import SlackClient
from services.tools import channels, follow_up, messages, notes, workspace
from services.tools.base import ToolContext, ToolDefinition, json_content


TOOL_MODULES = (channels, messages, notes, follow_up, workspace)

CHANNEL_MESSAGES_PREFIX = "slack://channels/"
CHANNEL_MESSAGES_SUFFIX = "/messages"
RECENT_MESSAGES_LIMIT = 50


class SmartInternMCPServer:
    def __init__(self, slack_client: SlackClient, repository: ContextRepository):
        self.slack_client = slack_client
        self.repository = repository
        self.context = ToolContext(slack=slack_client, repository=repository)
        self.server = Server(settings.SERVER_NAME, version=settings.VERSION, instructions=settings.DESCRIPTION)
        self.tools: Dict[str, ToolDefinition] = {
            definition.name: definition
            for module in TOOL_MODULES
            for definition in module.TOOLS
        }
        self.tool_calls = 0

        # Initialize MCP server tools and resources
        self._setup_mcp_handlers()





    def _setup_mcp_handlers(self):
        """Set up MCP server handlers for tools and resources"""

        @self.server.list_resources()
        async def handle_list_resources() -> List[Resource]:
            return self.list_resources()

        @self.server.list_resource_templates()
        async def handle_list_resource_templates() -> List[ResourceTemplate]:
            return self.list_resource_templates()

        @self.server.read_resource()
        async def handle_read_resource(uri) -> str:
            return await self.read_resource(str(uri))

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
            return await self.call_tool(name, arguments)





    def list_tools(self) -> List[Tool]:
        return [definition.to_tool() for definition in self.tools.values()]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        """Run a tool; errors are logged and re-raised so the client sees an error result"""
        definition = self.tools.get(name)
        if definition is None:
            logging.error(f"Unknown tool requested: {name}")
            raise ToolError(f"Unknown tool: {name}")

        logging.info(f"Executing tool {name}")
        self.tool_calls += 1
        result = await definition.run(self.context, arguments)
        return json_content(result)





    def list_resources(self) -> List[Resource]:
        return [
            Resource(
                uri="slack://action-items/open",
                name="Open Action Items",
                description="Action items that are still open, with their channel",
                mimeType="application/json",
            ),
            Resource(
                uri="slack://channels/stored",
                name="Stored Channels",
                description="Slack channels recorded in the database",
                mimeType="application/json",
            ),
            Resource(
                uri="slack://server/status",
                name="Server Status",
                description="Server configuration and stored row counts",
                mimeType="application/json",
            ),
        ]

    def list_resource_templates(self) -> List[ResourceTemplate]:
        return [
            ResourceTemplate(
                uriTemplate=f"{CHANNEL_MESSAGES_PREFIX}{{slack_id}}{CHANNEL_MESSAGES_SUFFIX}",
                name="Channel Messages",
                description=f"The {RECENT_MESSAGES_LIMIT} most recent stored messages of a channel",
                mimeType="application/json",
            ),
        ]

    async def read_resource(self, uri: str) -> str:
        try:
            if uri == "slack://action-items/open":
                items = await self.repository.get_open_action_items()
                return json.dumps(items, indent=2, default=str)

            elif uri == "slack://channels/stored":
                stored = await self.repository.list_channels()
                return json.dumps(stored, indent=2, default=str)

            elif uri == "slack://server/status":
                status = {
                    "name": settings.SERVER_NAME,
                    "version": settings.VERSION,
                    "tools": sorted(self.tools),
                    "tool_calls": self.tool_calls,
                    "stored": await self.repository.get_stats(),
                }
                return json.dumps(status, indent=2)

            elif uri.startswith(CHANNEL_MESSAGES_PREFIX) and uri.endswith(CHANNEL_MESSAGES_SUFFIX):
                slack_id = uri[len(CHANNEL_MESSAGES_PREFIX):-len(CHANNEL_MESSAGES_SUFFIX)]
                channel = await self.repository.get_channel_by_slack_id(slack_id)
                if channel is None:
                    return json.dumps({"error": f"Channel {slack_id} not stored"})
                recent = await self.repository.get_recent_messages(channel["id"], RECENT_MESSAGES_LIMIT)
                return json.dumps(recent, indent=2, default=str)

        except Exception as e:
            logging.error(f"Error reading resource {uri}: {e}")
            raise

        return json.dumps({"error": "Resource not found"})





    async def run_stdio(self):
        """Serve MCP over stdin/stdout until the client disconnects"""
        logging.info("Starting MCP server on stdio...")
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )
        logging.info("MCP server stopped")
