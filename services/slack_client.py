import logging
from typing import Any, Dict, List, Optional

from slack_sdk.web.async_client import AsyncWebClient


class SlackClient:
    """Thin wrapper over the Slack Web API used by the tools and the webhook.

    Errors are logged and re-raised so the calling tool can report them.
    """

    def __init__(self, token: Optional[str] = None, client: Optional[AsyncWebClient] = None):
        self.client = client or AsyncWebClient(token=token)





    async def get_channels(self) -> List[Dict[str, Any]]:
        """Public and private channels visible to the bot, archived ones excluded"""
        try:
            result = await self.client.conversations_list(
                types="public_channel,private_channel",
                exclude_archived=True,
            )
            return result.get("channels", [])
        except Exception as e:
            logging.error(f"Error fetching channels: {e}")
            raise

    async def get_channel_info(self, channel_id: str) -> Dict[str, Any]:
        try:
            result = await self.client.conversations_info(channel=channel_id)
            return result.get("channel") or {}
        except Exception as e:
            logging.error(f"Error fetching info for channel {channel_id}: {e}")
            raise

    async def get_channel_history(self, channel_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        try:
            result = await self.client.conversations_history(channel=channel_id, limit=limit)
            return result.get("messages", [])
        except Exception as e:
            logging.error(f"Error fetching history for channel {channel_id}: {e}")
            raise

    async def get_thread_replies(self, channel_id: str, thread_ts: str) -> List[Dict[str, Any]]:
        """Parent message followed by every reply in the thread"""
        try:
            result = await self.client.conversations_replies(channel=channel_id, ts=thread_ts)
            return result.get("messages", [])
        except Exception as e:
            logging.error(f"Error fetching thread replies for {channel_id}/{thread_ts}: {e}")
            raise





    async def get_user_info(self, user_id: str) -> Dict[str, Any]:
        try:
            result = await self.client.users_info(user=user_id)
            return result.get("user") or {}
        except Exception as e:
            logging.error(f"Error fetching user info for {user_id}: {e}")
            raise

    async def get_user_display_name(self, user_id: Optional[str]) -> str:
        if not user_id:
            return "Unknown"
        user = await self.get_user_info(user_id)
        return user.get("real_name") or user.get("name") or user_id

    async def get_team_info(self) -> Dict[str, Any]:
        try:
            result = await self.client.team_info()
            return result.get("team") or {}
        except Exception as e:
            logging.error(f"Error fetching team info: {e}")
            raise





    async def post_message(self, channel_id: str, text: str, thread_ts: Optional[str] = None) -> Dict[str, Any]:
        try:
            result = await self.client.chat_postMessage(
                channel=channel_id,
                text=text,
                thread_ts=thread_ts,
            )
            return result.data
        except Exception as e:
            logging.error(f"Error posting message to {channel_id}: {e}")
            raise

    async def add_reaction(self, channel_id: str, timestamp: str, name: str) -> Dict[str, Any]:
        try:
            result = await self.client.reactions_add(
                channel=channel_id,
                timestamp=timestamp,
                name=name.strip(":"),
            )
            return result.data
        except Exception as e:
            logging.error(f"Error adding reaction {name} to {channel_id}/{timestamp}: {e}")
            raise
