from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional



class ActionItemStatus(str, Enum):
    OPEN = "open"
    COMPLETED = "completed"
    BLOCKED = "blocked"

    @classmethod
    def parse(cls, value: str) -> "ActionItemStatus":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(status.value for status in cls)
            raise ValueError(f"Invalid status. Must be one of: {allowed}") from None



def ts_to_datetime(ts: str) -> datetime:
    """Convert a Slack ts ("1700000000.000100") to an aware UTC datetime"""
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)



@dataclass
class Channel:
    slack_id: str
    name: str = ""
    is_private: bool = False

    @classmethod
    def from_slack(cls, channel: Dict[str, Any]) -> "Channel":
        return cls(
            slack_id=channel["id"],
            name=channel.get("name") or "",
            is_private=bool(channel.get("is_private", False)),
        )



@dataclass
class SlackMessage:
    channel: str
    user: str
    text: str
    timestamp: str
    thread_ts: Optional[str] = None
    has_attachments: bool = False

    @classmethod
    def from_event(cls, message: Dict[str, Any], channel: str = "") -> "SlackMessage":
        """Build a record from a Slack message payload (history item or event)"""
        return cls(
            channel=message.get("channel") or channel,
            user=message.get("user") or message.get("bot_id") or "unknown",
            text=message.get("text") or "",
            timestamp=message["ts"],
            thread_ts=message.get("thread_ts"),
            has_attachments=bool(message.get("attachments") or message.get("files")),
        )

    @property
    def sent_at(self) -> datetime:
        return ts_to_datetime(self.timestamp)



@dataclass
class ExtractedActionItem:
    description: str
    assignee: Optional[str] = None
    message_ts: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"description": self.description, "assignee": self.assignee}
        if self.message_ts is not None:
            data["message_ts"] = self.message_ts
        return data



@dataclass
class Decision:
    text: str
    user: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)



@dataclass
class MeetingNotes:
    title: str
    summary: str
    start_ts: str
    end_ts: str
    participants: List[str] = field(default_factory=list)
    action_items: List[ExtractedActionItem] = field(default_factory=list)
    decisions: List[Decision] = field(default_factory=list)



@dataclass
class ActionItem:
    description: str
    assignee: Optional[str] = None
    due_date: Optional[datetime] = None
    status: ActionItemStatus = ActionItemStatus.OPEN
