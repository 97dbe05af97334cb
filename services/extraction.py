"""Keyword and regex extraction of action items and decisions from Slack messages.

Matching is deliberately literal: a message is an action item when it mentions
"action item" or "todo", or when an @-mention is followed by a commitment verb
("will", "should", "need(s) to", "must"). Decisions are flagged by a handful of
keywords. The first mention in a message wins when picking an assignee.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from models.data_models import Decision, ExtractedActionItem


ACTION_KEYWORDS = ("action item", "todo")
DECISION_KEYWORDS = ("decided", "decision", "conclude", "agreement")

COMMITMENT_PATTERN = re.compile(r"(?:@\w+|<@[^>]+>).*\b(?:will|should|needs? to|must)\b", re.IGNORECASE)
MENTION_PATTERN = re.compile(r"<@([A-Z0-9]+)>")

NONE_IDENTIFIED = "- None identified"



def _ts_value(message: Dict[str, Any]) -> float:
    ts = message.get("ts")
    return float(ts) if ts else 0.0



def filter_messages_by_range(messages: Iterable[Dict[str, Any]], start_ts: str, end_ts: str) -> List[Dict[str, Any]]:
    """Messages whose ts falls within [start_ts, end_ts]"""
    start, end = float(start_ts), float(end_ts)
    return [msg for msg in messages if start <= _ts_value(msg) <= end]



def is_action_item(text: Optional[str]) -> bool:
    text = text or ""
    lowered = text.lower()
    if any(keyword in lowered for keyword in ACTION_KEYWORDS):
        return True
    return COMMITMENT_PATTERN.search(text) is not None



def is_decision(text: Optional[str]) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in DECISION_KEYWORDS)



def extract_assignee(text: Optional[str], fallback: Optional[str] = None) -> Optional[str]:
    match = MENTION_PATTERN.search(text or "")
    return match.group(1) if match else fallback



def collect_action_items(messages: Iterable[Dict[str, Any]], resolve_mentions: bool = True) -> List[ExtractedActionItem]:
    items = []
    for msg in messages:
        text = msg.get("text") or ""
        if not is_action_item(text):
            continue
        author = msg.get("user")
        items.append(ExtractedActionItem(
            description=text,
            assignee=extract_assignee(text, author) if resolve_mentions else author,
            message_ts=msg.get("ts") if resolve_mentions else None,
        ))
    return items



def collect_decisions(messages: Iterable[Dict[str, Any]]) -> List[Decision]:
    return [
        Decision(text=msg.get("text") or "", user=msg.get("user"))
        for msg in messages
        if is_decision(msg.get("text"))
    ]



def unique_participants(messages: Iterable[Dict[str, Any]]) -> List[Optional[str]]:
    """Author ids in order of first appearance"""
    seen = {}
    for msg in messages:
        seen.setdefault(msg.get("user"), None)
    return list(seen)



def format_ts(ts: str) -> str:
    return datetime.fromtimestamp(float(ts), tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")



def build_summary(
    channel_name: str,
    participants: List[str],
    start_ts: str,
    message_count: int,
    action_items: List[ExtractedActionItem],
    decisions: List[Decision],
) -> str:
    action_lines = "\n".join(f"- {item.description}" for item in action_items) or NONE_IDENTIFIED
    decision_lines = "\n".join(f"- {decision.text}" for decision in decisions) or NONE_IDENTIFIED

    return (
        f"Meeting in #{channel_name}\n\n"
        f"**Participants:** {', '.join(participants)}\n\n"
        f"**Discussion Summary:**\n"
        f"Meeting started at {format_ts(start_ts)}\n"
        f"{message_count} messages exchanged\n\n"
        f"**Action Items:**\n{action_lines}\n\n"
        f"**Decisions:**\n{decision_lines}"
    )



def format_meeting_notes_post(title: str, summary: str) -> str:
    return f"*{title} - Meeting Notes*\n\n{summary}"



def format_action_items_summary(items: List[ExtractedActionItem]) -> str:
    blocks = [f"• {item.description}\n   _Assigned to: <@{item.assignee}>_" for item in items]
    return "*Action Items Extracted:*\n\n" + "\n\n".join(blocks)



def _mention(assignee: Optional[str]) -> str:
    return f"<@{assignee}>" if assignee else "Unassigned"



def format_follow_up(description: str, assignee: Optional[str], due_date: Optional[datetime]) -> str:
    due_info = f"Due: {due_date.isoformat()}" if due_date else "No due date set"
    return (
        f"*Follow-up Reminder:*\n"
        f"{description}\n"
        f"*Assigned to:* {_mention(assignee)}\n"
        f"*Status:* Open\n"
        f"*{due_info}*"
    )



def format_status_update(description: str, status: str) -> str:
    return f"*Action Item Status Update:*\n{description}\n*Status:* {status}"



def format_reminder(description: str, assignee: Optional[str], due_date: Optional[datetime], status: str) -> str:
    due_info = f"Due date: {due_date.strftime('%Y-%m-%d')}" if due_date else "No due date set"
    return (
        f"*Action Item Reminder:*\n"
        f"{description}\n"
        f"*Assigned to:* {_mention(assignee)}\n"
        f"*{due_info}*\n"
        f"*Status:* {status}"
    )
