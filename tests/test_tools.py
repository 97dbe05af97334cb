"""Tests for the MCP tool handlers in services.tools."""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import ToolError
from models.data_models import ActionItem, ActionItemStatus, Channel
from services.tools import channels, follow_up, messages, notes, workspace


def _tool(module, name):
    return next(definition for definition in module.TOOLS if definition.name == name)


MEETING = [
    {"ts": "1700000000.000100", "user": "U1", "text": "Kickoff"},
    {"ts": "1700000060.000100", "user": "U2", "text": "Action item: draft the plan"},
    {"ts": "1700000120.000100", "user": "U1", "text": "<@U2> should ping design"},
    {"ts": "1700000180.000100", "user": "U2", "text": "Decision: launch in March"},
    {"ts": "1700009999.000100", "user": "U3", "text": "todo outside the meeting"},
]


class TestChannelTools:
    """list_channels and get_channel_info."""

    @pytest.mark.asyncio
    async def test_list_channels_stores_each_channel(self, ctx, slack, repository):
        slack.get_channels.return_value = [
            {"id": "C1", "name": "general", "is_private": False, "num_members": 10, "topic": {}},
            {"id": "C2", "name": "secret", "is_private": True, "num_members": 2},
        ]

        result = await _tool(channels, "list_channels").run(ctx, {})

        assert result == [
            {"id": "C1", "name": "general", "is_private": False, "num_members": 10},
            {"id": "C2", "name": "secret", "is_private": True, "num_members": 2},
        ]
        assert (await repository.get_channel_by_slack_id("C2"))["is_private"] is True

    @pytest.mark.asyncio
    async def test_get_channel_info(self, ctx, repository):
        result = await _tool(channels, "get_channel_info").run(ctx, {"channel_id": "C123"})

        assert result["name"] == "general"
        assert (await repository.get_channel_by_slack_id("C123"))["name"] == "general"

    @pytest.mark.asyncio
    async def test_missing_argument_is_a_tool_error(self, ctx):
        with pytest.raises(ToolError, match="Failed to get_channel_info"):
            await _tool(channels, "get_channel_info").run(ctx, {})


class TestMessageTools:
    """History, replies, posting, reactions and search."""

    @pytest.mark.asyncio
    async def test_get_channel_history_persists_messages(self, ctx, slack, repository):
        await repository.store_channel(Channel("C123", "general"))
        slack.get_channel_history.return_value = MEETING[:2]

        result = await _tool(messages, "get_channel_history").run(ctx, {"channel_id": "C123", "limit": 2})

        assert result == MEETING[:2]
        slack.get_channel_history.assert_awaited_once_with("C123", 2)
        assert (await repository.get_stats())["messages"] == 2
        # the placeholder upsert must not wipe the stored name
        assert (await repository.get_channel_by_slack_id("C123"))["name"] == "general"

    @pytest.mark.asyncio
    async def test_history_limit_is_validated(self, ctx):
        with pytest.raises(ToolError, match="Failed to get_channel_history"):
            await _tool(messages, "get_channel_history").run(ctx, {"channel_id": "C1", "limit": 5000})

    @pytest.mark.asyncio
    async def test_get_thread_replies(self, ctx, slack, repository):
        slack.get_thread_replies.return_value = [
            {"ts": "1.0", "user": "U1", "text": "parent"},
            {"ts": "2.0", "user": "U2", "text": "reply", "thread_ts": "1.0"},
        ]

        await _tool(messages, "get_thread_replies").run(ctx, {"channel_id": "C9", "thread_ts": "1.0"})

        reply = await repository.get_message_by_slack_id("2.0")
        assert reply["thread_ts"] == "1.0"

    @pytest.mark.asyncio
    async def test_send_message(self, ctx, slack):
        result = await _tool(messages, "send_message").run(ctx, {"channel_id": "C123", "text": "hi"})

        assert result["ts"] == "1700000999.000100"
        slack.post_message.assert_awaited_once_with("C123", "hi", None)

    @pytest.mark.asyncio
    async def test_add_reaction(self, ctx, slack):
        result = await _tool(messages, "add_reaction").run(
            ctx, {"channel_id": "C1", "timestamp": "1.0", "reaction": "eyes"}
        )

        assert result["success"] is True
        slack.add_reaction.assert_awaited_once_with("C1", "1.0", "eyes")

    @pytest.mark.asyncio
    async def test_search_messages(self, ctx, slack):
        slack.get_channel_history.return_value = MEETING
        await _tool(messages, "get_channel_history").run(ctx, {"channel_id": "C123"})

        result = await _tool(messages, "search_messages").run(ctx, {"query": "todo", "channel_id": "C123"})

        assert [row["slack_id"] for row in result["results"]] == ["1700009999.000100"]


class TestNoteTools:
    """create_meeting_notes and extract_action_items."""

    @pytest.mark.asyncio
    async def test_create_meeting_notes(self, ctx, slack, repository):
        slack.get_channel_history.return_value = MEETING

        result = await _tool(notes, "create_meeting_notes").run(ctx, {
            "channel_id": "C123",
            "start_ts": "1700000000.000100",
            "end_ts": "1700000180.000100",
            "title": "Planning",
        })

        assert result["participants"] == ["Alice", "Bob"]
        assert result["action_items"] == [
            {"description": "Action item: draft the plan", "assignee": "U2"},
            {"description": "<@U2> should ping design", "assignee": "U1"},
        ]
        assert result["decisions"] == [{"text": "Decision: launch in March", "user": "U2"}]
        assert result["posted"] is True
        assert "4 messages exchanged" in result["summary"]

        slack.get_channel_history.assert_awaited_once_with("C123", 1000)
        channel, text = slack.post_message.await_args.args[:2]
        assert channel == "C123"
        assert text.startswith("*Planning - Meeting Notes*\n\nMeeting in #general")

        stats = await repository.get_stats()
        assert stats["meeting_notes"] == 1
        assert stats["action_items"] == 2

    @pytest.mark.asyncio
    async def test_create_meeting_notes_without_posting(self, ctx, slack):
        slack.get_channel_history.return_value = MEETING

        result = await _tool(notes, "create_meeting_notes").run(ctx, {
            "channel_id": "C123",
            "start_ts": "1700000000",
            "end_ts": "1700000001",
            "title": "Quick sync",
            "post_to_channel": False,
        })

        assert result["posted"] is False
        assert result["action_items"] == []
        slack.post_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_meeting_notes_empty_range(self, ctx, slack, repository):
        slack.get_channel_history.return_value = MEETING

        with pytest.raises(ToolError, match="No messages found in the specified time range"):
            await _tool(notes, "create_meeting_notes").run(ctx, {
                "channel_id": "C123",
                "start_ts": "1800000000",
                "end_ts": "1800000100",
                "title": "Nothing",
            })
        assert (await repository.get_stats())["meeting_notes"] == 0

    @pytest.mark.asyncio
    async def test_extract_action_items_links_source_messages(self, ctx, slack, repository):
        slack.get_channel_history.return_value = MEETING

        result = await _tool(notes, "extract_action_items").run(ctx, {"channel_id": "C123"})

        assert result == [
            {"description": "Action item: draft the plan", "assignee": "U2", "message_ts": "1700000060.000100"},
            {"description": "<@U2> should ping design", "assignee": "U2", "message_ts": "1700000120.000100"},
            {"description": "todo outside the meeting", "assignee": "U3", "message_ts": "1700009999.000100"},
        ]
        slack.post_message.assert_not_awaited()

        stored = await repository.get_action_items()
        source = await repository.get_message_by_slack_id("1700000120.000100")
        assert stored[1]["message_id"] == source["id"]

    @pytest.mark.asyncio
    async def test_extract_action_items_posts_summary(self, ctx, slack):
        slack.get_channel_history.return_value = MEETING

        await _tool(notes, "extract_action_items").run(ctx, {
            "channel_id": "C123",
            "start_ts": "1700000000",
            "end_ts": "1700000100",
            "post_summary": True,
        })

        slack.post_message.assert_awaited_once_with(
            "C123",
            "*Action Items Extracted:*\n\n• Action item: draft the plan\n   _Assigned to: <@U2>_",
        )

    @pytest.mark.asyncio
    async def test_extract_without_matches_does_not_post(self, ctx, slack):
        slack.get_channel_history.return_value = MEETING[:1]

        result = await _tool(notes, "extract_action_items").run(ctx, {"channel_id": "C123", "post_summary": True})

        assert result == []
        slack.post_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_extract_keeps_items_from_messages_without_ts(self, ctx, slack, repository):
        slack.get_channel_history.return_value = [
            {"user": "U1", "text": "todo: no ts here"},
            {"ts": "1700000000.100000", "user": "U2", "text": "action item: ok"},
        ]

        result = await _tool(notes, "extract_action_items").run(ctx, {"channel_id": "C123"})

        assert result == [
            {"description": "todo: no ts here", "assignee": "U1"},
            {"description": "action item: ok", "assignee": "U2", "message_ts": "1700000000.100000"},
        ]
        stored = await repository.get_action_items()
        assert [item["message_id"] is None for item in stored] == [True, False]
        assert (await repository.get_stats())["messages"] == 1


class TestFollowUpTools:
    """create_follow_up, track_follow_up_status and remind_action_items."""

    @pytest.mark.asyncio
    async def test_create_follow_up(self, ctx, slack, repository):
        result = await _tool(follow_up, "create_follow_up").run(ctx, {
            "channel_id": "C123",
            "description": "Send the deck",
            "assignee": "U2",
            "due_date": "2024-12-31T17:00:00Z",
            "thread_ts": "1.0",
        })

        assert result["status"] == "open"
        assert result["due_date"] == "2024-12-31T17:00:00+00:00"
        assert result["message_ts"] == "1700000999.000100"

        channel, text, thread_ts = slack.post_message.await_args.args
        assert (channel, thread_ts) == ("C123", "1.0")
        assert "*Assigned to:* <@U2>" in text

        stored = await repository.get_action_items("open")
        assert [item["id"] for item in stored] == [result["id"]]

    @pytest.mark.asyncio
    async def test_track_status_lists_items(self, ctx, repository):
        channel_id = await repository.store_channel(Channel("C1", "general"))
        await repository.store_action_item(ActionItem("one"), channel_id)
        await repository.store_action_item(ActionItem("two", status=ActionItemStatus.COMPLETED), channel_id)

        result = await _tool(follow_up, "track_follow_up_status").run(ctx, {"status": "completed"})

        assert [item["description"] for item in result] == ["two"]

    @pytest.mark.asyncio
    async def test_track_status_updates_and_notifies(self, ctx, slack, repository):
        channel_id = await repository.store_channel(Channel("C1", "general"))
        item_id = await repository.store_action_item(ActionItem("ship", assignee="U1"), channel_id)

        result = await _tool(follow_up, "track_follow_up_status").run(
            ctx, {"action_item_id": item_id, "new_status": "completed"}
        )

        assert result == {"id": item_id, "description": "ship", "assignee": "U1", "status": "completed", "updated": True}
        slack.post_message.assert_awaited_once_with("C1", "*Action Item Status Update:*\nship\n*Status:* completed")

    @pytest.mark.asyncio
    async def test_track_status_rejects_invalid_status(self, ctx, repository):
        with pytest.raises(ToolError, match="Invalid status"):
            await _tool(follow_up, "track_follow_up_status").run(ctx, {"action_item_id": 1, "new_status": "done"})

    @pytest.mark.asyncio
    async def test_track_status_unknown_item(self, ctx):
        with pytest.raises(ToolError, match="Action item with ID 42 not found"):
            await _tool(follow_up, "track_follow_up_status").run(
                ctx, {"action_item_id": 42, "new_status": "blocked"}
            )

    @pytest.mark.asyncio
    async def test_remind_action_items(self, ctx, slack, repository):
        now = datetime.now(timezone.utc)
        general = await repository.store_channel(Channel("C1", "general"))
        random = await repository.store_channel(Channel("C2", "random"))
        await repository.store_action_item(ActionItem("late", "U1", now - timedelta(days=5)), general)
        await repository.store_action_item(ActionItem("fresh", "U2", now + timedelta(days=5)), random)

        result = await _tool(follow_up, "remind_action_items").run(ctx, {})
        assert result["reminders_sent"] == 2
        assert [item["channel"] for item in result["action_items"]] == ["general", "random"]

        slack.post_message.reset_mock()
        result = await _tool(follow_up, "remind_action_items").run(ctx, {"days_overdue": 2})
        assert [item["description"] for item in result["action_items"]] == ["late"]
        channel, text = slack.post_message.await_args.args
        assert channel == "C1"
        assert text.startswith("*Action Item Reminder:*\nlate\n*Assigned to:* <@U1>")


class TestWorkspaceTools:
    """get_workspace_info."""

    @pytest.mark.asyncio
    async def test_get_workspace_info(self, ctx, slack):
        slack.get_team_info.return_value = {"id": "T1", "name": "Acme", "domain": "acme", "icon": {}}

        result = await _tool(workspace, "get_workspace_info").run(ctx, {})

        assert result["workspace"] == {"id": "T1", "name": "Acme", "domain": "acme"}
        assert result["stored"]["channels"] == 0
