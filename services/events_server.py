"""Slack Events API webhook.

Receives Slack event callbacks, verifies the request signature and writes
channels and messages into the same store the MCP tools use.

Slack delivers events at least once. Every write here is an upsert keyed by
the Slack id, so a redelivered event leaves the store unchanged. Anything that
passes verification is answered with 200 so Slack stops retrying; processing
errors are logged instead of being returned.
"""

import json
import time
import logging
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from slack_sdk.signature import SignatureVerifier

from models.data_models import Channel, SlackMessage
from services.repository import ContextRepository
from services.slack_client import SlackClient


MAX_REQUEST_AGE_SECONDS = 60 * 5

TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_HEADER = "X-Slack-Signature"
RETRY_HEADER = "X-Slack-Retry-Num"


class SlackEventProcessor:
    """Applies verified event callbacks to the repository"""

    def __init__(self, repository: ContextRepository, slack_client: SlackClient):
        self.repository = repository
        self.slack_client = slack_client

    async def process(self, event: Dict[str, Any]):
        event_type = event.get("type")

        if event_type == "channel_created":
            await self._store_created_channel(event["channel"])

        elif event_type == "message" and event.get("channel_type") == "channel":
            # Edits and deletions arrive without a top-level author
            if not event.get("user") or not event.get("ts"):
                logging.debug(f"Skipping message event without author: {event.get('subtype')}")
                return
            await self._store_message(event)

    async def _store_created_channel(self, channel: Dict[str, Any]):
        await self.repository.store_channel(Channel.from_slack(channel))
        logging.info(f"Stored new channel: {channel.get('name')}")

    async def _store_message(self, event: Dict[str, Any]):
        slack_channel_id = event["channel"]

        channel_record = await self.repository.get_channel_by_slack_id(slack_channel_id)
        if channel_record is None:
            info = await self.slack_client.get_channel_info(slack_channel_id)
            channel = Channel.from_slack(info) if info else Channel(slack_id=slack_channel_id)
            channel_id = await self.repository.store_channel(channel)
            channel_name = channel.name
        else:
            channel_id = channel_record["id"]
            channel_name = channel_record["name"]

        await self.repository.store_message(SlackMessage.from_event(event), channel_id)
        logging.info(f"Stored message in channel {channel_name or slack_channel_id}")



class _VerifierClock:
    """Adapts a plain callable to slack_sdk's Clock interface"""

    def __init__(self, now: Callable[[], float]):
        self._now = now

    def now(self) -> float:
        return self._now()



def check_signature(
    verifier: SignatureVerifier,
    headers,
    body: bytes,
    now: float,
) -> Optional[PlainTextResponse]:
    """Return an error response when the request is not a fresh, signed Slack request"""
    timestamp = headers.get(TIMESTAMP_HEADER)
    signature = headers.get(SIGNATURE_HEADER)

    if not timestamp or not signature:
        return PlainTextResponse("Missing Slack signature headers", status_code=400)

    try:
        request_time = int(timestamp)
    except ValueError:
        return PlainTextResponse("Ignore stale request", status_code=400)

    # Skew in either direction is outside the replay window
    if abs(request_time - int(now)) > MAX_REQUEST_AGE_SECONDS:
        return PlainTextResponse("Ignore stale request", status_code=400)

    if not verifier.is_valid(body=body, timestamp=timestamp, signature=signature):
        return PlainTextResponse("Invalid signature", status_code=401)

    return None



def create_events_app(
    repository: ContextRepository,
    slack_client: SlackClient,
    signing_secret: str,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    app = FastAPI(title="SmartIntern Slack Events", docs_url=None, redoc_url=None)

    verifier = SignatureVerifier(signing_secret=signing_secret, clock=_VerifierClock(clock))
    processor = SlackEventProcessor(repository, slack_client)

    app.state.processor = processor

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/slack/events")
    async def slack_events(request: Request):
        body = await request.body()

        rejection = check_signature(verifier, request.headers, body, clock())
        if rejection is not None:
            logging.warning(f"Rejected Slack request: {rejection.body.decode()}")
            return rejection

        try:
            payload = json.loads(body)
        except ValueError:
            return PlainTextResponse("Invalid JSON body", status_code=400)

        if not isinstance(payload, dict):
            logging.warning(f"Ignoring Slack payload that is not an object: {type(payload).__name__}")
            return PlainTextResponse("OK")

        if payload.get("type") == "url_verification":
            return PlainTextResponse(payload.get("challenge", ""))

        if payload.get("type") == "event_callback":
            retry = request.headers.get(RETRY_HEADER)
            if retry:
                logging.info(f"Slack redelivery #{retry} of event {payload.get('event_id')}")
            try:
                await processor.process(payload.get("event") or {})
            except Exception as e:
                logging.error(f"Error processing Slack event: {e}", exc_info=True)

        # Always acknowledge to avoid retries
        return PlainTextResponse("OK")

    return app



async def serve_events(app: FastAPI, host: str, port: int):
    logging.info(f"Slack Events server listening on {host}:{port}")
    config = uvicorn.Config(app, host=host, port=port, log_config=None)
    server = uvicorn.Server(config)
    await server.serve()
