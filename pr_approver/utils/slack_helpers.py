"""Slack messaging helper utilities."""

import asyncio
from typing import Any, Optional

import aiohttp
from loguru import logger
from slack_sdk.errors import SlackApiError

from pr_approver.approval.slack_ui import build_review_request_blocks, review_request_text
from pr_approver.models import DEFAULT_SERVER_URL, NotificationHandle, ReviewRequest

# AsyncWebClient surfaces transport failures as aiohttp errors
SLACK_CALL_ERRORS = (SlackApiError, aiohttp.ClientError, asyncio.TimeoutError, OSError)


class GatewayError(Exception):
    """Raised when a Slack send or update call fails."""

    pass


def _slack_error(e: Exception) -> str:
    if isinstance(e, SlackApiError):
        return str(e.response.get("error") or e)
    return f"{type(e).__name__}: {e}"


async def send_notification(
    client: Any,
    channel_id: str,
    request: ReviewRequest,
    server_url: str = DEFAULT_SERVER_URL,
) -> NotificationHandle:
    """Post the approval request message.

    Parameters
    ----------
    client : Any
        Slack WebClient for API calls.
    channel_id : str
        Target channel ID.
    request : ReviewRequest
        Pull request to describe.
    server_url : str, optional
        GitHub server used for the repository link.

    Returns
    -------
    NotificationHandle
        Channel and timestamp of the posted message.

    Raises
    ------
    GatewayError
        If Slack rejects the message or cannot be reached.
    """
    try:
        response = await client.chat_postMessage(
            channel=channel_id,
            text=review_request_text(request),
            blocks=build_review_request_blocks(request, server_url),
        )
    except SLACK_CALL_ERRORS as e:
        raise GatewayError(f"Failed to post notification: {_slack_error(e)}") from e

    ts = response.get("ts")
    if not ts:
        raise GatewayError("Slack response did not include a message timestamp")

    # chat.update requires the channel ID even when a name was used to post
    handle = NotificationHandle(channel_id=response.get("channel") or channel_id, ts=ts)
    logger.info(f"Posted approval request to {handle.channel_id} (ts={handle.ts})")
    return handle


async def update_message(
    client: Any,
    handle: NotificationHandle,
    text: str,
    blocks: Optional[list[dict]] = None,
) -> dict:
    """Replace the content of the approval request message.

    Parameters
    ----------
    client : Any
        Slack WebClient for API calls.
    handle : NotificationHandle
        Message to update.
    text : str
        Fallback text.
    blocks : list[dict], optional
        Replacement blocks. Without blocks the message becomes plain text.

    Raises
    ------
    GatewayError
        If the update fails.
    """
    try:
        return await client.chat_update(
            channel=handle.channel_id,
            ts=handle.ts,
            text=text,
            blocks=blocks or [],
        )
    except SLACK_CALL_ERRORS as e:
        raise GatewayError(f"Failed to update message: {_slack_error(e)}") from e


async def post_ephemeral(
    client: Any,
    channel_id: str,
    user_id: str,
    text: str,
) -> None:
    """Show a message only to ``user_id``; failures are logged, not raised."""
    try:
        await client.chat_postEphemeral(channel=channel_id, user=user_id, text=text)
    except SLACK_CALL_ERRORS as e:
        logger.warning(f"Failed to post ephemeral message to {user_id}: {_slack_error(e)}")
