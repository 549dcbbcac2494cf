"""Approve-button interaction handling.

Each click is an independent event that runs to completion:
ack, decode the button value, check the allow-list, call GitHub, then
rewrite the approval message with the outcome.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol

from loguru import logger

from pr_approver.approval.allow_list import AllowList
from pr_approver.approval.slack_ui import (
    build_approved_result,
    build_denied_result,
    build_failed_result,
)
from pr_approver.github.client import ApprovalError, ApprovalResult
from pr_approver.models import DEFAULT_SERVER_URL, ActionToken, NotificationHandle, ReviewRequest
from pr_approver.utils.slack_helpers import GatewayError, post_ephemeral, update_message


class InteractionState(Enum):
    """Outcome of a single Approve click."""

    AWAITING_CLICK = "awaiting_click"
    UNAUTHORIZED = "unauthorized"
    APPROVING = "approving"
    APPROVED = "approved"
    APPROVAL_FAILED = "approval_failed"


class Approver(Protocol):
    async def approve(self, repository: str, pr_number: int) -> ApprovalResult: ...


@dataclass
class ApprovalContext:
    """Everything the click handler needs, passed explicitly.

    The request, allow-list and approver are fixed at startup. ``message``
    is set once the approval request has been posted.
    """

    request: ReviewRequest
    allow_list: AllowList
    approver: Approver
    server_url: str = DEFAULT_SERVER_URL
    message: Optional[NotificationHandle] = None

    # Approval progress; denied clicks leave it untouched
    state: InteractionState = InteractionState.AWAITING_CLICK

    # One-shot guard: set after the first successful approval
    approved_by: Optional[str] = None
    approval_url: Optional[str] = None

    finished: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _idle: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _in_flight: int = field(default=0, repr=False)

    def __post_init__(self):
        self._idle.set()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def track(self) -> AsyncIterator[None]:
        """Count a handler invocation as in flight for the duration of the block."""
        self._in_flight += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def wait_idle(self, timeout: float) -> bool:
        """Wait for in-flight handlers to finish. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                f"{self._in_flight} interaction(s) still running after {timeout:.0f}s drain"
            )
            return False


async def _update(
    client: Any,
    handle: NotificationHandle,
    result: tuple[str, list[dict]],
) -> None:
    text, blocks = result
    try:
        await update_message(client, handle, text, blocks)
    except GatewayError as e:
        # The outcome already happened; a stale card is the only casualty
        logger.error(f"Could not reflect outcome in Slack message {handle.ts}: {e}")


def _message_handle(ctx: ApprovalContext, body: dict) -> NotificationHandle:
    if ctx.message is not None:
        return ctx.message
    return NotificationHandle(channel_id=body["channel"]["id"], ts=body["message"]["ts"])


async def handle_approve_click(
    ctx: ApprovalContext,
    body: dict,
    ack: Callable[[], Awaitable[Any]],
    client: Any,
) -> InteractionState:
    """Handle one click on the Approve PR button.

    Parameters
    ----------
    ctx : ApprovalContext
        Startup state shared by all clicks.
    body : dict
        Slack block_actions payload.
    ack : Callable
        Bolt acknowledgement; called before anything else.
    client : Any
        Slack WebClient used to update the message.

    Returns
    -------
    InteractionState
        The terminal state reached for this click.
    """
    await ack()

    user_id = body["user"]["id"]
    handle = _message_handle(ctx, body)

    try:
        token = ActionToken.decode(body["actions"][0]["value"])
    except (KeyError, IndexError, ValueError) as e:
        logger.error(f"Invalid approve action payload from {user_id}: {e}")
        await _update(
            client,
            handle,
            build_failed_result("invalid button payload", ctx.request, ctx.server_url),
        )
        return InteractionState.APPROVAL_FAILED

    if not ctx.allow_list.is_authorized(user_id):
        logger.info(f"Rejected approval attempt by unauthorized user {user_id}")
        await _update(client, handle, build_denied_result(user_id, ctx.request, ctx.server_url))
        return InteractionState.UNAUTHORIZED

    async with ctx._lock:
        if ctx.approved_by is not None:
            logger.info(f"Ignoring click by {user_id}: already approved by {ctx.approved_by}")
            await post_ephemeral(
                client,
                handle.channel_id,
                user_id,
                f"PR #{token.pr_number} was already approved by <@{ctx.approved_by}>.",
            )
            return InteractionState.APPROVED

        ctx.state = InteractionState.APPROVING
        logger.info(f"{user_id} is approving {token.repository}#{token.pr_number}")
        try:
            result = await ctx.approver.approve(token.repository, token.pr_number)
        except ApprovalError as e:
            logger.error(f"GitHub API error approving PR #{token.pr_number}: {e.message}")
            failure = build_failed_result(e.message, ctx.request, ctx.server_url)
            ctx.state = InteractionState.APPROVAL_FAILED
        else:
            ctx.approved_by = user_id
            ctx.state = InteractionState.APPROVED
            ctx.approval_url = result.html_url
            failure = None

    if failure is not None:
        await _update(client, handle, failure)
        return InteractionState.APPROVAL_FAILED

    await _update(client, handle, build_approved_result(token.pr_number, user_id, result.html_url))
    logger.info(f"PR #{token.pr_number} approved by {user_id}")
    return InteractionState.APPROVED
