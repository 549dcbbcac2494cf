"""Interactive component action handlers."""

import traceback

from loguru import logger
from slack_bolt.async_app import AsyncApp

from pr_approver.approval.handler import ApprovalContext, handle_approve_click
from pr_approver.approval.slack_ui import APPROVE_ACTION_ID, build_failed_result
from pr_approver.utils.slack_helpers import GatewayError, update_message


def register_actions(app: AsyncApp, ctx: ApprovalContext) -> None:
    """Register the Approve PR button handler.

    Parameters
    ----------
    app : AsyncApp
        The Slack Bolt async app.
    ctx : ApprovalContext
        Approval state shared by every click.
    """

    @app.action(APPROVE_ACTION_ID)
    async def handle_approve(ack, body, client):
        """Handle Approve PR button click."""
        async with ctx.track():
            try:
                state = await handle_approve_click(ctx, body, ack, client)
                logger.debug(f"Approve click finished in state {state.value}")
            except Exception as e:
                # Never let a click take down the listening process
                logger.error(
                    f"Unexpected error handling approve click: {type(e).__name__}: {e}\n"
                    f"{traceback.format_exc()}"
                )
                if ctx.message is not None:
                    text, blocks = build_failed_result(str(e), ctx.request, ctx.server_url)
                    try:
                        await update_message(client, ctx.message, text, blocks)
                    except GatewayError as notify_error:
                        logger.error(f"Failed to post error to Slack: {notify_error}")
            finally:
                ctx.finished.set()
