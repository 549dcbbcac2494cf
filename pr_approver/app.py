#!/usr/bin/env python3
"""
Slack PR Approver - Main Application Entry Point

Posts an approval request for a pull request to Slack, listens over Socket
Mode for a bounded window, and approves the PR on GitHub when an
authorized user clicks the button.
"""

import asyncio
import os
import signal
import sys
from typing import Optional

from loguru import logger
from pydantic import ValidationError
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from pr_approver.approval.allow_list import AllowList
from pr_approver.approval.handler import ApprovalContext
from pr_approver.config import (
    SLACK_APP_TOKEN_PREFIXES,
    SLACK_BOT_TOKEN_PREFIXES,
    Config,
    ConfigError,
)
from pr_approver.github.client import GitHubClient
from pr_approver.handlers.actions import register_actions
from pr_approver.utils.logging import configure_logging, describe_secret, redact
from pr_approver.utils.slack_helpers import GatewayError, send_notification

EXIT_OK = 0
EXIT_FAILURE = 1


def report_failure(message: str) -> None:
    """Surface a fatal error to the log and, under GitHub Actions, to the workflow."""
    message = redact(message)
    logger.error(message)
    if os.environ.get("GITHUB_ACTIONS") == "true":
        # Workflow command: marks the step as failed with an annotation
        escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        print(f"::error::Action failed: {escaped}", flush=True)


def build_context(settings: Config) -> ApprovalContext:
    """Validate every input and assemble the click handler context.

    Raises
    ------
    ConfigError
        If any input is missing or malformed. No network client exists yet.
    """
    errors = settings.validate_required()
    if errors:
        raise ConfigError(errors)

    allow_list = AllowList.parse(settings.AUTHORIZED_USERS)
    request = settings.review_request()
    if request is None:
        raise ConfigError("Pull request inputs are invalid")

    approver = GitHubClient(
        token=settings.GITHUB_TOKEN,
        api_url=settings.GITHUB_API_URL,
        timeout=settings.timeouts.github_api,
    )
    return ApprovalContext(
        request=request,
        allow_list=allow_list,
        approver=approver,
        server_url=settings.GITHUB_SERVER_URL,
    )


async def wait_for_shutdown(window: float, *events: asyncio.Event) -> str:
    """Block until the listening window elapses or any event is set.

    Returns
    -------
    str
        "timeout" if the window elapsed, otherwise "event".
    """
    timer = asyncio.ensure_future(asyncio.sleep(window))
    waiters = [asyncio.ensure_future(event.wait()) for event in events]
    try:
        done, _ = await asyncio.wait([timer, *waiters], return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (timer, *waiters):
            task.cancel()
    return "timeout" if timer in done else "event"


def _log_credential_shapes(settings: Config) -> None:
    logger.debug(f"GITHUB_TOKEN: {describe_secret(settings.GITHUB_TOKEN)}")
    logger.debug(
        f"SLACK_BOT_TOKEN: {describe_secret(settings.SLACK_BOT_TOKEN, SLACK_BOT_TOKEN_PREFIXES)}"
    )
    logger.debug(
        f"SLACK_APP_TOKEN: {describe_secret(settings.SLACK_APP_TOKEN, SLACK_APP_TOKEN_PREFIXES)}"
    )
    logger.debug(f"SLACK_SIGNING_SECRET: {describe_secret(settings.SLACK_SIGNING_SECRET)}")


async def main(settings: Optional[Config] = None) -> int:
    """Main application entry point. Returns the process exit code."""
    if settings is None:
        try:
            settings = Config()
        except ValidationError as e:
            report_failure(f"Invalid configuration: {e}")
            return EXIT_FAILURE
    configure_logging(settings.LOG_LEVEL, secrets=settings.secrets)
    _log_credential_shapes(settings)

    # Validate configuration before touching the network
    try:
        ctx = build_context(settings)
    except ConfigError as e:
        logger.error("Configuration errors:")
        for error in e.errors:
            logger.error(f"  - {error}")
        report_failure(f"Invalid configuration: {e}")
        return EXIT_FAILURE

    logger.info(
        f"Requesting approval of {ctx.request.repository}#{ctx.request.pr_number} "
        f"from {len(ctx.allow_list)} authorized user(s)"
    )

    # Create Slack app
    app = AsyncApp(
        token=settings.SLACK_BOT_TOKEN,
        signing_secret=settings.SLACK_SIGNING_SECRET,
    )
    register_actions(app, ctx)

    # Start Socket Mode handler
    handler = AsyncSocketModeHandler(app, settings.SLACK_APP_TOKEN)

    # Setup shutdown handler
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        shutdown_event.set()

    installed_signals = []
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, signal_handler)
            installed_signals.append(sig)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal handler for {sig.name} not supported here")

    try:
        try:
            await handler.connect_async()
        except Exception as e:
            report_failure(f"Could not connect to Slack: {type(e).__name__}: {e}")
            return EXIT_FAILURE
        logger.info("Connected to Slack")

        try:
            ctx.message = await send_notification(
                app.client,
                settings.SLACK_CHANNEL_ID,
                ctx.request,
                settings.GITHUB_SERVER_URL,
            )
        except GatewayError as e:
            report_failure(str(e))
            return EXIT_FAILURE

        events = [shutdown_event]
        if settings.EXIT_AFTER_FIRST_INTERACTION:
            events.append(ctx.finished)

        timeouts = settings.timeouts
        logger.info(f"Listening for approval for up to {timeouts.window:.0f}s")
        reason = await wait_for_shutdown(timeouts.window, *events)
        if reason == "timeout":
            logger.info("Listening window elapsed")

        await ctx.wait_idle(timeouts.drain)
        logger.info(f"Finished with approval state: {ctx.state.value}")
        return EXIT_OK

    finally:
        for sig in installed_signals:
            loop.remove_signal_handler(sig)
        try:
            await handler.close_async()
            logger.info("Disconnected from Slack")
        except Exception as e:
            logger.warning(f"Error closing Slack connection: {type(e).__name__}: {e}")


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
