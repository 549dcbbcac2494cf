"""Slack UI builders for PR approval messages."""

from typing import Optional

from pr_approver.models import DEFAULT_SERVER_URL, ReviewRequest

APPROVE_ACTION_ID = "approve_pr"
ALERT_HEADER = "🚨 Critical Vulnerability Detected in PR"


def build_review_request_blocks(
    request: ReviewRequest,
    server_url: str = DEFAULT_SERVER_URL,
) -> list[dict]:
    """Build Slack blocks for the approval request message.

    Args:
        request: The pull request awaiting approval
        server_url: GitHub server used for the repository link

    Returns:
        List of Slack block kit blocks with exactly one Approve button
    """
    repo_link = f"<{request.repository_url(server_url)}|{request.repository}>"

    return [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": ALERT_HEADER,
                "emoji": True,
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"*Repository:* {repo_link}\n"
                    f"*PR:* #{request.pr_number} - {request.title}\n"
                    f"<{request.url}|View PR>"
                ),
            },
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {
                        "type": "plain_text",
                        "text": "Approve PR",
                    },
                    "style": "primary",
                    "value": request.token.encode(),
                    "action_id": APPROVE_ACTION_ID,
                },
            ],
        },
    ]


def review_request_text(request: ReviewRequest) -> str:
    """Plain-text fallback used for notifications."""
    return f"Approval requested for {request.repository} PR #{request.pr_number}: {request.title}"


def build_approved_result(
    pr_number: int,
    user_id: str,
    approval_url: Optional[str] = None,
) -> tuple[str, list[dict]]:
    """Build the (text, blocks) pair shown after a successful approval."""
    text = f"PR #{pr_number} approved by <@{user_id}>!"
    body = f"{text}\n<{approval_url}|View approval>" if approval_url else text

    blocks = [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": body,
            },
        },
    ]
    return text, blocks


def _card_with_status(
    request: ReviewRequest,
    server_url: str,
    status: str,
) -> list[dict]:
    """The original card with a status line above the Approve button."""
    blocks = build_review_request_blocks(request, server_url)
    blocks.insert(
        -1,
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": status}],
        },
    )
    return blocks


def build_denied_result(
    user_id: str,
    request: Optional[ReviewRequest] = None,
    server_url: str = DEFAULT_SERVER_URL,
) -> tuple[str, list[dict]]:
    """Build the (text, blocks) pair shown when a non-allow-listed user clicks.

    With ``request`` the card keeps its Approve button so an authorized
    user can still click it.
    """
    text = f"<@{user_id}> is not authorized to approve PRs."
    status = f":no_entry: {text}"
    if request is not None:
        return text, _card_with_status(request, server_url, status)

    blocks = [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": status},
        },
    ]
    return text, blocks


def build_failed_result(
    error_message: str,
    request: Optional[ReviewRequest] = None,
    server_url: str = DEFAULT_SERVER_URL,
) -> tuple[str, list[dict]]:
    """Build the (text, blocks) pair shown when the approval call fails.

    With ``request`` the card keeps its Approve button so the approval
    can be retried.
    """
    target = f"PR #{request.pr_number}" if request is not None else "PR"
    text = f"Failed to approve {target}: {error_message}"
    status = f":x: {text}"
    if request is not None:
        return text, _card_with_status(request, server_url, status)

    blocks = [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": status},
        },
    ]
    return text, blocks
