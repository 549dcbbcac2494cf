"""Unit tests for approval message builders."""

from pr_approver.approval.slack_ui import (
    ALERT_HEADER,
    APPROVE_ACTION_ID,
    build_approved_result,
    build_denied_result,
    build_failed_result,
    build_review_request_blocks,
    review_request_text,
)
from pr_approver.models import ActionToken, ReviewRequest


def _buttons(blocks: list[dict]) -> list[dict]:
    return [
        element
        for block in blocks
        if block["type"] == "actions"
        for element in block["elements"]
        if element["type"] == "button"
    ]


def _status(blocks: list[dict]) -> str:
    context = next(b for b in blocks if b["type"] == "context")
    return context["elements"][0]["text"]


class TestBuildReviewRequestBlocks:
    """Tests for build_review_request_blocks."""

    def test_structure(self, review_request):
        """Message has a header, a body section and an actions block."""
        blocks = build_review_request_blocks(review_request)

        assert [b["type"] for b in blocks] == ["header", "section", "actions"]
        assert blocks[0]["text"]["text"] == ALERT_HEADER

    def test_body_links(self, review_request):
        """Body embeds the repository link, PR number, title and PR URL."""
        text = build_review_request_blocks(review_request)[1]["text"]["text"]

        assert "<https://github.com/acme/widgets|acme/widgets>" in text
        assert "#42 - Bump openssl" in text
        assert "<https://github.com/acme/widgets/pull/42|View PR>" in text

    def test_custom_server_url(self, review_request):
        """Repository link follows the configured GitHub server."""
        text = build_review_request_blocks(review_request, "https://ghe.example")[1]["text"]["text"]

        assert "<https://ghe.example/acme/widgets|acme/widgets>" in text

    def test_single_approve_button(self, review_request):
        """Exactly one Approve PR button is rendered."""
        buttons = _buttons(build_review_request_blocks(review_request))

        assert len(buttons) == 1
        assert buttons[0]["text"]["text"] == "Approve PR"
        assert buttons[0]["action_id"] == APPROVE_ACTION_ID
        assert buttons[0]["style"] == "primary"

    def test_button_value_decodes_to_request(self):
        """The button value decodes back to the repository and PR number."""
        for repository, number in [("acme/widgets", 42), ("o/r", 1), ("my-org/my.repo", 99999)]:
            request = ReviewRequest(repository=repository, pr_number=number, title="t", url="u")
            button = _buttons(build_review_request_blocks(request))[0]

            assert ActionToken.decode(button["value"]) == ActionToken(repository, number)

    def test_fallback_text(self, review_request):
        """Fallback text mentions repository and PR number."""
        text = review_request_text(review_request)
        assert "acme/widgets" in text
        assert "#42" in text


class TestResultBuilders:
    """Tests for the outcome message builders."""

    def test_approved_with_link(self):
        """Approved result includes the approval link."""
        text, blocks = build_approved_result(42, "U123", "https://github.com/r/1")

        assert text == "PR #42 approved by <@U123>!"
        assert "<https://github.com/r/1|View approval>" in blocks[0]["text"]["text"]

    def test_approved_without_link(self):
        """Approved result omits the link when none is known."""
        _, blocks = build_approved_result(42, "U123")
        assert blocks[0]["text"]["text"] == "PR #42 approved by <@U123>!"

    def test_denied_names_actor(self, review_request):
        """Denied result mentions the user who clicked."""
        text, blocks = build_denied_result("U999", review_request)

        assert text == "<@U999> is not authorized to approve PRs."
        assert "U999" in _status(blocks)

    def test_denied_keeps_approve_button(self, review_request):
        """A denial leaves the Approve button for an authorized user."""
        _, blocks = build_denied_result("U999", review_request)

        assert [b["type"] for b in blocks] == ["header", "section", "context", "actions"]
        buttons = _buttons(blocks)
        assert len(buttons) == 1
        assert buttons[0]["action_id"] == APPROVE_ACTION_ID
        assert buttons[0]["value"] == "acme/widgets:42"

    def test_denied_without_request(self):
        """Without the request only the denial is rendered."""
        _, blocks = build_denied_result("U999")

        assert [b["type"] for b in blocks] == ["section"]

    def test_failed_embeds_error(self, review_request):
        """Failed result embeds the upstream error message."""
        text, blocks = build_failed_result("Pull request is already merged", review_request)

        assert text == "Failed to approve PR #42: Pull request is already merged"
        assert "already merged" in _status(blocks)

    def test_failed_keeps_approve_button(self, review_request):
        """A failure leaves the Approve button so the approval can be retried."""
        _, blocks = build_failed_result("Bad credentials", review_request, "https://ghe.example")

        assert len(_buttons(blocks)) == 1
        assert "<https://ghe.example/acme/widgets|acme/widgets>" in blocks[1]["text"]["text"]

    def test_failed_without_number(self):
        """Failed result works without a PR number."""
        text, blocks = build_failed_result("invalid button payload")

        assert text == "Failed to approve PR: invalid button payload"
        assert _buttons(blocks) == []
