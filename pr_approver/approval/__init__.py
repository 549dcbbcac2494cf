"""PR approval handling via Slack."""
