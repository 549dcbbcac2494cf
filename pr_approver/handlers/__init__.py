"""Slack event handlers."""

from .actions import register_actions

__all__ = ["register_actions"]
