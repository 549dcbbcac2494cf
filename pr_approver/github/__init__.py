"""GitHub approval gateway."""

from .client import ApprovalError, ApprovalResult, GitHubClient

__all__ = ["ApprovalError", "ApprovalResult", "GitHubClient"]
