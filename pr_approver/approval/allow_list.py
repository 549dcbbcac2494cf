"""Slack user allow-list for PR approvals."""

from dataclasses import dataclass

from pr_approver.config import ConfigError


@dataclass(frozen=True)
class AllowList:
    """Closed set of Slack user IDs permitted to approve.

    Membership is an exact, case-sensitive match; IDs are only trimmed
    once, when the raw input is parsed.
    """

    user_ids: frozenset[str]

    @classmethod
    def parse(cls, raw: str) -> "AllowList":
        """Parse a comma-separated list of Slack user IDs.

        Raises
        ------
        ConfigError
            If no non-blank IDs remain after trimming.
        """
        user_ids = frozenset(u.strip() for u in (raw or "").split(",") if u.strip())
        if not user_ids:
            raise ConfigError("No valid authorized users provided")
        return cls(user_ids=user_ids)

    def is_authorized(self, user_id: str) -> bool:
        return user_id in self.user_ids

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.user_ids

    def __len__(self) -> int:
        return len(self.user_ids)
