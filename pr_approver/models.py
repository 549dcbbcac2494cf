from dataclasses import dataclass

DEFAULT_SERVER_URL = "https://github.com"


@dataclass(frozen=True)
class ReviewRequest:
    """The pull request awaiting approval. Fixed for the lifetime of the process."""

    repository: str  # owner/name
    pr_number: int
    title: str
    url: str

    def repository_url(self, server_url: str = DEFAULT_SERVER_URL) -> str:
        return f"{server_url.rstrip('/')}/{self.repository}"

    @property
    def token(self) -> "ActionToken":
        return ActionToken(repository=self.repository, pr_number=self.pr_number)


@dataclass(frozen=True)
class ActionToken:
    """Repository/PR pair carried in the Approve button value."""

    repository: str
    pr_number: int

    SEPARATOR = ":"

    def encode(self) -> str:
        return f"{self.repository}{self.SEPARATOR}{self.pr_number}"

    @classmethod
    def decode(cls, value: str) -> "ActionToken":
        """Parse a button value of the form "owner/name:42".

        Raises
        ------
        ValueError
            If the value has no separator, an empty repository, or a
            number that is not a non-negative integer.
        """
        repository, separator, number = (value or "").rpartition(cls.SEPARATOR)
        if not separator or not repository:
            raise ValueError(f"Malformed action value: {value!r}")
        if not (number.isascii() and number.isdigit()):
            raise ValueError(f"Malformed PR number in action value: {value!r}")
        return cls(repository=repository, pr_number=int(number))


@dataclass(frozen=True)
class NotificationHandle:
    """Identity of the posted Slack message; every update targets it."""

    channel_id: str
    ts: str
