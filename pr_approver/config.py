import functools
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pr_approver.models import DEFAULT_SERVER_URL, ReviewRequest
from pr_approver.utils.validators import (
    validate_pr_number,
    validate_repository,
    validate_signing_secret,
    validate_token,
)

GITHUB_API_URL = "https://api.github.com"

SLACK_BOT_TOKEN_PREFIXES: tuple[str, ...] = ("xoxb-",)
SLACK_APP_TOKEN_PREFIXES: tuple[str, ...] = ("xapp-",)

# Loguru built-in level names
LOG_LEVELS: tuple[str, ...] = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when required inputs are missing or malformed."""

    def __init__(self, errors: list[str] | str):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


def _input(name: str) -> AliasChoices:
    """Accept GitHub Actions ``INPUT_*`` names (hyphenated or not) and the plain name."""
    hyphenated = name.replace("_", "-")
    return AliasChoices(f"INPUT_{hyphenated}", f"INPUT_{name}", name)


class ListenTimeouts(BaseModel):
    """Timeout configuration for the listening window and outbound calls."""

    window: float = 600.0
    drain: float = 10.0
    github_api: float = 30.0

    @field_validator("window", "drain", "github_api")
    @classmethod
    def validate_positive_float(cls, v: float, info) -> float:
        """Ensure timeout values are positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got {v}")
        return v


class Config(BaseSettings):
    """
    Application configuration loaded from multiple sources.

    Priority (highest to lowest):
    1. Explicit keyword arguments
    2. Environment variables (including GitHub Actions ``INPUT_*`` variables)
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Pull request being approved
    REPOSITORY: str = Field(default="", validation_alias=_input("REPOSITORY"))
    PR_NUMBER: str = Field(default="", validation_alias=_input("PR_NUMBER"))
    PR_TITLE: str = Field(default="", validation_alias=_input("PR_TITLE"))
    PR_URL: str = Field(default="", validation_alias=_input("PR_URL"))

    # GitHub configuration
    GITHUB_TOKEN: str = Field(default="", validation_alias=_input("GITHUB_TOKEN"))
    GITHUB_API_URL: str = GITHUB_API_URL
    GITHUB_SERVER_URL: str = DEFAULT_SERVER_URL

    # Approvers - stored as comma-separated string, parsed into an AllowList at startup
    AUTHORIZED_USERS: str = Field(default="", validation_alias=_input("AUTHORIZED_USERS"))

    # Slack configuration
    SLACK_BOT_TOKEN: str = Field(default="", validation_alias=_input("SLACK_BOT_TOKEN"))
    SLACK_APP_TOKEN: str = Field(default="", validation_alias=_input("SLACK_APP_TOKEN"))
    SLACK_SIGNING_SECRET: str = Field(
        default="", validation_alias=_input("SLACK_SIGNING_SECRET")
    )
    SLACK_CHANNEL_ID: str = Field(default="", validation_alias=_input("SLACK_CHANNEL_ID"))

    # Lifecycle
    LISTEN_WINDOW_SECONDS: float = 600.0
    INFLIGHT_DRAIN_TIMEOUT: float = 10.0
    GITHUB_API_TIMEOUT: float = 30.0
    EXIT_AFTER_FIRST_INTERACTION: bool = False

    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @functools.cached_property
    def timeouts(self) -> ListenTimeouts:
        """Build ListenTimeouts from environment variables."""
        return ListenTimeouts(
            window=self.LISTEN_WINDOW_SECONDS,
            drain=self.INFLIGHT_DRAIN_TIMEOUT,
            github_api=self.GITHUB_API_TIMEOUT,
        )

    @property
    def secrets(self) -> list[str]:
        """Credential values that must never reach the logs."""
        return [
            value
            for value in (
                self.GITHUB_TOKEN,
                self.SLACK_BOT_TOKEN,
                self.SLACK_APP_TOKEN,
                self.SLACK_SIGNING_SECRET,
            )
            if value
        ]

    def validate_required(self) -> list[str]:
        """Validate required configuration.

        Every problem is collected so a CI run reports all of them at once.
        Messages never contain credential values.
        """
        errors = []

        valid, result = validate_repository(self.REPOSITORY)
        if not valid:
            errors.append(f"REPOSITORY: {result}")

        valid, result = validate_pr_number(self.PR_NUMBER)
        if not valid:
            errors.append(f"PR_NUMBER: {result}")

        if not self.PR_TITLE.strip():
            errors.append("PR_TITLE is required")
        if not self.PR_URL.strip():
            errors.append("PR_URL is required")

        if not self.AUTHORIZED_USERS.strip():
            errors.append("AUTHORIZED_USERS is required")

        credential_checks = [
            ("GITHUB_TOKEN", validate_token(self.GITHUB_TOKEN)),
            ("SLACK_BOT_TOKEN", validate_token(self.SLACK_BOT_TOKEN, SLACK_BOT_TOKEN_PREFIXES)),
            (
                "SLACK_APP_TOKEN (for Socket Mode)",
                validate_token(self.SLACK_APP_TOKEN, SLACK_APP_TOKEN_PREFIXES),
            ),
            ("SLACK_SIGNING_SECRET", validate_signing_secret(self.SLACK_SIGNING_SECRET)),
            ("SLACK_CHANNEL_ID", validate_token(self.SLACK_CHANNEL_ID)),
        ]
        for name, (valid, result) in credential_checks:
            if not valid:
                errors.append(f"{name} {result}")

        try:
            self.timeouts
        except ValueError as e:
            errors.append(f"Invalid timeout configuration: {e}")

        return errors

    def review_request(self) -> Optional[ReviewRequest]:
        """Build the ReviewRequest, or None if the PR fields are invalid."""
        valid_repo, repository = validate_repository(self.REPOSITORY)
        valid_number, number = validate_pr_number(self.PR_NUMBER)
        if not (valid_repo and valid_number) or not self.PR_TITLE.strip() or not self.PR_URL.strip():
            return None
        return ReviewRequest(
            repository=repository,
            pr_number=number,
            title=self.PR_TITLE.strip(),
            url=self.PR_URL.strip(),
        )
