import re
from typing import Sequence, Union

# owner/name as accepted by GitHub; ':' is reserved as the action token separator
REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
SIGNING_SECRET_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def validate_repository(value: str) -> tuple[bool, str]:
    """
    Validate a repository identifier in "owner/name" form.

    Returns (True, repository) on success, (False, error_message) on failure.
    """
    repository = value.strip()
    if not repository:
        return False, "Repository cannot be empty"

    if not REPOSITORY_PATTERN.match(repository):
        return False, f"Repository must look like 'owner/name', got: {repository!r}"

    return True, repository


def validate_pr_number(value: str) -> tuple[bool, Union[int, str]]:
    """
    Validate a pull request number.

    Returns (True, number) on success, (False, error_message) on failure.
    """
    text = value.strip()
    if not text:
        return False, "PR number cannot be empty"

    try:
        number = int(text)
    except ValueError:
        return False, f"PR number must be numeric, got: {text!r}"

    if number <= 0:
        return False, f"PR number must be positive, got: {number}"

    return True, number


def validate_token(
    value: str,
    prefixes: Sequence[str] = (),
) -> tuple[bool, str]:
    """
    Validate the shape of a credential without echoing it.

    Error messages only ever mention length and expected prefix.
    Returns (True, token) on success, (False, error_message) on failure.
    """
    if not value:
        return False, "is empty"

    if any(char.isspace() for char in value):
        return False, f"contains whitespace (length {len(value)})"

    if prefixes and not value.startswith(tuple(prefixes)):
        expected = " or ".join(f"'{p}'" for p in prefixes)
        return False, f"must start with {expected} (length {len(value)})"

    return True, value


def validate_signing_secret(value: str) -> tuple[bool, str]:
    """Validate a Slack signing secret: 32 lowercase hex characters."""
    if not value:
        return False, "is empty"

    if not SIGNING_SECRET_PATTERN.match(value):
        return False, f"must be 32 lowercase hex characters (length {len(value)})"

    return True, value
