import re

from pygmy_rest.errors import ValidationError

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_.]*$")
USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 36
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72
PASSWORD_MAX_BYTES = 72  # bcrypt ignores (or rejects) anything past 72 bytes


def normalize_username(username: str) -> str:
    """Usernames are unique and case insensitive, stored lower-case."""
    return username.lower()


def validate_username(username: str) -> str:
    """Validate username and return its canonical form.

    Requirements:
    - Between 2 and 36 characters
    - Only letters, numbers, underscores and periods

    Raises:
        ValidationError: If username doesn't meet requirements
    """
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters long"
        )

    if not USERNAME_RE.fullmatch(username):
        raise ValidationError("Usernames can only contain letters, numbers, underscores and periods")

    return normalize_username(username)


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Between 8 and 72 characters
    - At most 72 bytes once UTF-8 encoded

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")

    if len(password) > PASSWORD_MAX_LENGTH or len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LENGTH} characters long")
