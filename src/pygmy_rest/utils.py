from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def pair_key(user_a: str, user_b: str) -> str:
    """Direction-insensitive key for an unordered pair of user ids."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"
