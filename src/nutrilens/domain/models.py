"""Domain models for users."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserRecord:
    """Represents a stored user account."""

    id: str
    username: str
    password: str
