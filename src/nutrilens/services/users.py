"""User-related business logic."""

from dataclasses import dataclass
from typing import Protocol

from nutrilens.domain.errors import UserAlreadyExistsError
from nutrilens.domain.models import UserRecord


class UserRepository(Protocol):
    """Persistence interface for user accounts."""

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user for an id, if present."""

    def get_user_by_username(self, username: str) -> UserRecord | None:
        """Return the user with a username, if present."""

    def create_user(self, username: str, password: str) -> UserRecord:
        """Create and return a new user record."""


@dataclass
class UserService:
    """Application service for user accounts."""

    repository: UserRepository

    def register(self, username: str, password: str) -> UserRecord:
        """Create a user, refusing usernames that are already taken."""
        if self.repository.get_user_by_username(username) is not None:
            raise UserAlreadyExistsError(f"Username {username!r} is already taken")
        return self.repository.create_user(username, password)

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return a user by id."""
        return self.repository.get_user(user_id)
