"""Process-memory user repository."""

import threading
from dataclasses import dataclass, field
from uuid import uuid4

from nutrilens.domain.models import UserRecord
from nutrilens.services.users import UserRepository


@dataclass
class InMemoryUserRepository(UserRepository):
    """Keeps user accounts in a dict for the lifetime of the process."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_user(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> UserRecord | None:
        with self._lock:
            return next(
                (user for user in self.users.values() if user.username == username),
                None,
            )

    def create_user(self, username: str, password: str) -> UserRecord:
        user = UserRecord(id=str(uuid4()), username=username, password=password)
        with self._lock:
            self.users[user.id] = user
        return user
