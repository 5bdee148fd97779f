from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User, UserFilter


class UserRepository(Protocol):
    """Repository interface for participants.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def query_users(self, user_filter: UserFilter) -> Sequence[User]:
        raise NotImplementedError

    def count_users(self, user_filter: UserFilter) -> int:
        raise NotImplementedError
