from __future__ import annotations

from typing import Protocol


class MessageRepository(Protocol):
    def count_all(self) -> int:
        raise NotImplementedError
