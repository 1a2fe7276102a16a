"""Session lookup.

Sessions are issued by the surrounding dashboard; this process only resolves
bearer tokens to user ids.
"""
from __future__ import annotations

import secrets
from typing import Protocol


class SessionRepository(Protocol):
    def register(self, user_id: str, token: str | None = None) -> str: ...

    def resolve(self, token: str) -> str | None: ...

    def revoke(self, token: str) -> None: ...

    def reset(self) -> None: ...


class InMemorySessionRepository:
    def __init__(self) -> None:
        self._tokens: dict[str, str] = {}

    def register(self, user_id: str, token: str | None = None) -> str:
        if not user_id:
            raise ValueError("user_id is required")
        token = token or secrets.token_urlsafe(24)
        self._tokens[token] = user_id
        return token

    def resolve(self, token: str) -> str | None:
        return self._tokens.get(token)

    def revoke(self, token: str) -> None:
        self._tokens.pop(token, None)

    def reset(self) -> None:
        self._tokens.clear()


_sessions = InMemorySessionRepository()


def get_session_repository() -> InMemorySessionRepository:
    return _sessions
