"""
SessionSet: the refresh tokens currently registered to one user.

Immutable and ordered oldest first. Every operation returns a new set, the
User aggregate stores whatever set it is handed (see User.sessions).
Membership is the server-side half of refresh-token validity.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional


class SessionSet:
    __slots__ = ("_tokens",)

    def __init__(self, tokens: Iterable[str] = ()):
        self._tokens = tuple(tokens)

    def add(self, token: str, limit: Optional[int] = None) -> "SessionSet":
        """Append a token; with `limit`, evict the oldest tokens beyond it."""
        tokens = self._tokens + (token,)
        if limit and len(tokens) > limit:
            tokens = tokens[-limit:]
        return SessionSet(tokens)

    def remove_one(self, token: str) -> "SessionSet":
        if token not in self._tokens:
            return self
        idx = self._tokens.index(token)
        return SessionSet(self._tokens[:idx] + self._tokens[idx + 1:])

    def clear(self) -> "SessionSet":
        return SessionSet()

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionSet):
            return NotImplemented
        return self._tokens == other._tokens

    def __hash__(self) -> int:
        return hash(self._tokens)

    def __repr__(self) -> str:
        return f"<SessionSet size={len(self._tokens)}>"
