"""Password hashing for seeded users (bcrypt)."""

from __future__ import annotations

import asyncio

import bcrypt


class PasswordHasher:
    """
    Salted one-way hashing with a fixed bcrypt work factor.

    `hash_many` hashes on worker threads so a batch of users does not block the event loop.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            # Not a bcrypt hash.
            return False

    async def hash_many(self, passwords: list[str]) -> list[str]:
        return list(await asyncio.gather(*(asyncio.to_thread(self.hash, p) for p in passwords)))
