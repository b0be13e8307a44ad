"""
Per-key asyncio locks.

Serializes conflicting operations on the same organization (or the same slug
candidate) inside one process, in addition to the database's own isolation.
"""

from __future__ import annotations

import asyncio
import weakref
from contextlib import AsyncExitStack, asynccontextmanager


def org_key(organization_id) -> str:
    return f"org:{organization_id}"


def slug_key(slug: str) -> str:
    return f"slug:{slug.lower()}"


class KeyedLocks:
    """Registry of asyncio locks addressed by string key."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, *keys: str):
        """Acquire every lock in ``keys`` (sorted, deduplicated) for the block."""
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self.get(key))
            yield
