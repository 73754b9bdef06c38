import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager


class KeyedLock:
    """
    Registry of asyncio locks keyed by an arbitrary hashable value.
    Entries are dropped once no task holds or waits on them.
    """

    def __init__(self):
        self._locks: dict = {}
        self._users: defaultdict = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self):
        return len(self._locks)
