"""Per-proposal single-writer locks."""
import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ProposalLocks:
    """
    One asyncio.Lock per proposal id.

    Entries are weakly referenced, so a lock disappears once no coroutine
    holds or waits on it. Different proposals never share a lock.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, proposal_id: str) -> asyncio.Lock:
        lock = self._locks.get(proposal_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[proposal_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, proposal_id: str) -> AsyncIterator[None]:
        lock = self._lock_for(proposal_id)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


_proposal_locks = ProposalLocks()


def get_proposal_locks() -> ProposalLocks:
    """Process-wide lock registry shared by all request sessions."""
    return _proposal_locks
