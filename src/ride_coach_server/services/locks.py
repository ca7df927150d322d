"""Per-owner serialization of read-compute-write sequences."""

import asyncio


class OwnerLocks:
    """Registry of one asyncio.Lock per owner id.

    Operations for the same owner run one at a time; different owners never
    contend. Locks are not reentrant, so a service holding an owner's lock
    must call the unlocked variants of other services.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, owner_id: str) -> asyncio.Lock:
        """Lock for ``owner_id``, created on first use."""
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = self._locks[owner_id] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._locks)
