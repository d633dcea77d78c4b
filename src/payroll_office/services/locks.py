"""In-process mutual exclusion keyed by computation key."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, SessionTransaction

from payroll_office.exceptions import ConflictError

_REGISTRIES_KEY = "payroll_office.compute_lock_registries"


class KeyedLock:
    """Registry of per-key locks.

    ``hold`` fails fast with ConflictError when the key is already held,
    rather than queueing behind the holder. Different keys never contend.

    Exclusion only spans holders of the same registry: every context that
    may compute concurrently must be given one shared instance.
    """

    def __init__(self) -> None:
        self._held: dict[str, object] = {}

    def is_held(self, key: str) -> bool:
        return key in self._held

    def claim(self, key: str, owner: object) -> None:
        """Take ``key`` for ``owner``; re-claiming by the same owner is a no-op."""
        holder = self._held.get(key)
        if holder is owner:
            return
        if holder is not None:
            raise ConflictError(f"Computation already in progress for {key}")
        self._held[key] = owner

    def release(self, key: str, owner: object) -> None:
        if self._held.get(key) is owner:
            del self._held[key]

    def release_owner(self, owner: object) -> None:
        for key in [key for key, holder in self._held.items() if holder is owner]:
            del self._held[key]

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        owner = object()
        self.claim(key, owner)
        try:
            yield
        finally:
            self.release(key, owner)

    def hold_for_transaction(self, key: str, session: AsyncSession) -> None:
        """Hold ``key`` until the session's current transaction commits or rolls back.

        Work written under the key stays excluded until it is durable, and
        the same session may take the key again to recompute.
        """
        sync_session = session.sync_session
        self.claim(key, sync_session)

        registries = sync_session.info.setdefault(_REGISTRIES_KEY, set())
        if self not in registries:
            registries.add(self)
            event.listen(sync_session, "after_transaction_end", self._on_transaction_end)

    def _on_transaction_end(self, session: Session, transaction: SessionTransaction) -> None:
        # Savepoints end inside the outer transaction
        if transaction.parent is None:
            self.release_owner(session)
