"""
Last-block memo.

Holds, per network, the most recently resolved block together with its
parsed transaction list, so that resolving many transactions out of one
block parses it only once.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, FrozenSet, Optional, Sequence, Tuple

import structlog

from blockchain.codec import ParsedTransaction

logger = structlog.get_logger()


@dataclass(frozen=True)
class MemoEntry:
    block_id: str
    block: str
    transactions: Optional[Tuple[ParsedTransaction, ...]] = None


class LastBlockMemo:
    """
    Single-entry-per-network lookaside cache of the last resolved block.

    Entries are immutable and always replaced whole. Callers that need a
    read, invalidate and write sequence to be atomic across suspension
    points hold the network for the duration.
    """

    def __init__(self):
        self._entries: Dict[str, MemoEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, network: str) -> AsyncIterator[None]:
        """
        Hold exclusive access to a network's entry.

        The network's lock lives only while it has holders or an entry, so
        networks that never resolve a block leave nothing behind.
        """
        lock = self._locks.get(network)
        if lock is None:
            lock = self._locks[network] = asyncio.Lock()
        self._holders[network] = self._holders.get(network, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._holders[network] -= 1
            if not self._holders[network]:
                del self._holders[network]
                if network not in self._entries:
                    del self._locks[network]

    @property
    def networks(self) -> FrozenSet[str]:
        """Networks holding an entry or a lock."""
        return frozenset(self._entries) | frozenset(self._locks)

    def get(self, network: str) -> Optional[MemoEntry]:
        return self._entries.get(network)

    def set(
        self,
        network: str,
        block_id: str,
        block: str,
        transactions: Optional[Sequence[ParsedTransaction]] = None
    ) -> MemoEntry:
        """Replace the network's entry."""
        entry = MemoEntry(
            block_id=block_id,
            block=block,
            transactions=tuple(transactions) if transactions is not None else None,
        )
        previous = self._entries.get(network)
        self._entries[network] = entry

        if previous is None or previous.block_id != block_id:
            logger.debug("last_block_memo_replaced", network=network, block=block_id)

        return entry

    def invalidate(self, network: str) -> None:
        if self._entries.pop(network, None) is not None:
            logger.debug("last_block_memo_invalidated", network=network)

    def __contains__(self, network: str) -> bool:
        return network in self._entries

    def __len__(self) -> int:
        return len(self._entries)
