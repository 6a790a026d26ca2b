"""Shared fixtures for resolver tests."""
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from bitcoin.core import CBlock, COutPoint, CTransaction, CTxIn, CTxOut, b2lx, b2x
from bitcoin.core.script import CScript

from cache.core import MemoryCache
from error_handling.errors import UpstreamError
from resolver.engine import Resolver
from resolver.memo import LastBlockMemo


def make_transaction(n: int) -> CTransaction:
    """Create a distinct spendable-looking transaction."""
    return CTransaction(
        [CTxIn(COutPoint(bytes([n % 256]) * 32, n), CScript(bytes([0x51])))],
        [CTxOut(50000 + n, CScript(bytes([0x51])))]
    )


def make_block(transactions: List[CTransaction], nonce: int = 0) -> str:
    """Serialize a block holding the transactions, as hex."""
    block = CBlock(nVersion=1, nTime=1700000000, nBits=0x1d00ffff, nNonce=nonce, vtx=transactions)
    return b2x(block.serialize())


def txid(tx: CTransaction) -> str:
    return b2lx(tx.GetTxid())


def txhex(tx: CTransaction) -> str:
    return b2x(tx.serialize())


class FakeChain:
    """Chain client double serving blocks and transactions from dicts."""

    def __init__(self, blocks: Optional[Dict[str, str]] = None,
                 transactions: Optional[Dict[str, str]] = None):
        self.blocks = blocks or {}
        self.transactions = transactions or {}
        self.fetch_block = AsyncMock(side_effect=self._fetch_block)
        self.fetch_transaction = AsyncMock(side_effect=self._fetch_transaction)
        self.close = AsyncMock()

    async def _fetch_block(self, network, block_id):
        if block_id not in self.blocks:
            raise UpstreamError("getblock error -5: Block not found")
        return self.blocks[block_id]

    async def _fetch_transaction(self, network, transaction_id):
        if transaction_id not in self.transactions:
            raise UpstreamError("getrawtransaction error -5: No such mempool or blockchain transaction")
        return self.transactions[transaction_id]


class SpyCache(MemoryCache):
    """Memory cache recording every read and write."""

    def __init__(self):
        super().__init__()
        self.gets = []
        self.sets = []

    async def get(self, type, key):
        self.gets.append((type, key))
        return await super().get(type, key)

    async def set(self, type, key, value, ttl=None):
        self.sets.append((type, key, value, ttl))
        await super().set(type, key, value, ttl)


@pytest.fixture
def transactions():
    return [make_transaction(n) for n in range(4)]


@pytest.fixture
def chain(transactions):
    """Chain with block B1 holding all test transactions, also fetchable directly."""
    return FakeChain(
        blocks={"B1": make_block(transactions)},
        transactions={txid(tx): txhex(tx) for tx in transactions}
    )


@pytest.fixture
def cache():
    return SpyCache()


@pytest.fixture
def memo():
    return LastBlockMemo()


@pytest.fixture
def resolver(chain, cache, memo):
    return Resolver(chain, cache=cache, memo=memo)
