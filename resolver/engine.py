"""
Transaction resolution engine.

Resolves a raw transaction by id, either directly through the chain client
or out of a specific block, with cache-aside lookups in front of both.

A request runs a fixed sequence of stages. Each stage has a guard over the
request and the outputs of earlier stages; a stage whose guard is false is
skipped, which is not a failure.

    stage             needs                          runs when
    ----------------  -----------------------------  ----------------------------------------------
    validate          request                        always
    get_cached_tx     validate                       no block, cache enabled
    get_cached_block  get_cached_tx                  block, cache enabled, no cached tx
    get_fresh_block   get_cached_block               block, no block from memo or cache
    get_fresh_tx      get_cached_tx                  no block, no cached tx
    set_cached_tx     get_cached_tx, get_fresh_tx    no block, cache enabled, fresh tx, no cached tx
    tx_in_block       get_cached_block, fresh_block  block, a raw block is available
    set_cached_block  fresh_block, tx_in_block       cache enabled, block came from the chain and decoded
    result            get_fresh_tx, tx_in_block      always

Cache reads that fail count as misses and cache writes that fail are only
logged. Chain and codec failures fail the request. A block that does not
decode is never written to the cache; a block that decodes but lacks the
transaction is written and memoized before NotFound is raised.

For block scoped requests the network's memo is held from the memo lookup
through the memo update, so concurrent requests against one network never
observe a block paired with another block's transactions.
"""
import contextlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import structlog

from blockchain.codec import ParsedTransaction, parse_block
from blockchain.constants import (
    BLOCK_CACHE,
    CACHE_RESULT_TTL,
    CACHE_TYPE_BLOCK,
    CACHE_TYPE_TX,
    MEMO_CACHE,
    TX_CACHE,
)
from cache.monitoring import CacheMonitor, get_monitor
from error_handling.errors import InvalidArgument, NotFound
from .memo import LastBlockMemo
from .models import CacheKind, LookupRequest, ResolvedTransaction

logger = structlog.get_logger()


@dataclass
class Resolution:
    """Outputs of the stages run so far for one request."""

    request: LookupRequest
    cache_enabled: bool
    cached_tx: Optional[str] = None
    cached_block: Optional[str] = None
    fresh_block: Optional[str] = None
    fresh_tx: Optional[str] = None
    transactions: Optional[Tuple[ParsedTransaction, ...]] = None
    tx_in_block: Optional[str] = None

    @property
    def block(self) -> Optional[str]:
        return self.request.block


@dataclass(frozen=True)
class Stage:
    name: str
    guard: Callable[[Resolution], bool]
    run: Callable[[Resolution], Any]


class Resolver:
    """Resolves transactions through memo, cache and chain."""

    def __init__(
        self,
        chain,
        cache=None,
        memo: Optional[LastBlockMemo] = None,
        ttl: int = CACHE_RESULT_TTL,
        monitor: Optional[CacheMonitor] = None
    ):
        """
        Args:
            chain: Chain client with fetch_block and fetch_transaction
            cache: JSON cache store, or None to run without a cache
            memo: Last-block memo, a private one is created when omitted
            ttl: Lifetime in seconds of written cache entries
            monitor: Cache metrics recorder
        """
        self.chain = chain
        self.cache = cache
        self.memo = memo if memo is not None else LastBlockMemo()
        self.ttl = ttl
        self.monitor = monitor or get_monitor()

        self.stages = (
            Stage("get_cached_tx",
                  lambda r: not r.block and r.cache_enabled,
                  self._get_cached_tx),
            Stage("get_cached_block",
                  lambda r: bool(r.block) and r.cache_enabled and not r.cached_tx,
                  self._get_cached_block),
            Stage("get_fresh_block",
                  lambda r: bool(r.block) and not r.cached_block,
                  self._get_fresh_block),
            Stage("get_fresh_tx",
                  lambda r: not r.block and not r.cached_tx,
                  self._get_fresh_tx),
            Stage("set_cached_tx",
                  lambda r: not r.block and r.cache_enabled and not r.cached_tx and bool(r.fresh_tx),
                  self._set_cached_tx),
            Stage("tx_in_block",
                  lambda r: bool(r.block) and bool(r.fresh_block or r.cached_block),
                  self._tx_in_block),
            Stage("set_cached_block",
                  lambda r: (r.cache_enabled and bool(r.fresh_block) and not r.cached_block
                             and r.transactions is not None),
                  self._set_cached_block),
        )

    async def get_transaction(self, **kwargs) -> ResolvedTransaction:
        """Resolve from keyword arguments (id, network, block, cache)."""
        return await self.resolve(LookupRequest(**kwargs))

    async def resolve(self, request: LookupRequest) -> ResolvedTransaction:
        """
        Resolve a raw transaction.

        Raises:
            InvalidArgument: The id or network is missing
            NotFound: The transaction is not in the requested block
            CodecError: The block could not be decoded
            UpstreamError: The chain client failed
        """
        self._validate(request)

        resolution = Resolution(
            request=request,
            cache_enabled=request.cache == CacheKind.STORE and self.cache is not None,
        )

        if request.block:
            guard = self.memo.hold(request.network)
        else:
            guard = contextlib.nullcontext()

        async with guard:
            for stage in self.stages:
                if stage.guard(resolution):
                    logger.debug("resolution_stage", stage=stage.name, id=request.id,
                                 network=request.network, block=request.block)
                    await stage.run(resolution)

        return self._result(resolution)

    def _validate(self, request: LookupRequest) -> None:
        if not request.id:
            raise InvalidArgument("missing transaction id")

        if not request.network:
            raise InvalidArgument("missing network")

    async def _get_cached_tx(self, r: Resolution) -> None:
        value = await self._read_cache(TX_CACHE, CACHE_TYPE_TX, r.request.id)
        transaction = value.get("transaction") if value else None

        if isinstance(transaction, str) and transaction:
            r.cached_tx = transaction

    async def _get_cached_block(self, r: Resolution) -> None:
        network = r.request.network
        entry = self.memo.get(network)

        if entry is not None and entry.block_id == r.block and entry.block:
            self.monitor.record_hit(MEMO_CACHE)
            r.cached_block = entry.block
            return

        self.monitor.record_miss(MEMO_CACHE)

        # A different block is being looked at, drop the memo for this network
        if entry is not None:
            self.memo.invalidate(network)

        value = await self._read_cache(BLOCK_CACHE, CACHE_TYPE_BLOCK, r.block)
        block = value.get("block") if value else None

        if isinstance(block, str) and block:
            r.cached_block = block

    async def _get_fresh_block(self, r: Resolution) -> None:
        r.fresh_block = await self.chain.fetch_block(r.request.network, r.block)

    async def _get_fresh_tx(self, r: Resolution) -> None:
        r.fresh_tx = await self.chain.fetch_transaction(r.request.network, r.request.id)

    async def _set_cached_block(self, r: Resolution) -> None:
        await self._write_cache(BLOCK_CACHE, CACHE_TYPE_BLOCK, r.block, {"block": r.fresh_block})

    async def _set_cached_tx(self, r: Resolution) -> None:
        await self._write_cache(TX_CACHE, CACHE_TYPE_TX, r.request.id, {"transaction": r.fresh_tx})

    async def _tx_in_block(self, r: Resolution) -> None:
        network = r.request.network
        block = r.fresh_block or r.cached_block

        entry = self.memo.get(network)
        if entry is not None and entry.block_id == r.block and entry.transactions is not None:
            transactions = entry.transactions
        else:
            transactions = parse_block(block)
            logger.debug("block_parsed", network=network, block=r.block,
                         transactions=len(transactions))

        r.transactions = self.memo.set(network, r.block, block, transactions).transactions

        wanted = r.request.id.lower()
        match = next((tx for tx in r.transactions if tx.id == wanted), None)

        if match is not None:
            r.tx_in_block = match.hex

    def _result(self, r: Resolution) -> ResolvedTransaction:
        if r.block:
            if not r.tx_in_block:
                raise NotFound("transaction not present in block")
            return ResolvedTransaction(transaction=r.tx_in_block)

        return ResolvedTransaction(transaction=r.fresh_tx or r.cached_tx)

    async def _read_cache(self, cache_type: str, type: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self.monitor.timed(cache_type, "get"):
                value = await self.cache.get(type, key)
        except Exception as e:
            self.monitor.record_error(cache_type, "get")
            logger.warning("cache_read_failed", type=type, key=key, error=str(e))
            return None

        if value:
            self.monitor.record_hit(cache_type)
            logger.debug("cache_hit", type=type, key=key)
        else:
            self.monitor.record_miss(cache_type)

        return value if isinstance(value, dict) else None

    async def _write_cache(self, cache_type: str, type: str, key: str, value: Dict[str, Any]) -> None:
        try:
            with self.monitor.timed(cache_type, "set"):
                await self.cache.set(type, key, value, self.ttl)
        except Exception as e:
            self.monitor.record_error(cache_type, "set")
            logger.warning("cache_write_failed", type=type, key=key, error=str(e))
