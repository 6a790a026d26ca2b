"""
Chain client for bitcoind-compatible nodes.

Fetches raw blocks and raw transactions over JSON-RPC. Each network name
maps to its own node endpoint.
"""
import asyncio
import itertools
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from error_handling.errors import UpstreamError
from .constants import RAW_BLOCK_VERBOSITY, RPC_GET_BLOCK, RPC_GET_RAW_TRANSACTION

logger = structlog.get_logger()


class ChainClient:
    """
    Client for fetching raw chain data from per-network nodes.

    Calls are attempted exactly once. Any transport failure, HTTP error or
    JSON-RPC error object surfaces as an UpstreamError.
    """

    def __init__(
        self,
        rpc_urls: Dict[str, str],
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0
    ):
        """
        Initialize the chain client.

        Args:
            rpc_urls: JSON-RPC endpoint per network name
            user: Optional basic auth user
            password: Optional basic auth password
            timeout: Total timeout in seconds for one call
        """
        self.rpc_urls = dict(rpc_urls)
        self.auth = aiohttp.BasicAuth(user, password or "") if user else None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.info("chain_client_closed")
        self.session = None

    async def fetch_block(self, network: str, block_id: str) -> str:
        """Get a full raw block as hex."""
        block = await self._call(network, RPC_GET_BLOCK, [block_id, RAW_BLOCK_VERBOSITY])
        logger.debug("block_fetched", network=network, block=block_id, size=len(block) // 2)
        return block

    async def fetch_transaction(self, network: str, transaction_id: str) -> str:
        """Get a raw transaction as hex."""
        transaction = await self._call(network, RPC_GET_RAW_TRANSACTION, [transaction_id])
        logger.debug("transaction_fetched", network=network, id=transaction_id)
        return transaction

    def _url_for(self, network: str) -> str:
        url = self.rpc_urls.get(network)
        if not url:
            raise UpstreamError(f"unknown network '{network}'")
        return url

    async def _call(self, network: str, method: str, params: List[Any]) -> str:
        url = self._url_for(network)

        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout, auth=self.auth)

        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            async with self.session.post(url, json=payload) as response:
                # bitcoind reports RPC errors with a 500 status and a JSON body
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    response.raise_for_status()
                    raise UpstreamError(f"{method} returned a non-JSON response")
        except aiohttp.ClientError as e:
            logger.warning("chain_rpc_failed", network=network, method=method, error=str(e))
            raise UpstreamError(f"{method} failed: {e}") from e
        except asyncio.TimeoutError as e:
            logger.warning("chain_rpc_timeout", network=network, method=method)
            raise UpstreamError(f"{method} timed out") from e

        if not isinstance(data, dict):
            raise UpstreamError(f"{method} returned an unexpected response")

        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.warning("chain_rpc_error", network=network, method=method,
                           rpc_code=code, message=message)
            raise UpstreamError(f"{method} error {code}: {message}")

        result = data.get("result")
        if not isinstance(result, str) or not result:
            raise UpstreamError(f"{method} returned no data")

        return result
