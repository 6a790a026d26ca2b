"""
Decoding of serialized blocks into their transactions.

Blocks arrive from the node (or the cache) as hex strings in the standard
bitcoin wire format. python-bitcoinlib does the actual deserialization; this
module only reduces each transaction to the two things resolution needs:
its display-order id and its own serialized hex.
"""
from dataclasses import dataclass
from typing import List

import structlog
from bitcoin.core import CBlock, b2lx, b2x

from error_handling.errors import CodecError

logger = structlog.get_logger()


@dataclass(frozen=True)
class ParsedTransaction:
    """A transaction taken out of a block."""

    id: str
    hex: str


def parse_block(block_hex: str) -> List[ParsedTransaction]:
    """
    Parse a raw block into its ordered transaction list.

    Args:
        block_hex: Serialized block as a hex string

    Returns:
        Transactions in block order

    Raises:
        CodecError: If the data is not hex or is not a well formed block
    """
    try:
        raw = bytes.fromhex(block_hex)
    except (TypeError, ValueError) as e:
        raise CodecError(f"block is not valid hex: {e}") from e

    try:
        block = CBlock.deserialize(raw)
    except Exception as e:
        logger.warning("block_decode_failed", size=len(raw), error=str(e))
        raise CodecError(f"failed to derive transactions from block: {e}") from e

    return [
        ParsedTransaction(id=b2lx(tx.GetTxid()), hex=b2x(tx.serialize()))
        for tx in block.vtx
    ]
