"""Constants for transaction resolution."""

# Cache constants
CACHE_RESULT_TTL = 600  # Cached blocks and transactions live 10 minutes
CACHE_TYPE_BLOCK = "get_transaction_block"
CACHE_TYPE_TX = "get_transaction_tx"

# Metric labels
BLOCK_CACHE = "block"
TX_CACHE = "transaction"
MEMO_CACHE = "memo"

# JSON-RPC methods of a bitcoind-compatible node
RPC_GET_BLOCK = "getblock"
RPC_GET_RAW_TRANSACTION = "getrawtransaction"
RAW_BLOCK_VERBOSITY = 0  # getblock verbosity returning serialized hex
