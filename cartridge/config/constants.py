"""
Application constants.

Centralized constants for the chunk wire format, RPC and indexing.
"""

# ========================================================================
# CHUNK WIRE FORMAT
# ========================================================================

# Magic tag at the start of every chunk-bearing payload
CHUNK_MAGIC = b"DOOM"

# magic(4) + game_id(4) + chunk_idx(4) + length(1)
CHUNK_HEADER_SIZE = 13

# Maximum chunk payload bytes per transaction
CHUNK_MAX = 51

# Largest value representable by the u32 header fields
U32_MAX = 0xFFFFFFFF

# ========================================================================
# RPC CONSTANTS
# ========================================================================

# Node JSON-RPC operation timeout (in seconds)
RPC_TIMEOUT = 30.0

# Default page size for address transaction listings
RPC_ADDRESS_TX_LIMIT = 500

# Node method names
RPC_METHOD_BLOCK_NUMBER = "getBlockNumber"
RPC_METHOD_BLOCK_BY_NUMBER = "getBlockByNumber"
RPC_METHOD_TX_BY_HASH = "getTransactionByHash"
RPC_METHOD_TXS_BY_ADDRESS = "getTransactionsByAddress"

# JSON-RPC 2.0 reserved codes: parse error, invalid request, method not
# found, invalid params
RPC_PROTOCOL_ERROR_CODES = (-32700, -32600, -32601, -32602)

# ========================================================================
# INDEXER CONSTANTS
# ========================================================================

# Blocks scanned per cycle before yielding to the next tick
MAX_BLOCKS_PER_CYCLE = 100

# Default pipeline tick (in seconds)
POLL_INTERVAL_SECONDS = 2

# Name of the block-scan cursor row
BLOCK_SCAN_CURSOR = "block_scan"

# ========================================================================
# API CONSTANTS
# ========================================================================

DEFAULT_CHUNK_LIST_LIMIT = 1000
MAX_CHUNK_LIST_LIMIT = 10000

# Grace period for the HTTP server to drain on shutdown (in seconds)
HTTP_SHUTDOWN_GRACE_SECONDS = 5.0
