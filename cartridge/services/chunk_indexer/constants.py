"""
Chunk Indexer Constants.

Outcomes of processing one transaction payload.
"""

# Chunk decoded and stored
OUTCOME_STORED = "stored"

# Payload carries no chunk
OUTCOME_ABSENT = "absent"

# Payload is tagged but its header is invalid
OUTCOME_MALFORMED = "malformed"

# block_scan_mode values
BLOCK_SCAN_OFF = "off"
BLOCK_SCAN_ON = "on"
BLOCK_SCAN_AUTO = "auto"
