"""
Cartridge indexer.

Recovers chunked application payloads embedded in Nimiq transaction data
and serves the reassembled artifacts.
"""

__version__ = "1.0.0"
