"""
Server Initialization Module.

Initialization logic split into focused modules:
- logging: Logger configuration
- services: Database, RPC, indexer and query service wiring
- shutdown: Graceful shutdown handler
"""

__all__ = []
