"""
Nimiq RPC package.

JSON-RPC client that absorbs reply-shape differences between node
deployments.
"""

from cartridge.services.nimiq_rpc.client import NimiqRPC
from cartridge.services.nimiq_rpc.exceptions import (
    RpcError,
    RpcNotFoundError,
    RpcProtocolError,
    RpcTransportError,
)
from cartridge.services.nimiq_rpc.types import Block, Transaction

__all__ = [
    "Block",
    "NimiqRPC",
    "RpcError",
    "RpcNotFoundError",
    "RpcProtocolError",
    "RpcTransportError",
    "Transaction",
]
