"""
Nimiq RPC exceptions.

RpcTransportError and RpcProtocolError are retried on the next indexer
cycle. RpcNotFoundError is an expected outcome for unconfirmed
transactions.
"""


class RpcError(Exception):
    """Base exception for Nimiq RPC failures."""

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        self.message = message
        super().__init__(
            f"{message} (code {code})" if code is not None else message
        )


class RpcTransportError(RpcError):
    """Raised when the node cannot be reached or replies with garbage."""
    pass


class RpcProtocolError(RpcError):
    """Raised on a JSON-RPC error object or an undecodable result."""
    pass


class RpcNotFoundError(RpcError):
    """Raised when a transaction or block does not (yet) exist."""
    pass
