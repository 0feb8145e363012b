"""
Exception types.

Errors raised by the chunk store, codec and manifest layers. RPC errors
live with the client in cartridge.services.nimiq_rpc.exceptions.
"""

from cartridge.services.nimiq_rpc.exceptions import RpcNotFoundError


class MalformedChunkError(ValueError):
    """Raised when a transaction payload looks like a chunk but is not one."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed chunk: {reason}")


class StorageError(Exception):
    """Raised when the chunk store cannot complete an operation."""
    pass


class ManifestError(Exception):
    """Raised when a manifest file cannot be parsed or validated."""
    pass


class ManifestNotFoundError(ManifestError):
    """Raised when a requested manifest does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Manifest not found: {name}")


# Expected outcomes, counted apart from failures
EXPECTED = (
    RpcNotFoundError,
    MalformedChunkError,
)


def is_expected(exc: Exception) -> bool:
    """
    Check if an exception is a normal, non-error outcome.

    Args:
        exc: Exception to check

    Returns:
        True if the exception is expected
    """
    return isinstance(exc, EXPECTED)
