"""
Nimiq RPC types.

Decoded views of node replies. Only the fields the indexer needs are kept.
"""

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from cartridge.services.nimiq_rpc.normalizers import as_int


def _str_field(raw: dict, key: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} is not a string")
    return value


@dataclass
class Transaction:
    """A transaction as reported by the node."""

    hash: str
    sender: str = ""
    recipient: str = ""
    data: str = ""  # legacy payload field
    recipient_data: str = ""  # primary payload field
    height: int = 0

    @property
    def payload_hex(self) -> str:
        """Payload hex, preferring recipientData over the legacy field."""
        return self.recipient_data or self.data

    @classmethod
    def from_dict(cls, raw: Any) -> "Transaction":
        """
        Decode a transaction object.

        Args:
            raw: JSON object from the node

        Returns:
            Transaction

        Raises:
            ValueError: If raw is not a transaction object
        """
        if not isinstance(raw, dict):
            raise ValueError("transaction is not an object")

        tx_hash = raw.get("hash")
        if not isinstance(tx_hash, str) or not tx_hash:
            raise ValueError("transaction has no hash")

        height = as_int(raw.get("height")) or 0
        if height == 0:
            height = as_int(raw.get("blockNumber")) or 0

        return cls(
            hash=tx_hash,
            sender=_str_field(raw, "from"),
            recipient=_str_field(raw, "to"),
            data=_str_field(raw, "data"),
            recipient_data=_str_field(raw, "recipientData"),
            height=height,
        )


@dataclass
class Block:
    """A block as reported by the node."""

    number: int
    hash: str = ""
    timestamp: int = 0
    transactions: list[Transaction] = field(default_factory=list)

    @classmethod
    def from_dict(
        cls, raw: Any, require_transactions: bool = False
    ) -> "Block":
        """
        Decode a block object.

        Transactions that fail to decode are dropped.

        Args:
            raw: JSON object from the node
            require_transactions: Reject blocks without a transaction list

        Returns:
            Block

        Raises:
            ValueError: If raw is not a block object
        """
        if not isinstance(raw, dict):
            raise ValueError("block is not an object")

        number = as_int(raw.get("number"))
        if number is None:
            raise ValueError("block has no number")

        raw_txs = raw.get("transactions")
        if raw_txs is None:
            if require_transactions:
                raise ValueError("block has no transaction list")
            raw_txs = []
        elif not isinstance(raw_txs, list):
            raise ValueError("block transactions is not a list")

        transactions = []
        skipped = 0
        for raw_tx in raw_txs:
            try:
                tx = Transaction.from_dict(raw_tx)
            except ValueError as e:
                skipped += 1
                logger.debug(f"[RPC] Block {number}: undecodable transaction: {e}")
                continue
            if tx.height == 0:
                tx.height = number
            transactions.append(tx)

        if skipped:
            logger.warning(
                f"[RPC] Skipped {skipped} undecodable transactions in block {number}"
            )

        return cls(
            number=number,
            hash=raw.get("hash") or "",
            timestamp=as_int(raw.get("timestamp")) or 0,
            transactions=transactions,
        )
