"""
Nimiq JSON-RPC client.

Issues JSON-RPC 2.0 calls over aiohttp and normalizes the reply shapes of
different node deployments into Transaction and Block objects.
"""

import itertools
import re
from typing import Any

import aiohttp
from loguru import logger

from cartridge.config.constants import (
    RPC_ADDRESS_TX_LIMIT,
    RPC_METHOD_BLOCK_BY_NUMBER,
    RPC_METHOD_BLOCK_NUMBER,
    RPC_METHOD_TX_BY_HASH,
    RPC_METHOD_TXS_BY_ADDRESS,
    RPC_PROTOCOL_ERROR_CODES,
    RPC_TIMEOUT,
)
from cartridge.services.nimiq_rpc.exceptions import (
    RpcError,
    RpcNotFoundError,
    RpcProtocolError,
    RpcTransportError,
)
from cartridge.services.nimiq_rpc.normalizers import (
    parse_head_height,
    unwrap_list,
    unwrap_object,
)
from cartridge.services.nimiq_rpc.param_shapes import BLOCK_PARAM_SHAPES
from cartridge.services.nimiq_rpc.types import Block, Transaction


_NOT_FOUND_RE = re.compile(
    r"\b(transaction|block|tx)\b.*\bnot found\b|unknown (transaction|block)",
    re.IGNORECASE,
)


def _is_not_found(code: Any, message: str) -> bool:
    if code in RPC_PROTOCOL_ERROR_CODES:
        return False
    return _NOT_FOUND_RE.search(message) is not None


class NimiqRPC:
    """
    Client for a Nimiq node's JSON-RPC endpoint.

    Usage:
        async with NimiqRPC("http://localhost:8648") as rpc:
            head = await rpc.head_height()
    """

    def __init__(
        self,
        url: str,
        timeout: float = RPC_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize RPC client.

        Args:
            url: Node JSON-RPC endpoint
            timeout: Per-call timeout in seconds
            session: Existing aiohttp session (owned by the caller)
        """
        self.url = url
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "NimiqRPC":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            logger.debug("[RPC] Session closed")
        self._session = None

    async def call(
        self, method: str, params: list | dict[str, Any] | None = None
    ) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name
            params: Positional list or named-field object

        Returns:
            Raw result value (may be None)

        Raises:
            RpcTransportError: HTTP failure, timeout or non-JSON reply
            RpcNotFoundError: Node error saying the item does not exist
            RpcProtocolError: Any other JSON-RPC error object
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params if params is not None else [],
        }

        try:
            session = await self._get_session()
            async with session.post(
                self.url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status != 200:
                    raise RpcTransportError(
                        f"{method}: HTTP {response.status}",
                        code=response.status,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise RpcTransportError(f"{method}: request failed: {e!r}") from e
        except ValueError as e:
            raise RpcTransportError(f"{method}: invalid JSON reply") from e

        if not isinstance(data, dict):
            raise RpcTransportError(f"{method}: reply is not a JSON object")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                code = error.get("code")
                message = str(error.get("message", "unknown error"))
            else:
                code, message = None, str(error)
            if _is_not_found(code, message):
                raise RpcNotFoundError(f"{method}: {message}", code=code)
            raise RpcProtocolError(f"{method}: {message}", code=code)

        return data.get("result")

    async def head_height(self) -> int:
        """
        Get the current chain head height.

        Returns:
            Head height

        Raises:
            RpcError: Call failed or no reply shape matched
        """
        result = await self.call(RPC_METHOD_BLOCK_NUMBER, {})
        height = parse_head_height(result)
        if height is None:
            raise RpcProtocolError(
                f"{RPC_METHOD_BLOCK_NUMBER}: unexpected result {result!r}"
            )
        return height

    async def block_by_height(
        self, height: int, include_transactions: bool = True
    ) -> Block:
        """
        Get a block, trying each known parameter shape in turn.

        Args:
            height: Block height
            include_transactions: Ask for the transaction list

        Returns:
            Decoded block

        Raises:
            RpcError: The last failure when every shape failed
        """
        last_error: RpcError | None = None

        for shape_name, build in BLOCK_PARAM_SHAPES:
            params = build(height, include_transactions)
            try:
                result = await self.call(RPC_METHOD_BLOCK_BY_NUMBER, params)
            except RpcTransportError:
                # Another param shape will not fix an unreachable node
                raise
            except RpcError as e:
                last_error = e
                continue

            if result is None:
                last_error = RpcNotFoundError(f"block {height} not found")
                continue

            raw = unwrap_object(result) or result
            try:
                block = Block.from_dict(
                    raw, require_transactions=include_transactions
                )
            except ValueError as e:
                last_error = RpcProtocolError(
                    f"block {height} ({shape_name}): {e}"
                )
                continue

            if shape_name != BLOCK_PARAM_SHAPES[0][0]:
                logger.debug(f"[RPC] Block {height} decoded with {shape_name} params")
            return block

        raise last_error or RpcProtocolError(f"block {height}: no param shapes")

    async def transaction_by_hash(self, tx_hash: str) -> Transaction:
        """
        Get a transaction by hash.

        Args:
            tx_hash: Transaction hash

        Returns:
            Decoded transaction

        Raises:
            RpcNotFoundError: Transaction unknown to the node
            RpcError: Transport or protocol failure
        """
        result = await self.call(RPC_METHOD_TX_BY_HASH, {"hash": tx_hash})
        if result is None:
            raise RpcNotFoundError(f"transaction {tx_hash} not found")

        try:
            return Transaction.from_dict(result)
        except ValueError:
            pass

        inner = unwrap_object(result)
        if inner is None:
            if isinstance(result, dict) and "data" in result and result["data"] is None:
                raise RpcNotFoundError(f"transaction {tx_hash} not found")
            raise RpcProtocolError(
                f"transaction {tx_hash}: unexpected result shape"
            )

        try:
            return Transaction.from_dict(inner)
        except ValueError as e:
            raise RpcProtocolError(f"transaction {tx_hash}: {e}") from e

    async def transactions_by_address(
        self,
        address: str,
        max_count: int = RPC_ADDRESS_TX_LIMIT,
        before_hash: str | None = None,
    ) -> list[Transaction]:
        """
        Get transactions involving an address.

        Elements that fail to decode are skipped.

        Args:
            address: Nimiq address
            max_count: Max transactions (0 for node default)
            before_hash: Page before this transaction hash

        Returns:
            List of transactions

        Raises:
            RpcError: Call failed or result holds no transaction list
        """
        params: dict[str, Any] = {"address": address}
        if max_count > 0:
            params["max"] = max_count
        if before_hash:
            params["beforeHash"] = before_hash

        result = await self.call(RPC_METHOD_TXS_BY_ADDRESS, params)
        items = unwrap_list(result)
        if items is None:
            raise RpcProtocolError(
                f"{RPC_METHOD_TXS_BY_ADDRESS}: no transaction array in result"
            )

        transactions = []
        skipped = 0
        for item in items:
            try:
                transactions.append(Transaction.from_dict(item))
            except ValueError:
                skipped += 1

        if skipped:
            logger.debug(
                f"[RPC] Skipped {skipped} undecodable transactions for {address}"
            )
        return transactions
