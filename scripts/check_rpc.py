#!/usr/bin/env python3
"""Check the Nimiq RPC connection."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from cartridge.config.settings import get_settings  # noqa: E402
from cartridge.services.nimiq_rpc import NimiqRPC, RpcError  # noqa: E402


async def check_rpc() -> int:
    settings = get_settings()
    print(f"RPC URL: {settings.nimiq_rpc_url}")

    async with NimiqRPC(settings.nimiq_rpc_url, timeout=settings.rpc_timeout_seconds) as rpc:
        try:
            head = await rpc.head_height()
            print(f"Head height: {head}")
            block = await rpc.block_by_height(head, True)
        except RpcError as e:
            print(f"FAILED: {e}")
            return 1
        print(f"Block {block.number}: {len(block.transactions)} transactions")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(check_rpc()))
