#!/usr/bin/env python3
"""
Generate chunk payloads for a file.

Prints one hex payload per chunk, ready to be placed in a transaction's
data field, and optionally writes a manifest skeleton.

Usage:
    python scripts/generate_payloads.py game.zip --game-id 7
    python scripts/generate_payloads.py game.zip --game-id 7 --manifest manifests/game.json
"""

import argparse
import hashlib
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from cartridge.config.constants import CHUNK_MAX  # noqa: E402
from cartridge.services.chunk_codec import (  # noqa: E402
    encode_payload_hex,
    split_into_chunks,
)


def build_manifest(path: Path, blob: bytes, game_id: int, chunk_size: int) -> dict:
    """Manifest skeleton; expected_tx_hashes is filled in after upload."""
    return {
        "game_id": game_id,
        "filename": path.name,
        "total_size": len(blob),
        "chunk_size": chunk_size,
        "sha256": hashlib.sha256(blob).hexdigest(),
        "sender_address": "",
        "network": "mainnet",
        "expected_tx_hashes": [],
    }


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Split a file into chunk payloads"
    )
    parser.add_argument("file", type=Path, help="File to split")
    parser.add_argument("--game-id", type=int, required=True, help="Game ID (u32)")
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=CHUNK_MAX,
        help=f"Bytes per chunk (1..{CHUNK_MAX})",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        help="Write a manifest skeleton to this path",
    )
    args = parser.parse_args()

    if not args.file.is_file():
        parser.error(f"file not found: {args.file}")
    if not 1 <= args.chunk_size <= CHUNK_MAX:
        parser.error(f"--chunk-size must be 1..{CHUNK_MAX}")

    blob = args.file.read_bytes()
    for idx, data in split_into_chunks(blob, args.chunk_size):
        print(encode_payload_hex(args.game_id, idx, data))

    if args.manifest:
        manifest = build_manifest(args.file, blob, args.game_id, args.chunk_size)
        args.manifest.write_text(json.dumps(manifest, indent=2) + "\n")
        print(f"Manifest written to {args.manifest}", file=sys.stderr)


if __name__ == "__main__":
    main()
