"""
Reconstruction service.

Turns stored chunks back into the original artifact, verifies it against
the manifest digest and reports indexing progress.
"""

import base64
import hashlib
from collections.abc import Sequence
from typing import Any

from loguru import logger

from cartridge.config.constants import DEFAULT_CHUNK_LIST_LIMIT, MAX_CHUNK_LIST_LIMIT
from cartridge.models.chunk import Chunk
from cartridge.services.chunk_store import ChunkStore
from cartridge.services.manifest_service import Manifest


def assemble(chunks: Sequence[Chunk], total_size_hint: int = 0) -> bytes:
    """
    Concatenate chunks in index order, stopping at the first gap.

    Args:
        chunks: Chunks sorted by idx
        total_size_hint: Cap on output length (0 for no cap)

    Returns:
        Assembled bytes
    """
    parts = []
    expected_idx = 0
    for chunk in chunks:
        if chunk.idx != expected_idx:
            break
        parts.append(chunk.data[:chunk.length])
        expected_idx += 1

    blob = b"".join(parts)
    if total_size_hint > 0:
        blob = blob[:total_size_hint]
    return blob


def missing_ranges(present: Sequence[int], expected_count: int) -> list[dict[str, int]]:
    """
    Collapse absent indices in [0, expected_count) into inclusive ranges.

    Args:
        present: Stored indices, ascending
        expected_count: Number of chunks the artifact needs

    Returns:
        List of {"from": a, "to": b}
    """
    ranges = []
    start = None
    present_set = set(present)
    for idx in range(expected_count):
        if idx in present_set:
            if start is not None:
                ranges.append({"from": start, "to": idx - 1})
                start = None
        elif start is None:
            start = idx
    if start is not None:
        ranges.append({"from": start, "to": expected_count - 1})
    return ranges


class ReconstructionService:
    """Read-side queries over the chunk store."""

    def __init__(self, store: ChunkStore) -> None:
        """
        Initialize reconstruction service.

        Args:
            store: Chunk store
        """
        self.store = store

    async def reconstruct(self, game_id: int, total_size_hint: int = 0) -> bytes:
        """
        Rebuild an artifact from its stored chunks.

        Output shorter than the manifest's total_size means the artifact
        is incomplete.

        Args:
            game_id: Payload identifier
            total_size_hint: Expected size (0 if unknown)

        Returns:
            Artifact bytes (empty when nothing is stored)
        """
        chunks = await self.store.all(game_id)
        return assemble(chunks, total_size_hint)

    async def verify(self, manifest: Manifest) -> dict[str, Any]:
        """
        Hash the reconstructed artifact and compare with the manifest.

        A mismatch is a result, not an error.

        Args:
            manifest: Artifact manifest

        Returns:
            Dict with sha256, matches, expected_sha, size and complete
        """
        blob = await self.reconstruct(manifest.game_id, manifest.total_size)
        computed = hashlib.sha256(blob).hexdigest()
        matches = computed == manifest.expected_sha256.lower()

        if not matches:
            logger.debug(
                f"[Verify] game_id={manifest.game_id} size={len(blob)}/"
                f"{manifest.total_size} hash mismatch"
            )

        return {
            "sha256": computed,
            "matches": matches,
            "expected_sha": manifest.expected_sha256,
            "size": len(blob),
            "complete": matches and len(blob) == manifest.total_size,
        }

    async def status(self, manifest: Manifest) -> dict[str, Any]:
        """
        Indexing progress for one artifact.

        Args:
            manifest: Artifact manifest

        Returns:
            Dict with max_indexed_height, chunk_count, missing_ranges and
            missing_tx_hashes
        """
        indices = await self.store.indices(manifest.game_id)
        stored_hashes = await self.store.distinct_tx_hashes(manifest.game_id)
        max_height = await self.store.max_height()

        return {
            "max_indexed_height": max_height,
            "chunk_count": len(indices),
            "missing_ranges": missing_ranges(indices, manifest.chunk_count),
            "missing_tx_hashes": [
                tx_hash
                for tx_hash in dict.fromkeys(manifest.expected_tx_hashes)
                if tx_hash not in stored_hashes
            ],
        }

    async def list_chunks(
        self,
        game_id: int,
        from_index: int = 0,
        limit: int = DEFAULT_CHUNK_LIST_LIMIT,
    ) -> list[dict[str, Any]]:
        """
        Page through stored chunks.

        Args:
            game_id: Payload identifier
            from_index: First index to include
            limit: Page size, clamped to 1..MAX_CHUNK_LIST_LIMIT

        Returns:
            Chunk dicts with base64 and hex encoded bytes
        """
        limit = max(1, min(limit, MAX_CHUNK_LIST_LIMIT))
        chunks = await self.store.range(game_id, max(from_index, 0), limit)
        return [
            {
                "idx": chunk.idx,
                "len": chunk.length,
                "data_base64": base64.b64encode(chunk.data).decode("ascii"),
                "data_hex": chunk.data.hex(),
                "tx_hash": chunk.tx_hash,
                "height": chunk.height,
            }
            for chunk in chunks
        ]
