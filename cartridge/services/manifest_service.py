"""
Manifest service.

Loads artifact manifests (one JSON file per artifact) from a directory.
Manifests are read fresh on every lookup so new uploads show up without a
restart.
"""

import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cartridge.config.constants import CHUNK_MAX, U32_MAX
from cartridge.utils.exceptions import ManifestError, ManifestNotFoundError

_SHA256_RE = re.compile(r"^[0-9a-f]{64}$")


class Manifest(BaseModel):
    """Metadata describing one chunked artifact."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    game_id: int = Field(ge=0, le=U32_MAX)
    filename: str
    total_size: int = Field(ge=0)
    chunk_size: int = Field(default=CHUNK_MAX, ge=1, le=CHUNK_MAX)
    expected_sha256: str = Field(alias="sha256")
    sender_address: str = ""
    network: str = ""
    expected_tx_hashes: list[str] = Field(default_factory=list)
    start_height: int | None = None
    end_height: int | None = None
    executable: str | None = None

    @field_validator("expected_sha256")
    @classmethod
    def validate_sha256(cls, v: str) -> str:
        """Lower-case and check the expected digest."""
        value = v.strip().lower()
        if not _SHA256_RE.match(value):
            raise ValueError("sha256 must be 64 hex characters")
        return value

    @field_validator("expected_tx_hashes", mode="before")
    @classmethod
    def default_tx_hashes(cls, v: Any) -> Any:
        """Treat null as an empty hash list."""
        return [] if v is None else v

    @property
    def chunk_count(self) -> int:
        """Number of chunks needed to cover total_size."""
        return -(-self.total_size // self.chunk_size)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the on-disk field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


def sanitize_name(name: str) -> str:
    """Strip path separators and parent references from a manifest name."""
    for token in ("/", "\\", ".."):
        name = name.replace(token, "")
    return name.strip()


class ManifestService:
    """Manifest supplier backed by a directory of *.json files."""

    def __init__(self, manifests_dir: str | Path) -> None:
        """
        Initialize manifest service.

        Args:
            manifests_dir: Directory holding manifest files
        """
        self.manifests_dir = Path(manifests_dir)

    def _manifest_files(self) -> list[Path]:
        if not self.manifests_dir.is_dir():
            logger.warning(
                f"[Manifest] Directory not found: {self.manifests_dir}"
            )
            return []
        return sorted(
            path
            for path in self.manifests_dir.iterdir()
            if path.is_file() and path.suffix.lower() == ".json"
        )

    @staticmethod
    def _load(path: Path) -> Manifest:
        try:
            return Manifest.model_validate_json(path.read_bytes())
        except OSError as e:
            raise ManifestError(f"Cannot read {path.name}: {e}") from e
        except ValidationError as e:
            raise ManifestError(
                f"Invalid manifest {path.name}: {e.error_count()} errors"
            ) from e

    def list_manifests(self) -> list[tuple[str, Manifest]]:
        """
        Load every valid manifest.

        Invalid or unreadable files are skipped with a warning.

        Returns:
            (name, manifest) pairs sorted by name
        """
        manifests = []
        for path in self._manifest_files():
            try:
                manifests.append((path.stem, self._load(path)))
            except ManifestError as e:
                logger.warning(f"[Manifest] Skipping: {e}")
        return manifests

    def get(self, name: str | None = None) -> Manifest:
        """
        Load a manifest by name.

        Args:
            name: File name without .json; empty selects the first manifest

        Returns:
            Manifest

        Raises:
            ManifestNotFoundError: No such manifest, or it is invalid
        """
        name = sanitize_name(name or "")
        if not name:
            files = self._manifest_files()
            if not files:
                raise ManifestNotFoundError("(default)")
            path = files[0]
        else:
            path = self.manifests_dir / f"{name}.json"

        if not path.is_file():
            raise ManifestNotFoundError(name or path.stem)

        try:
            return self._load(path)
        except ManifestError as e:
            logger.warning(f"[Manifest] {e}")
            raise ManifestNotFoundError(path.stem) from e

    def summaries(self) -> list[dict[str, Any]]:
        """
        Listing rows for every valid manifest.

        Returns:
            One dict per manifest
        """
        return [
            {
                "name": name,
                "game_id": manifest.game_id,
                "filename": manifest.filename,
                "total_size": manifest.total_size,
                "chunk_size": manifest.chunk_size,
                "network": manifest.network,
                "sender_address": manifest.sender_address,
                "tx_count": len(manifest.expected_tx_hashes),
            }
            for name, manifest in self.list_manifests()
        ]
