"""
Library - Uploaded Manifest Record

Persisted set of manifest hashes the collection service has acknowledged.
"""
import asyncio
import json
from pathlib import Path
from typing import Set, Union
from loguru import logger

from egdata_client.core.locking import GuardedLock


class DedupStore:
    """
    Set of content hashes that must not be uploaded again.

    Loaded once on construction and written back after every mutation.
    The lock covers only the in-memory set; the file write happens after
    it is released, from a snapshot.
    """

    def __init__(self, filepath: Union[str, Path]):
        self.filepath = Path(filepath)
        self._lock = GuardedLock("uploaded manifests")
        self._hashes: Set[str] = set()
        self._load()

    def __len__(self) -> int:
        with self._lock.hold():
            return len(self._hashes)

    def contains(self, manifest_hash: str) -> bool:
        with self._lock.hold():
            return manifest_hash in self._hashes

    def snapshot(self) -> Set[str]:
        with self._lock.hold():
            return set(self._hashes)

    def add(self, manifest_hash: str) -> bool:
        """
        Record a hash in memory.

        Returns:
            True if the hash was new
        """
        with self._lock.hold():
            if manifest_hash in self._hashes:
                return False
            self._hashes.add(manifest_hash)
            return True

    def clear(self) -> None:
        with self._lock.hold():
            self._hashes.clear()

    async def record(self, manifest_hash: str) -> None:
        """Add a hash and persist the set."""
        if self.add(manifest_hash):
            await self.persist()

    async def persist(self) -> None:
        await asyncio.to_thread(self.save)

    def save(self) -> None:
        """Write the current set to disk as a sorted JSON array."""
        hashes = sorted(self.snapshot())
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.filepath.with_suffix(self.filepath.suffix + ".tmp")
            tmp_path.write_text(json.dumps(hashes, indent=2), encoding="utf-8")
            tmp_path.replace(self.filepath)
        except OSError as e:
            logger.error(f"Failed to save uploaded manifests to {self.filepath}: {e}")

    def _load(self) -> None:
        if not self.filepath.is_file():
            return
        try:
            raw = json.loads(self.filepath.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load uploaded manifests from {self.filepath}: {e}")
            return
        if not isinstance(raw, list):
            logger.error(f"Ignoring uploaded manifests file {self.filepath}: not a JSON array")
            return
        self._hashes = {item for item in raw if isinstance(item, str)}
        logger.debug(f"Loaded {len(self._hashes)} uploaded manifest hashes")
