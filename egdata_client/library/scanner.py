"""
Library - Manifest Scanner

Enumerates launcher descriptors and turns them into enriched package records.
"""
import asyncio
import os
from pathlib import Path
from typing import List, Optional, Tuple
from loguru import logger

from egdata_client.core.errors import NotFoundError, ManifestIOError, ManifestParseError
from egdata_client.library.manifest_reader import ManifestReader, DESCRIPTOR_EXTENSION
from egdata_client.library.metadata_cache import MetadataCache
from egdata_client.library.models import PackageRecord


class ScanReport:
    """Result of one scan: the records built and the files skipped."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.records: List[PackageRecord] = []
        self.skipped: List[Tuple[Path, str]] = []

    @property
    def total_files(self) -> int:
        return len(self.records) + len(self.skipped)


class ManifestScanner:
    """
    Produces a complete snapshot of installed packages.

    Every `.item` file in the manifest directory is parsed and enriched
    with catalog metadata. A file that cannot be read or parsed is logged
    and skipped; only a missing directory fails the scan.
    """

    def __init__(
        self,
        manifests_dir: Optional[Path],
        metadata_cache: MetadataCache,
        reader: Optional[ManifestReader] = None
    ):
        """
        Args:
            manifests_dir: Launcher manifest directory (None on unsupported platforms)
            metadata_cache: Cache used to enrich each record
            reader: Descriptor reader
        """
        self.manifests_dir = Path(manifests_dir) if manifests_dir else None
        self.metadata_cache = metadata_cache
        self.reader = reader or ManifestReader()

    async def scan(self) -> List[PackageRecord]:
        """
        Scan the manifest directory.

        Returns:
            Records in no particular order (empty when no descriptors exist)

        Raises:
            NotFoundError: manifest directory does not exist
        """
        report = await self.scan_with_report()
        return report.records

    async def scan_with_report(self) -> ScanReport:
        """Scan and also report which descriptors were skipped and why."""
        directory = self.manifests_dir
        if directory is None or not await asyncio.to_thread(directory.is_dir):
            raise NotFoundError("Epic Games manifests directory not found")

        report = ScanReport(directory)
        candidates = await asyncio.to_thread(self._list_descriptors, directory)
        logger.debug(f"Found {len(candidates)} descriptor files in {directory}")

        for path in candidates:
            try:
                descriptor = await self.reader.read_async(path)
            except (ManifestIOError, ManifestParseError) as e:
                logger.warning(f"Failed to parse manifest file {path}: {e}")
                report.skipped.append((path, str(e)))
                continue

            metadata = await self.metadata_cache.fetch(descriptor.catalog_item_id)
            report.records.append(descriptor.to_record(metadata))

        return report

    @staticmethod
    def _list_descriptors(directory: Path) -> List[Path]:
        try:
            with os.scandir(directory) as entries:
                return sorted(
                    Path(entry.path)
                    for entry in entries
                    if entry.is_file() and Path(entry.name).suffix == DESCRIPTOR_EXTENSION
                )
        except OSError as e:
            raise NotFoundError(f"Failed to read manifests directory: {e}") from e
