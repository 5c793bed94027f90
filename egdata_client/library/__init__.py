"""
Library - Installed package discovery, enrichment and manifest upload.
"""
from .models import (
    KeyImage,
    Metadata,
    DescriptorManifest,
    PackageRecord,
    UploadState,
    UploadStatus,
)
from .manifest_reader import ManifestReader
from .metadata_cache import MetadataCache
from .scanner import ManifestScanner, ScanReport
from .registry import PackageRegistry, RegistryUpdate
from .dedup import DedupStore
from .uploader import ManifestUploader, classify_response
from .service import LibrarySyncService

__all__ = [
    "KeyImage",
    "Metadata",
    "DescriptorManifest",
    "PackageRecord",
    "UploadState",
    "UploadStatus",
    "ManifestReader",
    "MetadataCache",
    "ManifestScanner",
    "ScanReport",
    "PackageRegistry",
    "RegistryUpdate",
    "DedupStore",
    "ManifestUploader",
    "classify_response",
    "LibrarySyncService",
]
