"""
Library - Manifest Uploader

Sends binary manifests to the collection service, skipping content the
service has already acknowledged.
"""
import asyncio
from pathlib import Path
from typing import List, Optional, Tuple
import aiohttp
from loguru import logger

from egdata_client.core.errors import AgentError, NotFoundError, NetworkError, RemoteRejectedError
from egdata_client.core.messaging import Notifier, MsgTopic
from egdata_client.core.paths import platform_tag
from egdata_client.library.dedup import DedupStore
from egdata_client.library.manifest_reader import (
    DESCRIPTOR_EXTENSION,
    decode_json,
    decode_text,
    extract_manifest_hash,
    read_bytes,
)
from egdata_client.library.models import PackageRecord, UploadState, UploadStatus

UPLOAD_URL = "https://egdata-builds-api.snpm.workers.dev/upload-manifest"
UPLOAD_TIMEOUT_SECONDS = 300

# Wire contract with the collection service; must match byte for byte.
DUPLICATE_CONTENT_PHRASE = "A manifest file with identical content already exists"

ALREADY_EXISTS_MESSAGE = "Manifest with identical content already exists"
ALREADY_RECORDED_MESSAGE = "Manifest already uploaded"

STORE_DIR_NAME = ".egstore"
MANIFEST_EXTENSION = ".manifest"


def classify_response(status: int, body: str) -> Tuple[UploadState, str]:
    """
    Map an upload response onto an upload state.

    Returns:
        (state, message) where message is the raw body for uploads and
        genuine failures
    """
    if 200 <= status < 300:
        return UploadState.UPLOADED, body
    if DUPLICATE_CONTENT_PHRASE in body:
        return UploadState.ALREADY_UPLOADED, ALREADY_EXISTS_MESSAGE
    return UploadState.FAILED, body


class ManifestUploader:
    """
    Upload pipeline for package manifests.

    For each record:
    - read the `.item` descriptor and the `.manifest` blob
    - take the content hash from the descriptor
    - skip when the hash is in the dedup store
    - POST a multipart form (item, os, manifest)
    - record the hash when the service stored it or already had it
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        dedup: DedupStore,
        manifests_dir: Optional[Path],
        upload_url: str = UPLOAD_URL,
        timeout: float = UPLOAD_TIMEOUT_SECONDS,
        os_tag: Optional[str] = None,
        notifier: Optional[Notifier] = None
    ):
        """
        Args:
            session: Shared HTTP session
            dedup: Store of acknowledged manifest hashes
            manifests_dir: Directory holding the `.item` descriptors
            upload_url: Collection endpoint
            timeout: Total timeout per upload request in seconds
            os_tag: Platform tag sent as the `os` field ("Mac" or "Windows")
            notifier: Sink for per-record notifications
        """
        self.session = session
        self.dedup = dedup
        self.manifests_dir = Path(manifests_dir) if manifests_dir else None
        self.upload_url = upload_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.os_tag = os_tag or platform_tag()
        self.notifier = notifier or Notifier()

    def paths_for(self, record: PackageRecord) -> Tuple[Path, Path]:
        """Descriptor path and manifest blob path for a record."""
        if self.manifests_dir is None:
            raise NotFoundError("Epic Games manifests directory not found")
        guid = record.installation_guid
        item_path = self.manifests_dir / f"{guid}{DESCRIPTOR_EXTENSION}"
        install_root = Path(record.install_location.replace("\\", "/"))
        manifest_path = install_root / STORE_DIR_NAME / f"{guid}{MANIFEST_EXTENSION}"
        return item_path, manifest_path

    async def upload(self, record: PackageRecord) -> UploadStatus:
        """
        Upload one record's manifest.

        Returns:
            UploadStatus (uploaded, already_uploaded, or failed on HTTP rejection)

        Raises:
            ManifestIOError: descriptor or blob unreadable
            ManifestParseError: descriptor invalid or without a hash
            NetworkError: request could not be sent or answered
            LockError: dedup store unavailable
        """
        item_path, manifest_path = self.paths_for(record)
        item_bytes = await asyncio.to_thread(read_bytes, item_path)
        manifest_bytes = await asyncio.to_thread(read_bytes, manifest_path)

        item_text = decode_text(item_bytes, item_path)
        document = decode_json(item_text, item_path)
        manifest_hash = extract_manifest_hash(document, item_path)

        if self.dedup.contains(manifest_hash):
            logger.debug(f"Skipping {record.app_name}: {manifest_hash} already uploaded")
            return UploadStatus(
                status=UploadState.ALREADY_UPLOADED,
                message=ALREADY_RECORDED_MESSAGE,
                manifest_hash=manifest_hash,
                app_name=record.app_name,
            )

        self.notifier.info(
            f"Starting manifest upload for game: {record.display_name}",
            topic=MsgTopic.UPLOADER.value,
        )

        form = aiohttp.FormData()
        form.add_field("item", item_text)
        form.add_field("os", self.os_tag)
        form.add_field(
            "manifest",
            manifest_bytes,
            filename=f"{record.installation_guid}{MANIFEST_EXTENSION}",
            content_type="application/octet-stream",
        )

        try:
            state, message = await self.post_form(form, record.app_name)
        except RemoteRejectedError as e:
            status = UploadStatus.failed(e.body, manifest_hash=manifest_hash, app_name=record.app_name)
        else:
            status = UploadStatus(
                status=state,
                message=message,
                manifest_hash=manifest_hash,
                app_name=record.app_name,
            )
            await self.dedup.record(manifest_hash)

        self._report(record, status)
        return status

    async def post_form(self, form: aiohttp.FormData, app_name: str) -> Tuple[UploadState, str]:
        """
        POST one upload form and classify the answer.

        The body is decoded leniently; bytes that do not match the declared
        charset become replacement characters instead of failing the upload.

        Returns:
            (uploaded or already_uploaded, message)

        Raises:
            NetworkError: request could not be sent or answered
            RemoteRejectedError: any other non-2xx answer, body kept verbatim
        """
        try:
            async with self.session.post(self.upload_url, data=form, timeout=self.timeout) as response:
                status_code = response.status
                body = await response.text(errors="replace")
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Upload request timed out for {app_name}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to send upload request: {e}") from e

        state, message = classify_response(status_code, body)
        if state is UploadState.FAILED:
            raise RemoteRejectedError(status_code, body)
        return state, message

    async def upload_all(self, records: List[PackageRecord]) -> List[UploadStatus]:
        """
        Upload records one after another.

        Every record yields exactly one status, in input order; an error
        on one record becomes a failed status and the batch continues.
        """
        results: List[UploadStatus] = []
        for record in records:
            try:
                status = await self.upload(record)
            except AgentError as e:
                self.notifier.error(
                    f"Upload error for {record.display_name}: {e}",
                    topic=MsgTopic.UPLOADER.value,
                    exc=e,
                )
                status = UploadStatus.failed(str(e), app_name=record.app_name)
            results.append(status)
        return results

    def _report(self, record: PackageRecord, status: UploadStatus) -> None:
        topic = MsgTopic.UPLOADER.value
        if status.status is UploadState.UPLOADED:
            self.notifier.success(f"Successfully uploaded manifest for {record.display_name}", topic=topic)
        elif status.status is UploadState.ALREADY_UPLOADED:
            self.notifier.info(f"Manifest for {record.display_name} already exists on server", topic=topic)
        else:
            self.notifier.error(
                f"Failed to upload manifest for {record.display_name}: {status.message}",
                topic=topic,
            )
