"""
Library - Manifest Reader

Parses launcher `.item` descriptor files into package records.
"""
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Union
from pydantic import ValidationError

from egdata_client.core.errors import ManifestIOError, ManifestParseError
from egdata_client.library.models import DescriptorManifest

DESCRIPTOR_EXTENSION = ".item"
MANIFEST_HASH_FIELD = "ManifestHash"


class ManifestReader:
    """
    Reads one descriptor file at a time.

    `read()` does blocking file I/O; async callers use `read_async()`,
    which runs it on a worker thread.
    """

    def read(self, path: Union[str, Path]) -> DescriptorManifest:
        """
        Read and validate a descriptor.

        Raises:
            ManifestIOError: file cannot be read
            ManifestParseError: content is not JSON or lacks required fields
        """
        raw = read_bytes(path)
        document = decode_json(raw, path)
        try:
            return DescriptorManifest.model_validate(document)
        except ValidationError as e:
            raise ManifestParseError(path, _summarize(e)) from e

    async def read_async(self, path: Union[str, Path]) -> DescriptorManifest:
        return await asyncio.to_thread(self.read, path)


def read_bytes(path: Union[str, Path]) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ManifestIOError(path, e.strerror or str(e)) from e


def decode_text(raw: bytes, path: Union[str, Path]) -> str:
    """
    Decode descriptor bytes to text.

    The encoding is detected the way JSON requires (UTF-8, UTF-16 or
    UTF-32, with or without a BOM); the BOM is not part of the result.
    """
    encoding = json.detect_encoding(raw)
    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise ManifestParseError(path, f"invalid text encoding: {e}") from e
    return text.lstrip("\ufeff")


def decode_json(raw: Union[bytes, str], path: Union[str, Path]) -> Dict[str, Any]:
    """Decode descriptor bytes (or already decoded text) into a JSON object."""
    text = raw if isinstance(raw, str) else decode_text(raw, path)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestParseError(path, f"invalid JSON: {e}") from e
    if not isinstance(document, dict):
        raise ManifestParseError(path, "descriptor is not a JSON object")
    return document


def extract_manifest_hash(document: Dict[str, Any], path: Union[str, Path]) -> str:
    value = document.get(MANIFEST_HASH_FIELD)
    if not isinstance(value, str) or not value:
        raise ManifestParseError(path, f"{MANIFEST_HASH_FIELD} not found")
    return value


def _summarize(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        problems.append(f"{location}: {item.get('msg')}")
    return "; ".join(problems)
