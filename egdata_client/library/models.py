"""
Library - Data Models

Package records built from launcher descriptors, catalog metadata fetched
for them, and the per-record outcome of an upload attempt.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class KeyImage(BaseModel):
    """Image descriptor attached to catalog metadata."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    image_type: str = Field(alias="type")
    url: str
    md5: str


class Metadata(BaseModel):
    """Catalog metadata for one item. Immutable once fetched."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: str
    key_images: List[KeyImage] = Field(alias="keyImages")
    developer: Optional[str] = None
    developer_id: Optional[str] = Field(default=None, alias="developerId")


class DescriptorManifest(BaseModel):
    """
    Fields read from a launcher `.item` descriptor.

    Field names on disk are fixed and case-sensitive; only the fields the
    agent consumes are modelled, anything else in the file is ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    format_version: int = Field(default=0, alias="FormatVersion")
    is_incomplete_install: bool = Field(default=False, alias="bIsIncompleteInstall")
    launch_command: str = Field(default="", alias="LaunchCommand")
    launch_executable: str = Field(default="", alias="LaunchExecutable")
    manifest_location: str = Field(default="", alias="ManifestLocation")
    manifest_hash: str = Field(alias="ManifestHash")
    is_application: bool = Field(default=True, alias="bIsApplication")
    is_executable: bool = Field(default=True, alias="bIsExecutable")
    display_name: str = Field(alias="DisplayName")
    installation_guid: str = Field(alias="InstallationGuid")
    install_location: str = Field(alias="InstallLocation")
    install_size: int = Field(alias="InstallSize", ge=0)
    catalog_namespace: str = Field(alias="CatalogNamespace")
    catalog_item_id: str = Field(alias="CatalogItemId")
    app_name: str = Field(alias="AppName")
    app_version_string: str = Field(alias="AppVersionString")

    def to_record(self, metadata: Optional[Metadata] = None) -> "PackageRecord":
        return PackageRecord(
            display_name=self.display_name,
            app_name=self.app_name,
            install_location=self.install_location,
            install_size=self.install_size,
            version=self.app_version_string,
            catalog_namespace=self.catalog_namespace,
            catalog_item_id=self.catalog_item_id,
            installation_guid=self.installation_guid,
            manifest_hash=self.manifest_hash,
            metadata=metadata,
        )


class PackageRecord(BaseModel):
    """
    One installed package as seen by the last scan.

    Identity is (catalog_namespace, catalog_item_id, installation_guid);
    the registry keys records by `app_key`. Records are replaced wholesale
    on every scan and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    display_name: str
    app_name: str
    install_location: str
    install_size: int
    version: str
    catalog_namespace: str
    catalog_item_id: str
    installation_guid: str
    manifest_hash: str
    metadata: Optional[Metadata] = None

    @property
    def app_key(self) -> str:
        return self.app_name

    @property
    def identity(self) -> tuple:
        return (self.catalog_namespace, self.catalog_item_id, self.installation_guid)


class UploadState(str, Enum):
    UPLOADED = "uploaded"
    ALREADY_UPLOADED = "already_uploaded"
    FAILED = "failed"


class UploadStatus(BaseModel):
    """Outcome of uploading one record's manifest."""
    status: UploadState
    message: Optional[str] = None
    manifest_hash: Optional[str] = None
    app_name: Optional[str] = None

    @classmethod
    def failed(cls, message: str, manifest_hash: Optional[str] = None,
               app_name: Optional[str] = None) -> "UploadStatus":
        return cls(status=UploadState.FAILED, message=message,
                   manifest_hash=manifest_hash, app_name=app_name)

    @property
    def acknowledged(self) -> bool:
        """True when the remote side holds this content."""
        return self.status in (UploadState.UPLOADED, UploadState.ALREADY_UPLOADED)
