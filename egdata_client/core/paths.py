"""
Core - Filesystem Locations

Where the agent keeps its own files and where the launcher keeps its
installed-package descriptors.
"""
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

APP_DIR_NAME = "egdata-client"
SETTINGS_FILE = "settings.json"
UPLOADED_MANIFESTS_FILE = "uploaded_manifests.json"
LOG_DIR = "logs"

WINDOWS_MANIFESTS_DIR = r"C:\ProgramData\Epic\EpicGamesLauncher\Data\Manifests"
MAC_MANIFESTS_SUBDIR = "Library/Application Support/Epic/EpicGamesLauncher/Data/Manifests"


def default_app_data_dir() -> Path:
    """$APPDATA/egdata-client, or ./egdata-client when APPDATA is unset."""
    base = os.environ.get("APPDATA")
    return Path(base or ".") / APP_DIR_NAME


def default_manifests_dir() -> Optional[Path]:
    """Launcher manifest directory for this platform, None if unsupported."""
    if sys.platform.startswith("win"):
        return Path(WINDOWS_MANIFESTS_DIR)
    if sys.platform == "darwin":
        return Path.home() / MAC_MANIFESTS_SUBDIR
    return None


def platform_tag() -> str:
    """Value of the `os` field sent with each upload."""
    return "Mac" if sys.platform == "darwin" else "Windows"


@dataclass
class AgentPaths:
    app_data_dir: Path = field(default_factory=default_app_data_dir)
    manifests_dir: Optional[Path] = field(default_factory=default_manifests_dir)

    @property
    def settings_file(self) -> Path:
        return self.app_data_dir / SETTINGS_FILE

    @property
    def uploaded_manifests_file(self) -> Path:
        return self.app_data_dir / UPLOADED_MANIFESTS_FILE

    @property
    def log_dir(self) -> Path:
        return self.app_data_dir / LOG_DIR
