import json
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from egdata_client.core.config import ConfigManager
from egdata_client.core.messaging import Notifier
from egdata_client.core.paths import AgentPaths
from egdata_client.library.models import DescriptorManifest


# --- Fake aiohttp session ---

class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside `async with`."""

    def __init__(self, status: int = 200, body="", json_body=None, charset: str = "utf-8"):
        self.status = status
        if json_body is not None:
            body = json.dumps(json_body)
        self.charset = charset
        self._raw = body.encode(charset) if isinstance(body, str) else body

    async def text(self, encoding=None, errors="strict"):
        return self._raw.decode(encoding or self.charset, errors)

    async def json(self, content_type=None):
        return json.loads(self._raw.decode(self.charset))


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Records requests and answers them from canned responses.

    GET responses are looked up by URL; POST responses are consumed in
    order, falling back to `default_post`. An exception instance as a
    response is raised when the request is entered.
    """

    def __init__(self):
        self.get_routes = {}
        self.post_queue = []
        self.default_post = FakeResponse(200, "ok")
        self.get_calls = []
        self.post_calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.get_calls.append((url, kwargs))
        return _RequestContext(self.get_routes.get(url, FakeResponse(404, "not found")))

    def post(self, url, data=None, **kwargs):
        self.post_calls.append((url, data, kwargs))
        outcome = self.post_queue.pop(0) if self.post_queue else self.default_post
        return _RequestContext(outcome)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession()


# --- Filesystem fixtures ---

def make_descriptor(
    guid: str,
    app_name: str,
    install_location: str,
    manifest_hash: str,
    catalog_item_id: str = None,
    **overrides
) -> dict:
    descriptor = {
        "FormatVersion": 0,
        "bIsIncompleteInstall": False,
        "LaunchCommand": "",
        "LaunchExecutable": f"{app_name}.exe",
        "ManifestLocation": f"{install_location}/.egstore",
        "ManifestHash": manifest_hash,
        "bIsApplication": True,
        "bIsExecutable": True,
        "DisplayName": app_name.title(),
        "InstallationGuid": guid,
        "InstallLocation": install_location,
        "InstallSize": 1024,
        "CatalogNamespace": f"ns-{app_name}",
        "CatalogItemId": catalog_item_id or f"item-{app_name}",
        "AppName": app_name,
        "AppVersionString": "1.0.0",
    }
    descriptor.update(overrides)
    return descriptor


@pytest.fixture
def manifests_dir(tmp_path) -> Path:
    path = tmp_path / "Manifests"
    path.mkdir()
    return path


@pytest.fixture
def install_package(tmp_path, manifests_dir):
    """
    Write a descriptor (and by default its manifest blob) and return the
    PackageRecord the scanner would build from it.
    """
    def _install(app_name: str, manifest_hash: str = None, with_blob: bool = True, **overrides):
        guid = f"GUID-{app_name.upper()}"
        install_root = tmp_path / "Games" / app_name
        descriptor = make_descriptor(
            guid,
            app_name,
            install_root.as_posix(),
            manifest_hash or f"hash-{app_name}",
            **overrides
        )
        (manifests_dir / f"{guid}.item").write_text(json.dumps(descriptor), encoding="utf-8")
        if with_blob:
            store = install_root / ".egstore"
            store.mkdir(parents=True, exist_ok=True)
            (store / f"{guid}.manifest").write_bytes(b"\x00MANIFEST-" + app_name.encode())
        return DescriptorManifest.model_validate(descriptor).to_record()
    return _install


@pytest.fixture
def agent_paths(tmp_path, manifests_dir) -> AgentPaths:
    return AgentPaths(app_data_dir=tmp_path / "appdata", manifests_dir=manifests_dir)


@pytest.fixture
def config_manager(agent_paths) -> ConfigManager:
    return ConfigManager(str(agent_paths.settings_file))


@pytest.fixture
def recording_notifier():
    """Notifier whose broadcast messages are collected in `.messages`."""
    notifier = Notifier()
    notifier.messages = []
    notifier.bus.connect(notifier.messages.append)
    return notifier


@pytest.fixture
def mock_locator(agent_paths, config_manager, recording_notifier):
    locator = MagicMock()
    locator.paths = agent_paths
    locator.config = config_manager
    locator.notifier = recording_notifier
    return locator
