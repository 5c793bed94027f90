import asyncio
import aiohttp
import pytest

from egdata_client.core.errors import ManifestIOError, ManifestParseError, NetworkError, RemoteRejectedError
from egdata_client.library.dedup import DedupStore
from egdata_client.library.models import UploadState
from egdata_client.library.uploader import (
    DUPLICATE_CONTENT_PHRASE,
    ManifestUploader,
    classify_response,
)
from tests.conftest import FakeResponse

URL = "https://collector.test/upload-manifest"
DUPLICATE_BODY = f'{{"error": "{DUPLICATE_CONTENT_PHRASE}"}}'


@pytest.fixture
def dedup(tmp_path):
    return DedupStore(tmp_path / "appdata" / "uploaded.json")


@pytest.fixture
def uploader(fake_session, dedup, manifests_dir, recording_notifier):
    return ManifestUploader(
        fake_session,
        dedup,
        manifests_dir,
        upload_url=URL,
        os_tag="Windows",
        notifier=recording_notifier,
    )


def form_fields(form):
    return {opts["name"]: (opts.get("filename"), value) for opts, _headers, value in form._fields}


def test_classify_response():
    assert classify_response(201, "stored") == (UploadState.UPLOADED, "stored")
    assert classify_response(409, DUPLICATE_BODY)[0] is UploadState.ALREADY_UPLOADED
    assert classify_response(500, "boom") == (UploadState.FAILED, "boom")
    # Phrase matching is exact
    assert classify_response(409, DUPLICATE_CONTENT_PHRASE.lower())[0] is UploadState.FAILED


def test_paths_for_normalizes_install_location(uploader, manifests_dir, install_package):
    record = install_package("alpha").model_copy(update={"install_location": "C:\\Games\\Alpha"})

    item_path, manifest_path = uploader.paths_for(record)

    assert item_path == manifests_dir / "GUID-ALPHA.item"
    assert manifest_path.as_posix() == "C:/Games/Alpha/.egstore/GUID-ALPHA.manifest"


@pytest.mark.asyncio
async def test_upload_success_records_hash(uploader, fake_session, dedup, install_package):
    record = install_package("alpha", manifest_hash="h-alpha")
    fake_session.post_queue.append(FakeResponse(200, "stored"))

    status = await uploader.upload(record)

    assert status.status is UploadState.UPLOADED
    assert status.message == "stored"
    assert status.manifest_hash == "h-alpha"
    assert dedup.contains("h-alpha")
    assert DedupStore(dedup.filepath).contains("h-alpha")


@pytest.mark.asyncio
async def test_upload_sends_multipart_form(uploader, fake_session, manifests_dir, install_package):
    record = install_package("alpha")

    await uploader.upload(record)

    url, form, kwargs = fake_session.post_calls[0]
    assert url == URL
    assert isinstance(form, aiohttp.FormData)
    fields = form_fields(form)
    assert fields["item"][1] == (manifests_dir / "GUID-ALPHA.item").read_text()
    assert fields["os"][1] == "Windows"
    assert fields["manifest"][0] == "GUID-ALPHA.manifest"
    assert fields["manifest"][1] == b"\x00MANIFEST-alpha"
    assert kwargs["timeout"].total == 300


@pytest.mark.asyncio
async def test_second_upload_of_same_hash_makes_no_request(uploader, fake_session, install_package):
    record = install_package("alpha")

    first = await uploader.upload(record)
    second = await uploader.upload(record)

    assert first.status is UploadState.UPLOADED
    assert second.status is UploadState.ALREADY_UPLOADED
    assert len(fake_session.post_calls) == 1


@pytest.mark.asyncio
async def test_persisted_hash_skips_network(tmp_path, fake_session, manifests_dir, install_package):
    record = install_package("alpha", manifest_hash="h-1")
    path = tmp_path / "persisted.json"
    await DedupStore(path).record("h-1")

    uploader = ManifestUploader(fake_session, DedupStore(path), manifests_dir, upload_url=URL)
    status = await uploader.upload(record)

    assert status.status is UploadState.ALREADY_UPLOADED
    assert fake_session.post_calls == []


@pytest.mark.asyncio
async def test_duplicate_content_response_is_already_uploaded(uploader, fake_session, dedup, install_package):
    record = install_package("alpha", manifest_hash="h-dup")
    fake_session.post_queue.append(FakeResponse(400, DUPLICATE_BODY))

    status = await uploader.upload(record)

    assert status.status is UploadState.ALREADY_UPLOADED
    assert status.message == "Manifest with identical content already exists"
    assert dedup.contains("h-dup")


@pytest.mark.asyncio
async def test_rejection_is_failed_and_not_recorded(uploader, fake_session, dedup, install_package, recording_notifier):
    record = install_package("alpha", manifest_hash="h-bad")
    fake_session.post_queue.append(FakeResponse(500, "Internal error: bucket unavailable"))

    status = await uploader.upload(record)

    assert status.status is UploadState.FAILED
    assert status.message == "Internal error: bucket unavailable"
    assert not dedup.contains("h-bad")
    assert any("Failed to upload manifest" in m.body for m in recording_notifier.messages)


@pytest.mark.asyncio
async def test_missing_blob_raises_io_error(uploader, install_package):
    record = install_package("alpha", with_blob=False)

    with pytest.raises(ManifestIOError):
        await uploader.upload(record)


@pytest.mark.asyncio
async def test_descriptor_without_hash_raises_parse_error(uploader, manifests_dir, install_package):
    record = install_package("alpha")
    (manifests_dir / "GUID-ALPHA.item").write_text('{"AppName": "alpha"}')

    with pytest.raises(ManifestParseError):
        await uploader.upload(record)


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()])
async def test_network_failure_raises_network_error(uploader, fake_session, dedup, install_package, error):
    record = install_package("alpha")
    fake_session.post_queue.append(error)

    with pytest.raises(NetworkError):
        await uploader.upload(record)
    assert len(dedup) == 0


@pytest.mark.asyncio
async def test_upload_all_isolates_failures(uploader, fake_session, install_package):
    """N records, one missing its blob: N statuses, exactly one failed."""
    records = [
        install_package("alpha"),
        install_package("beta", with_blob=False),
        install_package("gamma"),
    ]

    results = await uploader.upload_all(records)

    assert [r.app_name for r in results] == ["alpha", "beta", "gamma"]
    assert [r.status for r in results] == [UploadState.UPLOADED, UploadState.FAILED, UploadState.UPLOADED]
    assert "Failed to read" in results[1].message
    assert results[1].manifest_hash is None
    assert len(fake_session.post_calls) == 2


@pytest.mark.asyncio
async def test_upload_all_converts_network_errors(uploader, fake_session, install_package):
    records = [install_package("alpha"), install_package("beta")]
    fake_session.post_queue.extend([aiohttp.ClientConnectionError("reset"), FakeResponse(200, "ok")])

    results = await uploader.upload_all(records)

    assert results[0].status is UploadState.FAILED
    assert "Failed to send upload request" in results[0].message
    assert results[1].status is UploadState.UPLOADED


@pytest.mark.asyncio
async def test_post_form_raises_remote_rejected(uploader, fake_session):
    fake_session.post_queue.append(FakeResponse(503, "maintenance window"))

    with pytest.raises(RemoteRejectedError) as info:
        await uploader.post_form(aiohttp.FormData(), "alpha")

    assert info.value.status == 503
    assert info.value.body == "maintenance window"


@pytest.mark.asyncio
async def test_post_form_duplicate_is_not_rejected(uploader, fake_session):
    fake_session.post_queue.append(FakeResponse(400, DUPLICATE_BODY))

    state, _message = await uploader.post_form(aiohttp.FormData(), "alpha")

    assert state is UploadState.ALREADY_UPLOADED


@pytest.mark.asyncio
async def test_undecodable_response_body_is_replaced(uploader, fake_session, install_package):
    records = [install_package("alpha"), install_package("beta")]
    fake_session.post_queue.extend([FakeResponse(500, b"\xff\xfe bucket gone"), FakeResponse(200, "ok")])

    results = await uploader.upload_all(records)

    assert [r.status for r in results] == [UploadState.FAILED, UploadState.UPLOADED]
    assert "\ufffd" in results[0].message
    assert "bucket gone" in results[0].message


@pytest.mark.asyncio
async def test_utf16_descriptor_uploads(uploader, fake_session, manifests_dir, install_package):
    record = install_package("alpha", manifest_hash="h-utf16")
    item_path = manifests_dir / "GUID-ALPHA.item"
    text = item_path.read_text(encoding="utf-8")
    item_path.write_bytes(text.encode("utf-16"))

    status = await uploader.upload(record)

    assert status.status is UploadState.UPLOADED
    assert status.manifest_hash == "h-utf16"
    _url, form, _kwargs = fake_session.post_calls[0]
    assert form_fields(form)["item"][1] == text


@pytest.mark.asyncio
async def test_undecodable_descriptor_fails_only_its_record(uploader, fake_session, manifests_dir, install_package):
    records = [install_package("alpha"), install_package("beta")]
    (manifests_dir / "GUID-ALPHA.item").write_bytes(b'{"ManifestHash": "\xff\xfe\xfd"}')

    with pytest.raises(ManifestParseError):
        await uploader.upload(records[0])

    results = await uploader.upload_all(records)

    assert [r.status for r in results] == [UploadState.FAILED, UploadState.UPLOADED]
    assert "invalid text encoding" in results[0].message
    assert len(fake_session.post_calls) == 1
