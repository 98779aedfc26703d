"""Tests for chunked uploads to object storage."""

import pytest

from src.utils.object_storage import (
    ChunkedUploader,
    PartUploadError,
    StorageError,
    UploadTask,
)
from tests.utils.fakes import FakeS3Client, FakeS3Session

PART_SIZE = 16


def uploader_for(storage_settings, s3: FakeS3Client) -> ChunkedUploader:
    return ChunkedUploader(storage_settings, session=FakeS3Session(s3))


class TestUploadTask:
    def test_part_boundaries(self):
        task = UploadTask(buffer=b"a" * 40, destination_key="k", part_size=PART_SIZE)

        assert task.is_multipart
        assert task.total_parts == 3
        assert [len(task.part(n)) for n in (1, 2, 3)] == [16, 16, 8]

    def test_small_payload_is_single_part(self):
        task = UploadTask(buffer=b"a" * 15, destination_key="k", part_size=PART_SIZE)
        assert not task.is_multipart
        assert task.total_parts == 1


@pytest.mark.asyncio
async def test_payload_one_byte_below_part_size_uses_single_put(uploader, fake_s3):
    key = await uploader.upload(b"x" * (PART_SIZE - 1), "identifications/u/a.jpg", "image/jpeg")

    assert key == "identifications/u/a.jpg"
    puts = fake_s3.called("put_object")
    assert len(puts) == 1
    assert puts[0]["Bucket"] == "test-bucket"
    assert puts[0]["ContentType"] == "image/jpeg"
    assert fake_s3.called("create_multipart_upload") == []


@pytest.mark.asyncio
async def test_payload_of_exactly_part_size_uses_multipart(uploader, fake_s3):
    await uploader.upload(b"x" * PART_SIZE, "identifications/u/b.jpg")

    assert fake_s3.called("put_object") == []
    assert len(fake_s3.called("create_multipart_upload")) == 1
    assert len(fake_s3.called("upload_part")) == 1
    assert len(fake_s3.called("complete_multipart_upload")) == 1


@pytest.mark.asyncio
async def test_multipart_completes_parts_in_order(uploader, fake_s3):
    payload = bytes(range(40))

    key = await uploader.upload(payload, "identifications/u/c.png", "image/png")

    assert key == "identifications/u/c.png"
    parts = fake_s3.called("upload_part")
    assert [p["PartNumber"] for p in parts] == [1, 2, 3]
    assert b"".join(p["Body"] for p in parts) == payload
    assert all(p["UploadId"] == "upload-1" for p in parts)

    completed = fake_s3.called("complete_multipart_upload")[0]
    assert completed["MultipartUpload"]["Parts"] == [
        {"ETag": '"etag-1"', "PartNumber": 1},
        {"ETag": '"etag-2"', "PartNumber": 2},
        {"ETag": '"etag-3"', "PartNumber": 3},
    ]
    assert fake_s3.called("abort_multipart_upload") == []


@pytest.mark.asyncio
async def test_failed_part_aborts_session(storage_settings, sleeps):
    s3 = FakeS3Client(failing_parts={2: -1})
    uploader = uploader_for(storage_settings, s3)

    with pytest.raises(PartUploadError) as exc_info:
        await uploader.upload(b"x" * (PART_SIZE * 3), "identifications/u/d.jpg")

    assert exc_info.value.part_number == 2
    assert exc_info.value.attempts == 3
    assert [p["PartNumber"] for p in s3.called("upload_part")] == [1, 2, 2, 2]
    assert len(s3.called("abort_multipart_upload")) == 1
    assert s3.called("abort_multipart_upload")[0]["UploadId"] == "upload-1"
    assert s3.called("complete_multipart_upload") == []
    assert sleeps == [2, 4]


@pytest.mark.asyncio
async def test_part_recovers_after_retry(storage_settings, sleeps):
    s3 = FakeS3Client(failing_parts={1: 1})
    uploader = uploader_for(storage_settings, s3)

    await uploader.upload(b"x" * (PART_SIZE * 2), "identifications/u/e.jpg")

    assert [p["PartNumber"] for p in s3.called("upload_part")] == [1, 1, 2]
    assert len(s3.called("complete_multipart_upload")) == 1
    assert sleeps == [2]


@pytest.mark.asyncio
async def test_abort_failure_does_not_mask_part_error(storage_settings):
    s3 = FakeS3Client(failing_parts={1: -1}, fail_abort=True)
    uploader = uploader_for(storage_settings, s3)

    with pytest.raises(PartUploadError):
        await uploader.upload(b"x" * PART_SIZE, "identifications/u/f.jpg")

    assert len(s3.called("abort_multipart_upload")) == 1


@pytest.mark.asyncio
async def test_missing_upload_id_is_storage_error(storage_settings):
    s3 = FakeS3Client(upload_id=None)
    uploader = uploader_for(storage_settings, s3)

    with pytest.raises(StorageError):
        await uploader.upload(b"x" * PART_SIZE, "identifications/u/g.jpg")

    assert s3.called("upload_part") == []


@pytest.mark.asyncio
async def test_client_uses_sigv4_and_configured_endpoint(storage_settings):
    s3 = FakeS3Client()
    session = FakeS3Session(s3)
    uploader = ChunkedUploader(storage_settings, session=session)

    await uploader.upload(b"tiny", "identifications/u/h.jpg")

    client_kwargs = session.client_kwargs[0]
    assert client_kwargs["service_name"] == "s3"
    assert client_kwargs["endpoint_url"] == "https://storage.test"
    assert client_kwargs["config"].signature_version == "s3v4"


@pytest.mark.asyncio
async def test_signed_url_uses_default_expiry(uploader, fake_s3):
    url = await uploader.generate_signed_url("identifications/u/a.jpg")

    assert url == "https://storage.test/test-bucket/identifications/u/a.jpg?expires=600"
    assert fake_s3.called("generate_presigned_url")[0]["operation"] == "get_object"


@pytest.mark.asyncio
async def test_signed_url_custom_expiry(uploader):
    url = await uploader.generate_signed_url("identifications/u/a.jpg", expiry_seconds=60)
    assert url.endswith("?expires=60")


@pytest.mark.asyncio
async def test_signed_url_failure_returns_none(storage_settings):
    uploader = uploader_for(storage_settings, FakeS3Client(fail_presign=True))
    assert await uploader.generate_signed_url("identifications/u/a.jpg") is None


@pytest.mark.asyncio
async def test_delete(uploader, fake_s3):
    await uploader.upload(b"tiny", "identifications/u/i.jpg")

    assert await uploader.delete("identifications/u/i.jpg") is True
    assert "identifications/u/i.jpg" not in fake_s3.objects


@pytest.mark.asyncio
async def test_delete_failure_is_swallowed(storage_settings):
    uploader = uploader_for(storage_settings, FakeS3Client(fail_delete=True))
    assert await uploader.delete("identifications/u/i.jpg") is False
