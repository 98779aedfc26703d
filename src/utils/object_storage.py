import asyncio
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator

import aioboto3
from botocore.config import Config

from src.utils.logger import get_logger
from src.utils.settings.storage import StorageSettings

logger = get_logger(__name__)

DEFAULT_PART_SIZE = 1024 * 1024


class StorageError(Exception):
    """Object storage operation failed."""


class PartUploadError(StorageError):
    """A multi-part chunk kept failing after every retry."""

    def __init__(self, part_number: int, attempts: int, cause: BaseException):
        self.part_number = part_number
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Failed to upload part {part_number} after {attempts} attempts: {cause}"
        )


@dataclass
class UploadTask:
    """One payload headed for storage. Consumed by a single upload call."""

    buffer: bytes
    destination_key: str
    mime_type: str = "application/octet-stream"
    part_size: int = DEFAULT_PART_SIZE

    @property
    def is_multipart(self) -> bool:
        return len(self.buffer) >= self.part_size

    @property
    def total_parts(self) -> int:
        return max(1, math.ceil(len(self.buffer) / self.part_size))

    def part(self, part_number: int) -> bytes:
        start = (part_number - 1) * self.part_size
        return self.buffer[start : start + self.part_size]


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


class ChunkedUploader:
    """Uploads binary payloads to S3-compatible storage.

    Payloads smaller than the part size go up in a single put. Anything at or
    above it is sent as a multi-part upload: parts are uploaded one at a time,
    each retried with ``2 ** attempt`` second backoff, and the whole session is
    aborted if a part cannot be uploaded. Only storage keys are returned;
    reads go through ``generate_signed_url``.
    """

    def __init__(
        self,
        settings: StorageSettings | None = None,
        session: Any = None,
    ):
        self.settings = settings or StorageSettings()
        self._session = session

    @property
    def part_size(self) -> int:
        return self.settings.UPLOAD_PART_SIZE

    @property
    def max_retries(self) -> int:
        return self.settings.UPLOAD_MAX_RETRIES

    def _get_session(self) -> aioboto3.Session:
        """Get or create aioboto3 session."""
        if self._session is None:
            self._session = aioboto3.Session(
                aws_access_key_id=self.settings.S3_ACCESS_KEY,
                aws_secret_access_key=self.settings.S3_SECRET_KEY.get_secret_value(),
                region_name=self.settings.S3_REGION,
            )
        return self._session

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[Any]:
        session = self._get_session()
        # SigV4 is required for presigned URLs on most S3-compatible backends
        config = Config(signature_version="s3v4")
        async with session.client(
            "s3",
            endpoint_url=self.settings.S3_ENDPOINT,
            config=config,
        ) as s3_client:
            yield s3_client

    def build_task(
        self,
        data: bytes,
        destination_key: str,
        mime_type: str = "application/octet-stream",
    ) -> UploadTask:
        return UploadTask(
            buffer=data,
            destination_key=destination_key,
            mime_type=mime_type,
            part_size=self.part_size,
        )

    async def upload(
        self,
        data: bytes,
        destination_key: str,
        mime_type: str = "application/octet-stream",
    ) -> str:
        """Store ``data`` under ``destination_key`` and return the key."""
        return await self.upload_task(self.build_task(data, destination_key, mime_type))

    async def upload_task(self, task: UploadTask) -> str:
        async with self._client() as s3_client:
            if not task.is_multipart:
                await s3_client.put_object(
                    Bucket=self.settings.S3_BUCKET,
                    Key=task.destination_key,
                    Body=task.buffer,
                    ContentType=task.mime_type,
                )
                logger.info(
                    "Uploaded object",
                    key=task.destination_key,
                    size=len(task.buffer),
                )
                return task.destination_key

            return await self._multipart_upload(s3_client, task)

    async def _multipart_upload(self, s3_client: Any, task: UploadTask) -> str:
        bucket = self.settings.S3_BUCKET
        created = await s3_client.create_multipart_upload(
            Bucket=bucket,
            Key=task.destination_key,
            ContentType=task.mime_type,
        )
        upload_id = created.get("UploadId")
        if not upload_id:
            raise StorageError("Failed to create multipart upload")

        try:
            parts: list[dict[str, Any]] = []
            for part_number in range(1, task.total_parts + 1):
                etag = await self._upload_part(s3_client, task, upload_id, part_number)
                parts.append({"ETag": etag, "PartNumber": part_number})

            await s3_client.complete_multipart_upload(
                Bucket=bucket,
                Key=task.destination_key,
                UploadId=upload_id,
                MultipartUpload={
                    "Parts": sorted(parts, key=lambda p: p["PartNumber"])
                },
            )
        except Exception:
            await self._abort(s3_client, task.destination_key, upload_id)
            raise

        logger.info(
            "Completed multipart upload",
            key=task.destination_key,
            size=len(task.buffer),
            parts=task.total_parts,
        )
        return task.destination_key

    async def _upload_part(
        self, s3_client: Any, task: UploadTask, upload_id: str, part_number: int
    ) -> str:
        attempts = 0
        while True:
            try:
                result = await s3_client.upload_part(
                    Bucket=self.settings.S3_BUCKET,
                    Key=task.destination_key,
                    PartNumber=part_number,
                    UploadId=upload_id,
                    Body=task.part(part_number),
                )
                return result["ETag"]
            except Exception as e:
                attempts += 1
                if attempts >= self.max_retries:
                    raise PartUploadError(part_number, attempts, e) from e
                logger.warning(
                    "Part upload failed, retrying",
                    key=task.destination_key,
                    part_number=part_number,
                    attempt=attempts,
                    error=str(e),
                )
                await _sleep(2**attempts)

    async def _abort(self, s3_client: Any, key: str, upload_id: str) -> None:
        try:
            await s3_client.abort_multipart_upload(
                Bucket=self.settings.S3_BUCKET,
                Key=key,
                UploadId=upload_id,
            )
            logger.warning("Aborted multipart upload", key=key, upload_id=upload_id)
        except Exception as e:
            logger.error(
                "Failed to abort multipart upload",
                key=key,
                upload_id=upload_id,
                error=str(e),
            )

    async def generate_signed_url(
        self, key: str, expiry_seconds: int | None = None
    ) -> str | None:
        """Generate a temporary signed URL for an object key."""
        try:
            async with self._client() as s3_client:
                return await s3_client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.settings.S3_BUCKET, "Key": key},
                    ExpiresIn=expiry_seconds or self.settings.SIGNED_URL_EXPIRY_SECONDS,
                )
        except Exception as e:
            logger.error("Failed to generate signed URL", key=key, error=str(e))
            return None

    async def delete(self, key: str) -> bool:
        """Delete ``key``. Failures are logged and reported as ``False``."""
        try:
            async with self._client() as s3_client:
                await s3_client.delete_object(Bucket=self.settings.S3_BUCKET, Key=key)
            logger.info("Deleted object", key=key)
            return True
        except Exception as e:
            logger.error("Failed to delete object", key=key, error=str(e))
            return False
