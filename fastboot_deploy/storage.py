"""Storage for deployable archives."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import UploadException

__all__ = [
    "Storage",
    "S3Storage",
    "UploadResult",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Location of an uploaded archive."""

    bucket: str
    key: str
    size: int


class Storage(ABC):
    """A bucket store that archives are uploaded to."""

    @abstractmethod
    async def upload(self, bucket: str, key: str, path: Path) -> UploadResult:
        """Upload the file at `path` to `bucket` under `key`."""


class S3Storage(Storage):
    """Uploads archives to an S3 bucket."""

    def __init__(self, region: str | None = None, client: Any = None) -> None:
        """Initialize S3Storage."""
        self._region = region
        self._client = client

    @property
    def client(self) -> Any:
        """Return the S3 client, created on first use."""
        if self._client is None:
            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def _upload(self, bucket: str, key: str, path: Path) -> UploadResult:
        with path.open("rb") as body:
            self.client.upload_fileobj(body, bucket, key)
        return UploadResult(bucket=bucket, key=key, size=path.stat().st_size)

    async def upload(self, bucket: str, key: str, path: Path) -> UploadResult:
        """Stream the file to the bucket."""
        _LOGGER.debug("Uploading %s to s3://%s/%s", path, bucket, key)
        try:
            return await asyncio.to_thread(self._upload, bucket, key, path)
        except (BotoCoreError, ClientError, Boto3Error, OSError) as err:
            raise UploadException(
                f"Unable to upload {path} to s3://{bucket}/{key}: {err}"
            ) from err
