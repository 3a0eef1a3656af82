"""
Document Storage - persists generated PDFs on local disk or S3/MinIO

Keys are relative paths such as ``{school_id}/documents/{document_id}.pdf``.
Local mode writes under STORAGE_LOCAL_PATH with aiofiles; s3 mode uses boto3.
"""

import asyncio
from functools import partial
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, BotoCoreError

from app.core.config import settings
from app.core.exceptions import StorageError
from app.core.logging_config import logger


class DocumentStorage:
    """Save, load and delete document files"""

    def __init__(self, mode: Optional[str] = None, base_path: Optional[Path] = None):
        self.mode = (mode or settings.STORAGE_MODE).lower()
        self._base_path = base_path
        self._client = None
        self._bucket_name = settings.S3_BUCKET_NAME

    @property
    def base_path(self) -> Path:
        # Resolved lazily so tests can point STORAGE_LOCAL_PATH at a tmp dir
        return self._base_path or settings.STORAGE_DIR

    def _get_client(self):
        """Lazy initialization of S3/MinIO client"""
        if self._client is None:
            if settings.USE_MINIO:
                self._client = boto3.client(
                    "s3",
                    endpoint_url=f"http://{settings.MINIO_ENDPOINT}",
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                    config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
                    region_name=settings.AWS_REGION,
                )
            elif settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
                self._client = boto3.client(
                    "s3",
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                    region_name=settings.AWS_REGION,
                )
            else:
                # IAM role credentials (ECS/EC2)
                self._client = boto3.client("s3", region_name=settings.AWS_REGION)
        return self._client

    def _local_path(self, key: str) -> Path:
        base = self.base_path.resolve()
        path = (base / key).resolve()
        if base not in path.parents:
            raise StorageError("Invalid storage key", key=key)
        return path

    @staticmethod
    def build_key(school_id: str, folder: str, name: str) -> str:
        return f"{school_id}/{folder}/{name}"

    async def _run(self, func, *args, **kwargs):
        # boto3 is synchronous
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def save(self, key: str, content: bytes, content_type: str = "application/pdf") -> int:
        """Store bytes under key; returns the size written"""
        try:
            if self.mode == "s3":
                await self._run(
                    self._get_client().put_object,
                    Bucket=self._bucket_name,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                )
            else:
                path = self._local_path(key)
                path.parent.mkdir(parents=True, exist_ok=True)
                async with aiofiles.open(path, "wb") as f:
                    await f.write(content)
        except StorageError:
            raise
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error(f"[Storage] Failed to save {key}: {e}")
            raise StorageError(f"Failed to save file: {e}", key=key)

        logger.debug(f"[Storage] Saved {key} ({len(content)} bytes, {self.mode})")
        return len(content)

    async def load(self, key: str) -> bytes:
        """Read bytes for key; StorageError if missing"""
        try:
            if self.mode == "s3":
                response = await self._run(
                    self._get_client().get_object,
                    Bucket=self._bucket_name,
                    Key=key,
                )
                return await self._run(response["Body"].read)

            path = self._local_path(key)
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except StorageError:
            raise
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error(f"[Storage] Failed to load {key}: {e}")
            raise StorageError("File not found in storage", key=key)

    async def delete(self, key: str) -> bool:
        """Remove key; returns False if there was nothing to delete"""
        try:
            if self.mode == "s3":
                await self._run(
                    self._get_client().delete_object,
                    Bucket=self._bucket_name,
                    Key=key,
                )
                return True

            path = self._local_path(key)
            if not path.exists():
                return False
            await aiofiles.os.remove(path)
            return True
        except StorageError:
            raise
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error(f"[Storage] Failed to delete {key}: {e}")
            raise StorageError(f"Failed to delete file: {e}", key=key)


# Singleton instance
document_storage = DocumentStorage()
