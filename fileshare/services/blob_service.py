import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Tuple

from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient as SyncBlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)
from azure.storage.blob.aio import BlobServiceClient as AsyncBlobServiceClient

from fileshare.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class BlobService:
    def __init__(self, settings: Settings | None = None, container_name: str | None = None):
        self.settings = settings or get_settings()
        self.use_local_storage = self.settings.app_env == "development"
        self.container_name = container_name or self.settings.azure_blob_files_container
        self.storage_path = Path(self.settings.local_storage_path)
        if self.use_local_storage:
            self.storage_path.mkdir(parents=True, exist_ok=True)

        self._connection_string = self.settings.azure_storage_connection_string
        self._async_client: AsyncBlobServiceClient | None = None
        self._sync_client: SyncBlobServiceClient | None = None
        self._container_initialized = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self) -> None:
        if self._async_client:
            await self._async_client.close()
        if self._sync_client:
            self._sync_client.close()

    def _get_async_client(self) -> AsyncBlobServiceClient:
        if not self._async_client:
            self._async_client = AsyncBlobServiceClient.from_connection_string(self._connection_string)
        return self._async_client

    def _get_sync_client(self) -> SyncBlobServiceClient:
        if not self._sync_client:
            self._sync_client = SyncBlobServiceClient.from_connection_string(self._connection_string)
        return self._sync_client

    def make_blob_path(self, blob_name: str) -> str:
        return f"{self.container_name}/{blob_name}"

    def _split_blob_identifier(self, identifier: str) -> Tuple[str, str]:
        if "/" in identifier:
            container, blob_name = identifier.split("/", 1)
        else:
            container = self.container_name
            blob_name = identifier

        if container != self.container_name:
            raise ValueError(
                f"Blob container mismatch: expected {self.container_name}, got {container}"
            )
        return container, blob_name

    async def _ensure_container(self) -> None:
        if self.use_local_storage or self._container_initialized:
            return

        container_client = self._get_async_client().get_container_client(self.container_name)
        if not await container_client.exists():
            logger.info("Creating container '%s'", self.container_name)
            await container_client.create_container()
        self._container_initialized = True

    async def upload_blob(
        self,
        blob_name: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> str:
        """Upload ``data`` and return its ``<container>/<blob>`` storage path."""
        if self.use_local_storage:
            file_path = self.storage_path / blob_name
            await asyncio.to_thread(file_path.write_bytes, data)
            return self.make_blob_path(blob_name)

        await self._ensure_container()
        blob_client = self._get_async_client().get_blob_client(self.container_name, blob_name)
        # Shared names must stay unique, never overwrite
        await blob_client.upload_blob(
            data,
            overwrite=False,
            content_settings=ContentSettings(content_type=content_type, cache_control="max-age=3600"),
        )
        return self.make_blob_path(blob_name)

    async def delete_blob(self, blob_identifier: str) -> None:
        _, blob_name = self._split_blob_identifier(blob_identifier)

        if self.use_local_storage:
            file_path = self.storage_path / blob_name
            if file_path.exists():
                await asyncio.to_thread(file_path.unlink)
            return

        blob_client = self._get_async_client().get_blob_client(self.container_name, blob_name)
        await blob_client.delete_blob(delete_snapshots="include")

    def generate_sas_url(self, blob_identifier: str, expiry_minutes: int | None = None) -> str:
        """
        指定されたBlobへの一時的な読み取り専用URL (SAS URL) を生成する。
        ローカル環境では file:// URL を返す。
        """
        _, blob_name = self._split_blob_identifier(blob_identifier)
        if expiry_minutes is None:
            expiry_minutes = self.settings.signed_url_expiry_minutes

        if self.use_local_storage:
            file_path = self.storage_path / blob_name
            if not file_path.exists():
                raise FileNotFoundError(f"File not found locally: {file_path}")
            return file_path.absolute().as_uri()

        account_name, account_key = self._parse_connection_string(self._connection_string)

        sas_token = generate_blob_sas(
            account_name=account_name,
            container_name=self.container_name,
            blob_name=blob_name,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            expiry=datetime.now(timezone.utc) + timedelta(minutes=expiry_minutes),
        )

        blob_client = self._get_sync_client().get_blob_client(self.container_name, blob_name)
        return f"{blob_client.url}?{sas_token}"

    @staticmethod
    def _parse_connection_string(conn_str: str) -> tuple[str, str]:
        account_key = None
        account_name = None

        for part in conn_str.split(";"):
            if part.startswith("AccountKey="):
                account_key = part.split("=", 1)[1]
            elif part.startswith("AccountName="):
                account_name = part.split("=", 1)[1]

        if not account_key or not account_name:
            raise ValueError("Could not parse AccountKey or AccountName from connection string.")

        return account_name, account_key
