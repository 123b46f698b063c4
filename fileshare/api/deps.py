from collections.abc import AsyncGenerator
from datetime import timedelta

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fileshare.core.client_ip import get_client_ip
from fileshare.core.config import Settings, get_settings
from fileshare.db.session import get_db
from fileshare.services.attempt_store import AttemptStore, SqlAlchemyAttemptStore
from fileshare.services.blob_service import BlobService
from fileshare.services.download_limit_service import (
    AttemptRecorder,
    Clock,
    DownloadGate,
    utcnow,
)
from fileshare.services.download_service import DownloadService
from fileshare.services.file_service import FileService


def get_app_settings() -> Settings:
    return get_settings()


def get_db_session(db: Session = Depends(get_db)) -> Session:
    return db


def get_clock() -> Clock:
    return utcnow


def get_attempt_store(db: Session = Depends(get_db_session)) -> AttemptStore:
    return SqlAlchemyAttemptStore(db)


def get_download_gate(
    store: AttemptStore = Depends(get_attempt_store),
    settings: Settings = Depends(get_app_settings),
    now: Clock = Depends(get_clock),
) -> DownloadGate:
    return DownloadGate(
        store,
        max_attempts=settings.download_max_attempts,
        window=timedelta(hours=settings.download_window_hours),
        now=now,
    )


def get_attempt_recorder(
    store: AttemptStore = Depends(get_attempt_store),
    now: Clock = Depends(get_clock),
) -> AttemptRecorder:
    return AttemptRecorder(store, now=now)


async def get_blob_service(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[BlobService, None]:
    async with BlobService(settings) as blob_service:
        yield blob_service


def get_file_service(db: Session = Depends(get_db_session)) -> FileService:
    return FileService(db)


def get_download_service(
    file_service: FileService = Depends(get_file_service),
    gate: DownloadGate = Depends(get_download_gate),
    recorder: AttemptRecorder = Depends(get_attempt_recorder),
    blob_service: BlobService = Depends(get_blob_service),
    settings: Settings = Depends(get_app_settings),
) -> DownloadService:
    return DownloadService(
        file_service,
        gate,
        recorder,
        blob_service,
        expiry_minutes=settings.signed_url_expiry_minutes,
    )


def get_client_ip_address(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> str:
    return get_client_ip(request, settings.trusted_ip_headers)
