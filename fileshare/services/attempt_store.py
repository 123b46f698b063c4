import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileshare.db.models.download_attempt import DownloadAttempt

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The attempt log could not be read or written."""


@dataclass(frozen=True)
class NewDownloadAttempt:
    file_id: str
    ip_address: str
    user_agent: str | None
    success: bool
    downloaded_at: datetime


class AttemptStore(Protocol):
    """
    Append-only log of download attempts.

    Implementations must raise StoreError for every read or write failure;
    DownloadGate fails open and AttemptRecorder stays silent only for
    StoreError, so any other exception reaches the request handler.
    """

    def insert(self, attempt: NewDownloadAttempt) -> None: ...

    def count_successful(self, file_id: str, ip_address: str, since: datetime) -> int: ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyAttemptStore:
    def __init__(self, db: Session):
        self.db = db

    def insert(self, attempt: NewDownloadAttempt) -> None:
        row = DownloadAttempt(
            file_id=attempt.file_id,
            ip_address=attempt.ip_address,
            user_agent=attempt.user_agent,
            success=attempt.success,
            downloaded_at=_as_utc(attempt.downloaded_at),
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"insert into download_attempts failed: {exc}") from exc

    def count_successful(self, file_id: str, ip_address: str, since: datetime) -> int:
        """Successful attempts for the pair strictly after ``since``."""
        try:
            count = (
                self.db.query(func.count(DownloadAttempt.id))
                .filter(
                    DownloadAttempt.file_id == file_id,
                    DownloadAttempt.ip_address == ip_address,
                    DownloadAttempt.success.is_(True),
                    DownloadAttempt.downloaded_at > _as_utc(since),
                )
                .scalar()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"query on download_attempts failed: {exc}") from exc

        if count is None or count < 0:
            raise StoreError(f"unexpected attempt count: {count!r}")
        return int(count)
