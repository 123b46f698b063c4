"""
Per-file, per-IP download quota.

DownloadGate decides whether a (file, ip) pair may download now and
AttemptRecorder appends every attempt to the attempt log the gate counts.
Both receive their store explicitly and hold no state between requests.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from fileshare.core import messages
from fileshare.schemas.download import DownloadLimitCheck
from fileshare.services.attempt_store import AttemptStore, NewDownloadAttempt, StoreError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_WINDOW = timedelta(hours=24)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LimitErrorKind(str, Enum):
    STORE_ERROR = "store_error"
    QUOTA_EXCEEDED = "quota_exceeded"


class GateOutcome(str, Enum):
    OPEN = "open"
    REJECT = "reject"


# Only the quota decision may block a download.
ERROR_POLICY: dict[LimitErrorKind, GateOutcome] = {
    LimitErrorKind.STORE_ERROR: GateOutcome.OPEN,
    LimitErrorKind.QUOTA_EXCEEDED: GateOutcome.REJECT,
}


class DownloadGate:
    def __init__(
        self,
        store: AttemptStore,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window: timedelta = DEFAULT_WINDOW,
        now: Clock = utcnow,
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.window = window
        self.now = now

    def check_download_limit(self, file_id: str, ip_address: str) -> DownloadLimitCheck:
        """
        直近 window 内の成功ダウンロード数を数え、ダウンロード可否を返す。
        ログへの書き込みは行わない。
        """
        since = self.now() - self.window
        try:
            count = self.store.count_successful(file_id, ip_address, since)
        except StoreError:
            logger.warning(
                "Error checking download attempts for file %s, allowing download",
                file_id,
                exc_info=True,
            )
            return self._apply_policy(LimitErrorKind.STORE_ERROR)

        if count >= self.max_attempts:
            logger.info(
                "Download limit reached for file %s from %s (%d/%d)",
                file_id,
                ip_address,
                count,
                self.max_attempts,
            )
            return self._apply_policy(LimitErrorKind.QUOTA_EXCEEDED)

        return DownloadLimitCheck(
            can_download=True,
            remaining_attempts=self.max_attempts - count,
        )

    def _apply_policy(self, kind: LimitErrorKind) -> DownloadLimitCheck:
        outcome = ERROR_POLICY[kind]
        if outcome is GateOutcome.OPEN:
            return DownloadLimitCheck(
                can_download=True,
                remaining_attempts=self.max_attempts,
                message=messages.LIMIT_CHECK_FAILED,
            )
        return DownloadLimitCheck(
            can_download=False,
            remaining_attempts=0,
            message=messages.limit_reached(self.max_attempts),
        )


class AttemptRecorder:
    def __init__(self, store: AttemptStore, now: Clock = utcnow):
        self.store = store
        self.now = now

    def record_download_attempt(
        self,
        file_id: str,
        ip_address: str,
        user_agent: str | None = None,
        success: bool = True,
    ) -> None:
        """Append one attempt. Write failures are logged and never raised."""
        attempt = NewDownloadAttempt(
            file_id=file_id,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            downloaded_at=self.now(),
        )
        try:
            self.store.insert(attempt)
        except StoreError:
            logger.error(
                "Error recording download attempt for file %s (success=%s)",
                file_id,
                success,
                exc_info=True,
            )
