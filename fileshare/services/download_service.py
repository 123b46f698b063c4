import logging

from fileshare.core import messages
from fileshare.core.exceptions import DownloadLimitExceededError, DownloadLinkError
from fileshare.schemas.download import DownloadLimitCheck, DownloadLinkResponse
from fileshare.services.blob_service import BlobService
from fileshare.services.download_limit_service import AttemptRecorder, DownloadGate
from fileshare.services.file_service import FileService

logger = logging.getLogger(__name__)


class DownloadService:
    """Runs one download attempt: resolve, gate, sign, record."""

    def __init__(
        self,
        file_service: FileService,
        gate: DownloadGate,
        recorder: AttemptRecorder,
        blob_service: BlobService,
        expiry_minutes: int | None = None,
    ):
        self.file_service = file_service
        self.gate = gate
        self.recorder = recorder
        self.blob_service = blob_service
        self.expiry_minutes = expiry_minutes

    def check_limits(self, share_token: str, ip_address: str) -> DownloadLimitCheck:
        file_obj = self.file_service.get_public_by_token(share_token)
        return self.gate.check_download_limit(file_obj.id, ip_address)

    def start_download(
        self,
        share_token: str,
        ip_address: str,
        user_agent: str | None = None,
    ) -> DownloadLinkResponse:
        # Unknown tokens raise before anything is recorded
        file_obj = self.file_service.get_public_by_token(share_token)

        limit = self.gate.check_download_limit(file_obj.id, ip_address)
        if not limit.can_download:
            self.recorder.record_download_attempt(file_obj.id, ip_address, user_agent, success=False)
            raise DownloadLimitExceededError(
                limit.message or messages.limit_reached(self.gate.max_attempts),
                remaining_attempts=0,
            )

        try:
            download_url = self.blob_service.generate_sas_url(
                file_obj.storage_path, expiry_minutes=self.expiry_minutes
            )
        except Exception as exc:
            logger.error("Failed to generate SAS URL for %s: %s", file_obj.id, exc)
            self.recorder.record_download_attempt(file_obj.id, ip_address, user_agent, success=False)
            raise DownloadLinkError() from exc

        self.recorder.record_download_attempt(file_obj.id, ip_address, user_agent, success=True)
        self.file_service.increment_download_count(file_obj.id)

        remaining = max(0, limit.remaining_attempts - 1)
        logger.info("Download link issued for file %s (%d remaining)", file_obj.id, remaining)
        return DownloadLinkResponse(
            download_url=download_url,
            filename=file_obj.original_filename,
            remaining_attempts=remaining,
            message=messages.download_started(remaining),
        )
