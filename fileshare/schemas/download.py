from fileshare.schemas.common import CamelModel


class DownloadLimitCheck(CamelModel):
    can_download: bool
    remaining_attempts: int
    message: str | None = None


class DownloadLinkResponse(CamelModel):
    download_url: str
    filename: str
    remaining_attempts: int
    message: str | None = None


class LimitExceededResponse(CamelModel):
    error: str
    remaining_attempts: int = 0
