from fileshare.schemas.common import ErrorResponse
from fileshare.schemas.download import (
    DownloadLimitCheck,
    DownloadLinkResponse,
    LimitExceededResponse,
)
from fileshare.schemas.file import (
    FileCreate,
    FileRead,
    FileUploadResponse,
    SharedFileView,
)

__all__ = [
    "ErrorResponse",
    "DownloadLimitCheck",
    "DownloadLinkResponse",
    "LimitExceededResponse",
    "FileCreate",
    "FileRead",
    "FileUploadResponse",
    "SharedFileView",
]
