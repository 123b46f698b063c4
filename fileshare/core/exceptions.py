from fileshare.core import messages


class FileShareError(Exception):
    """Base class for errors rendered as ``{"error": ...}`` JSON responses."""

    status_code: int = 500

    def __init__(self, error: str = messages.INTERNAL_ERROR, status_code: int | None = None):
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict:
        return {"error": self.error}


class ShareNotFoundError(FileShareError):
    status_code = 404

    def __init__(self, error: str = messages.FILE_NOT_FOUND):
        super().__init__(error)


class DownloadLimitExceededError(FileShareError):
    status_code = 429

    def __init__(self, error: str, remaining_attempts: int = 0):
        super().__init__(error)
        self.remaining_attempts = remaining_attempts

    def to_body(self) -> dict:
        return {"error": self.error, "remainingAttempts": self.remaining_attempts}


class DownloadLinkError(FileShareError):
    status_code = 500

    def __init__(self, error: str = messages.DOWNLOAD_LINK_ERROR):
        super().__init__(error)


class UploadRejectedError(FileShareError):
    status_code = 400
