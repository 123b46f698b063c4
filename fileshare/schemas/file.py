from datetime import datetime

from fileshare.schemas.common import CamelModel, TimestampMixin


class FileCreate(CamelModel):
    id: str
    filename: str
    original_filename: str
    file_size: int
    mime_type: str | None = None
    storage_path: str
    share_token: str
    is_public: bool = True


class FileRead(TimestampMixin):
    id: str
    filename: str
    original_filename: str
    file_size: int
    mime_type: str | None = None
    share_token: str
    is_public: bool
    download_count: int


class FileUploadResponse(FileRead):
    share_path: str


class SharedFileView(CamelModel):
    """公開リンク画面用: 内部IDやストレージパスは含めない"""

    original_filename: str
    file_size: int
    mime_type: str | None = None
    download_count: int
    created_at: datetime | None = None
