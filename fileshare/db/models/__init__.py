from fileshare.db.models.file import File
from fileshare.db.models.download_attempt import DownloadAttempt

__all__ = ["File", "DownloadAttempt"]
