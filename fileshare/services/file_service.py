import logging
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileshare.core import messages
from fileshare.core.exceptions import ShareNotFoundError
from fileshare.db.models.file import File
from fileshare.schemas.file import FileCreate

logger = logging.getLogger(__name__)


class FileService:
    def __init__(self, db: Session):
        self.db = db

    def list_public(self, limit: int = 50, offset: int = 0) -> List[File]:
        return (
            self.db.query(File)
            .filter(File.is_public.is_(True))
            .order_by(File.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def create(self, payload: FileCreate) -> File:
        file_obj = File(**payload.model_dump(), download_count=0)
        self.db.add(file_obj)
        self.db.commit()
        self.db.refresh(file_obj)
        return file_obj

    def get(self, file_id: str) -> File:
        file_obj = self.db.query(File).filter(File.id == file_id).first()
        if not file_obj:
            raise ShareNotFoundError(messages.FILE_NOT_FOUND)
        return file_obj

    def get_public_by_token(self, share_token: str) -> File:
        """共有トークンから公開ファイルを取得する（非公開・未登録は404扱い）"""
        file_obj = (
            self.db.query(File)
            .filter(File.share_token == share_token, File.is_public.is_(True))
            .first()
        )
        if not file_obj:
            raise ShareNotFoundError(messages.FILE_NOT_AVAILABLE)
        return file_obj

    def delete(self, file_id: str) -> str:
        """Delete the row and return its storage path."""
        file_obj = self.get(file_id)
        storage_path = file_obj.storage_path
        self.db.delete(file_obj)
        self.db.commit()
        return storage_path

    def increment_download_count(self, file_id: str) -> None:
        """Bump the informational counter with a single ``+1`` UPDATE."""
        try:
            self.db.execute(
                update(File)
                .where(File.id == file_id)
                .values(download_count=File.download_count + 1)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.warning("Failed to update download count for %s", file_id, exc_info=True)
