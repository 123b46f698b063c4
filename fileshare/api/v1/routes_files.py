import logging
from uuid import uuid4

from fastapi import (
    APIRouter,
    Depends,
    File as FastAPIFile,
    Query,
    UploadFile,
    status,
)
from starlette.datastructures import UploadFile as StarletteUploadFile

from fileshare.api.deps import get_app_settings, get_blob_service, get_file_service
from fileshare.core import messages
from fileshare.core.config import Settings
from fileshare.core.exceptions import FileShareError, ShareNotFoundError, UploadRejectedError
from fileshare.core.security import build_storage_name, generate_share_token
from fileshare.schemas.file import FileCreate, FileRead, FileUploadResponse
from fileshare.services.blob_service import BlobService
from fileshare.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])


def _share_path(share_token: str) -> str:
    return f"/share/{share_token}"


@router.get("/", response_model=list[FileRead])
def list_files(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    file_service: FileService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
):
    """公開ファイル一覧（本番環境では無効）"""
    if settings.is_production:
        raise ShareNotFoundError(messages.NOT_FOUND)
    return file_service.list_public(limit=limit, offset=offset)


@router.post("/", response_model=FileUploadResponse, status_code=201)
async def upload_file(
    # A part sent with an empty filename arrives as a plain string
    uploaded_file: UploadFile | str = FastAPIFile(...),
    file_service: FileService = Depends(get_file_service),
    blob_service: BlobService = Depends(get_blob_service),
    settings: Settings = Depends(get_app_settings),
):
    if not isinstance(uploaded_file, StarletteUploadFile) or not uploaded_file.filename:
        raise UploadRejectedError(messages.FILENAME_REQUIRED)

    data = await uploaded_file.read()
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise FileShareError(
            messages.FILE_TOO_LARGE.format(max_mb=settings.max_upload_size_mb),
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )

    logger.info("Uploading file: %s (%d bytes)", uploaded_file.filename, len(data))
    storage_name = build_storage_name(uploaded_file.filename)

    try:
        storage_path = await blob_service.upload_blob(
            storage_name,
            data,
            content_type=uploaded_file.content_type,
        )
    except Exception as exc:
        logger.exception("Failed to upload blob %s", storage_name)
        raise FileShareError(messages.UPLOAD_FAILED) from exc

    payload = FileCreate(
        id=str(uuid4()),
        filename=storage_name,
        original_filename=uploaded_file.filename,
        file_size=len(data),
        mime_type=uploaded_file.content_type,
        storage_path=storage_path,
        share_token=generate_share_token(),
        is_public=True,
    )

    try:
        record = file_service.create(payload)
    except Exception as exc:
        file_service.db.rollback()
        await blob_service.delete_blob(storage_path)
        logger.exception("Failed to create DB record, blob deleted")
        raise FileShareError(messages.UPLOAD_FAILED) from exc

    return FileUploadResponse(
        **FileRead.model_validate(record).model_dump(),
        share_path=_share_path(record.share_token),
    )


@router.get("/{file_id}", response_model=FileRead)
def get_file_metadata(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    return file_service.get(file_id)


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
    blob_service: BlobService = Depends(get_blob_service),
):
    storage_path = file_service.delete(file_id)
    try:
        await blob_service.delete_blob(storage_path)
    except Exception as exc:
        # DB row is already gone; the orphaned blob only costs storage
        logger.warning("Failed to delete blob %s: %s", storage_path, exc)
