import logging

from fastapi import APIRouter, Depends, Request

from fileshare.api.deps import get_client_ip_address, get_download_service, get_file_service
from fileshare.schemas.common import ErrorResponse
from fileshare.schemas.download import (
    DownloadLimitCheck,
    DownloadLinkResponse,
    LimitExceededResponse,
)
from fileshare.schemas.file import SharedFileView
from fileshare.services.download_service import DownloadService
from fileshare.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Share"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse}}


@router.get("/share/{token}", response_model=SharedFileView, responses=NOT_FOUND_RESPONSE)
def get_shared_file(
    token: str,
    file_service: FileService = Depends(get_file_service),
):
    """共有リンク画面用のファイル情報"""
    return file_service.get_public_by_token(token)


@router.get(
    "/check-limits/{token}",
    response_model=DownloadLimitCheck,
    response_model_exclude_none=True,
    responses=NOT_FOUND_RESPONSE,
)
def check_limits(
    token: str,
    client_ip: str = Depends(get_client_ip_address),
    download_service: DownloadService = Depends(get_download_service),
):
    """ダウンロード前の残り回数確認（履歴は記録しない）"""
    return download_service.check_limits(token, client_ip)


@router.get(
    "/download/{token}",
    response_model=DownloadLinkResponse,
    responses={
        **NOT_FOUND_RESPONSE,
        429: {"model": LimitExceededResponse},
        500: {"model": ErrorResponse},
    },
)
def download_shared_file(
    token: str,
    request: Request,
    client_ip: str = Depends(get_client_ip_address),
    download_service: DownloadService = Depends(get_download_service),
):
    """
    署名付きダウンロードURLを発行し、ダウンロード試行を記録する。
    既定では1ファイル・1IPあたり24時間で3回まで。
    """
    user_agent = request.headers.get("user-agent") or "Unknown"
    return download_service.start_download(token, client_ip, user_agent)
