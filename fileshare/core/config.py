import json
from functools import lru_cache
from typing import Annotated, Any, List

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_list(value: str, default: List[str]) -> List[str]:
    """JSON配列 or カンマ区切り文字列をリストに変換"""
    if value.strip().startswith("["):
        try:
            parsed = json.loads(value)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except (json.JSONDecodeError, ValueError):
            pass
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items if items else list(default)


DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]
DEFAULT_TRUSTED_IP_HEADERS = ["cf-connecting-ip", "x-real-ip", "x-forwarded-for"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "File Share Backend"
    app_env: str = "development"
    api_v1_str: str = "/api/v1"
    backend_cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    sqlalchemy_database_uri: str = Field(default="sqlite:///./fileshare.db")

    azure_storage_connection_string: str = Field(
        default="DefaultEndpointsProtocol=https;AccountName=storage-account;"
        "AccountKey=storage-key;EndpointSuffix=core.windows.net"
    )
    azure_blob_files_container: str = "files"
    local_storage_path: str = Field(default="uploads")  # development only
    signed_url_expiry_minutes: int = Field(default=60, ge=1)
    max_upload_size_mb: int = Field(default=50, ge=1)

    # Download quota: successful downloads per (file, ip) per rolling window
    download_max_attempts: int = Field(default=3, ge=1)
    download_window_hours: int = Field(default=24, ge=1)

    # Checked in order; only list headers your proxy/CDN actually sets.
    trusted_ip_headers: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_TRUSTED_IP_HEADERS))

    @model_validator(mode="before")
    @classmethod
    def parse_list_fields(cls, data: Any) -> Any:
        """環境変数の読み込み前にリスト項目を処理"""
        if not isinstance(data, dict):
            return data

        defaults = {
            "backend_cors_origins": DEFAULT_CORS_ORIGINS,
            "trusted_ip_headers": DEFAULT_TRUSTED_IP_HEADERS,
        }
        for key in list(data.keys()):
            field = key.lower()
            if field in defaults and isinstance(data[key], str):
                data[key] = _parse_list(data[key], defaults[field])

        if isinstance(data.get("trusted_ip_headers"), list):
            data["trusted_ip_headers"] = [h.lower() for h in data["trusted_ip_headers"]]
        return data

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
