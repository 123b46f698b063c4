import re
import secrets
import time
from pathlib import PurePath

SHARE_TOKEN_BYTES = 16
_RANDOM_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\s\-_()\[\]]")
_MAX_STEM_LENGTH = 50


def generate_share_token() -> str:
    """公開リンク用の推測困難なトークンを生成する。"""
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


def build_storage_name(original_name: str, now_ms: int | None = None) -> str:
    """
    Build the blob name ``<clean stem>_<timestamp>_<random>.<ext>``.

    The stem keeps letters, digits, whitespace and ``-_()[]``; whitespace
    becomes ``_`` and the result is cut to 50 characters. The timestamp is the
    last 8 digits of the epoch milliseconds.
    """
    path = PurePath(original_name)
    stem, ext = path.stem, path.suffix.lstrip(".")

    clean_stem = _UNSAFE_CHARS.sub("", stem)
    clean_stem = re.sub(r"\s+", "_", clean_stem)[:_MAX_STEM_LENGTH] or "file"

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    timestamp = str(now_ms)[-8:]
    random_id = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(4))

    name = f"{clean_stem}_{timestamp}_{random_id}"
    return f"{name}.{ext}" if ext else name
