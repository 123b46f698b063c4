import ipaddress
import logging
from typing import Iterable, Mapping

from fastapi import Request

logger = logging.getLogger(__name__)

LOOPBACK_PLACEHOLDER = "127.0.0.1"
MAX_IP_LENGTH = 45  # download_attempts.ip_address


def _normalize_ip(candidate: str) -> str | None:
    try:
        address = str(ipaddress.ip_address(candidate))
    except ValueError:
        return None
    return address if len(address) <= MAX_IP_LENGTH else None


def resolve_client_ip(
    headers: Mapping[str, str],
    trusted_headers: Iterable[str],
    peer_host: str | None = None,
) -> str:
    """
    リクエストヘッダーからクライアントIPを推定する。

    trusted_headers を先頭から順に確認し、最初に値が入っているものを採用する。
    X-Forwarded-For のようなカンマ区切りの値は先頭要素（元のクライアント）を使う。
    IPアドレスとして解釈できない値は無視して次の候補へ進む。
    どのヘッダーも無い場合は接続元アドレス、最後にループバックを返す。
    Headers are client-controlled unless a proxy overwrites them, so the list
    must match the deployment topology.
    """
    for name in trusted_headers:
        value = headers.get(name)
        if not value:
            continue
        candidate = _normalize_ip(value.split(",")[0].strip())
        if candidate:
            return candidate
        logger.debug("Ignoring unparsable %s header value", name)

    if peer_host:
        return peer_host

    logger.debug("No client address available, using %s", LOOPBACK_PLACEHOLDER)
    return LOOPBACK_PLACEHOLDER


def get_client_ip(request: Request, trusted_headers: Iterable[str]) -> str:
    peer_host = request.client.host if request.client else None
    return resolve_client_ip(request.headers, trusted_headers, peer_host)
