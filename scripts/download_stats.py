"""Report download attempts in the current quota window, or one pair's quota."""

import argparse
from datetime import timedelta

from sqlalchemy import case, func

from fileshare.core.config import get_settings
from fileshare.db.models import DownloadAttempt, File
from fileshare.db.session import SessionLocal
from fileshare.services.attempt_store import SqlAlchemyAttemptStore
from fileshare.services.download_limit_service import DownloadGate, utcnow

settings = get_settings()


def report(hours: int) -> None:
    since = utcnow() - timedelta(hours=hours)
    db = SessionLocal()
    try:
        rows = (
            db.query(
                File.original_filename,
                File.share_token,
                func.count(DownloadAttempt.id),
                func.sum(case((DownloadAttempt.success.is_(True), 1), else_=0)),
                func.count(func.distinct(DownloadAttempt.ip_address)),
            )
            .join(File, File.id == DownloadAttempt.file_id)
            .filter(DownloadAttempt.downloaded_at > since)
            .group_by(File.id, File.original_filename, File.share_token)
            .order_by(func.count(DownloadAttempt.id).desc())
            .all()
        )
        print(f"Attempts in the last {hours}h: {len(rows)} files", flush=True)
        for name, token, total, succeeded, ips in rows:
            print(f"  {name} [{token}] attempts={total} ok={succeeded or 0} ips={ips}", flush=True)
    finally:
        db.close()


def quota(share_token: str, ip_address: str) -> None:
    db = SessionLocal()
    try:
        file_obj = db.query(File).filter(File.share_token == share_token).first()
        if file_obj is None:
            print(f"No file for token {share_token}", flush=True)
            return
        gate = DownloadGate(
            SqlAlchemyAttemptStore(db),
            max_attempts=settings.download_max_attempts,
            window=timedelta(hours=settings.download_window_hours),
        )
        result = gate.check_download_limit(file_obj.id, ip_address)
        print(
            f"{file_obj.original_filename} / {ip_address}: "
            f"can_download={result.can_download} remaining={result.remaining_attempts}",
            flush=True,
        )
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Inspect the download attempt log.")
    parser.add_argument("--hours", type=int, default=settings.download_window_hours)
    parser.add_argument("--token", type=str, default=None, help="share token to check")
    parser.add_argument("--ip", type=str, default=None, help="client IP to check")
    args = parser.parse_args()
    if args.token and args.ip:
        quota(args.token, args.ip)
    else:
        report(args.hours)
