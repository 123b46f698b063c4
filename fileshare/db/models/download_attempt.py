from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, backref, mapped_column, relationship

from fileshare.db.base import Base


class DownloadAttempt(Base):
    """One row per download attempt. Rows are never updated."""

    __tablename__ = "download_attempts"
    __table_args__ = (
        Index("ix_download_attempts_file_ip_time", "file_id", "ip_address", "downloaded_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    file_id: Mapped[str] = mapped_column(
        ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)  # IPv4/IPv6
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    downloaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    file = relationship("File", backref=backref("download_attempts", passive_deletes=True))
