import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fileshare.api.deps import get_app_settings, get_blob_service, get_clock  # noqa: E402
from fileshare.core.config import Settings  # noqa: E402
from fileshare.db.base import Base  # noqa: E402
from fileshare.db.models import File  # noqa: E402
from fileshare.db.session import build_engine, get_db  # noqa: E402
from fileshare.services.attempt_store import StoreError  # noqa: E402


def make_engine(create_tables: bool = True):
    engine = build_engine("sqlite://", poolclass=StaticPool)
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def engine():
    engine = make_engine()
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))


class InMemoryAttemptStore:
    def __init__(self):
        self.rows = []
        self.fail_reads = False
        self.fail_writes = False

    def insert(self, attempt) -> None:
        if self.fail_writes:
            raise StoreError("store unavailable")
        self.rows.append(attempt)

    def count_successful(self, file_id, ip_address, since) -> int:
        if self.fail_reads:
            raise StoreError("store unavailable")
        return sum(
            1
            for row in self.rows
            if row.file_id == file_id
            and row.ip_address == ip_address
            and row.success
            and row.downloaded_at > since
        )


@pytest.fixture()
def memory_store():
    return InMemoryAttemptStore()


class StubBlobService:
    def __init__(self):
        self.fail_signing = False
        self.uploaded = {}
        self.deleted = []

    def generate_sas_url(self, blob_identifier, expiry_minutes=None):
        if self.fail_signing:
            raise RuntimeError("signing key rejected")
        return f"https://blob.example.test/{blob_identifier}?sig=test&se={expiry_minutes}"

    async def upload_blob(self, blob_name, data, *, content_type=None):
        path = f"files/{blob_name}"
        self.uploaded[path] = data
        return path

    async def delete_blob(self, blob_identifier):
        self.deleted.append(blob_identifier)


@pytest.fixture()
def blob_stub():
    return StubBlobService()


@pytest.fixture()
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        app_env="development",
        sqlalchemy_database_uri="sqlite://",
        local_storage_path=str(tmp_path / "uploads"),
    )


@pytest.fixture()
def client(db, clock, blob_stub, test_settings):
    from fileshare.main import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_blob_service] = lambda: blob_stub
    app.dependency_overrides[get_app_settings] = lambda: test_settings
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def make_file(db, **overrides) -> File:
    file_id = str(uuid4())
    values = {
        "id": file_id,
        "filename": "report_12345678_abcd.pdf",
        "original_filename": "report.pdf",
        "file_size": 2048,
        "mime_type": "application/pdf",
        "storage_path": f"files/{file_id}.pdf",
        "share_token": uuid4().hex,
        "is_public": True,
        "download_count": 0,
    }
    values.update(overrides)
    file_obj = File(**values)
    db.add(file_obj)
    db.commit()
    db.refresh(file_obj)
    return file_obj


@pytest.fixture()
def shared_file(db):
    def _make(**overrides) -> File:
        return make_file(db, **overrides)

    return _make
