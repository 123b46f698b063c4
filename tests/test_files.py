import re

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from fileshare.api.deps import get_file_service
from fileshare.core import messages
from fileshare.core.security import build_storage_name, generate_share_token
from fileshare.db.models import DownloadAttempt, File
from fileshare.main import app
from fileshare.services.attempt_store import SqlAlchemyAttemptStore
from fileshare.services.download_limit_service import AttemptRecorder
from fileshare.services.file_service import FileService


def test_storage_name_keeps_readable_stem():
    name = build_storage_name("Informe final (v2) [draft]!.pdf", now_ms=1760000012345678)
    assert re.fullmatch(r"Informe_final_\(v2\)_\[draft\]_12345678_[a-z0-9]{4}\.pdf", name)


def test_storage_name_limits_stem_and_handles_missing_extension():
    name = build_storage_name("a" * 80, now_ms=123)
    stem, timestamp, random_id = name.split("_")
    assert stem == "a" * 50
    assert timestamp == "123"
    assert len(random_id) == 4

    assert build_storage_name("%%%.txt", now_ms=42).startswith("file_42_")


def test_share_tokens_are_url_safe_and_unique():
    tokens = {generate_share_token() for _ in range(100)}
    assert len(tokens) == 100
    assert all(re.fullmatch(r"[A-Za-z0-9_-]{20,}", token) for token in tokens)


def test_upload_creates_public_share(client, db, blob_stub):
    response = client.post(
        "/api/v1/files/",
        files={"uploaded_file": ("apuntes tema 1.txt", b"hola mundo", "text/plain")},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["originalFilename"] == "apuntes tema 1.txt"
    assert body["fileSize"] == 10
    assert body["isPublic"] is True
    assert body["downloadCount"] == 0
    assert body["sharePath"] == f"/share/{body['shareToken']}"
    assert body["filename"].startswith("apuntes_tema_1_")

    stored = db.query(File).filter(File.share_token == body["shareToken"]).one()
    assert blob_stub.uploaded[stored.storage_path] == b"hola mundo"


def test_upload_rejects_oversized_file(client, test_settings, blob_stub):
    test_settings.max_upload_size_mb = 1
    payload = b"x" * (1024 * 1024 + 1)
    response = client.post(
        "/api/v1/files/",
        files={"uploaded_file": ("big.bin", payload, "application/octet-stream")},
    )
    assert response.status_code == 413
    assert "1 MB" in response.json()["error"]
    assert blob_stub.uploaded == {}


def test_list_only_shows_public_files(client, shared_file):
    visible = shared_file()
    shared_file(is_public=False)

    response = client.get("/api/v1/files/")
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [visible.id]


def test_list_is_disabled_in_production(client, test_settings, shared_file):
    shared_file()
    test_settings.app_env = "production"
    response = client.get("/api/v1/files/")
    assert response.status_code == 404
    assert response.json() == {"error": messages.NOT_FOUND}


def test_delete_removes_row_and_blob(client, db, blob_stub, shared_file):
    file_obj = shared_file()
    storage_path = file_obj.storage_path
    file_id = file_obj.id

    response = client.delete(f"/api/v1/files/{file_id}")
    assert response.status_code == 204
    assert blob_stub.deleted == [storage_path]
    assert db.query(File).filter(File.id == file_id).count() == 0

    assert client.delete(f"/api/v1/files/{file_id}").status_code == 404


def test_delete_cascades_to_download_attempts(client, db, clock, shared_file):
    file_obj = shared_file()
    kept = shared_file()
    recorder = AttemptRecorder(SqlAlchemyAttemptStore(db), now=clock)
    recorder.record_download_attempt(file_obj.id, "1.2.3.4", success=True)
    recorder.record_download_attempt(file_obj.id, "1.2.3.4", success=False)
    recorder.record_download_attempt(kept.id, "1.2.3.4", success=True)
    file_id, kept_id = file_obj.id, kept.id

    assert client.delete(f"/api/v1/files/{file_id}").status_code == 204

    db.expire_all()
    assert db.query(DownloadAttempt).filter(DownloadAttempt.file_id == file_id).count() == 0
    assert db.query(DownloadAttempt).filter(DownloadAttempt.file_id == kept_id).count() == 1


def test_attempts_for_unknown_file_are_not_stored(db, clock):
    recorder = AttemptRecorder(SqlAlchemyAttemptStore(db), now=clock)
    recorder.record_download_attempt("no-such-file", "1.2.3.4", success=True)
    assert db.query(DownloadAttempt).count() == 0


def test_upload_with_empty_filename_is_rejected(client, db, blob_stub):
    response = client.post(
        "/api/v1/files/",
        files={"uploaded_file": ("", b"x", "text/plain")},
    )
    assert response.status_code == 400
    assert "error" in response.json()
    assert blob_stub.uploaded == {}
    assert db.query(File).count() == 0


def test_upload_without_file_part_is_rejected(client):
    response = client.post("/api/v1/files/", data={"other": "value"})
    assert response.status_code == 400
    assert response.json() == {"error": messages.INVALID_REQUEST}


def test_failed_insert_deletes_uploaded_blob(client, db, blob_stub, monkeypatch):
    def broken_create(self, payload):
        raise OperationalError("INSERT INTO files", {}, Exception("database is locked"))

    monkeypatch.setattr(FileService, "create", broken_create)

    response = client.post(
        "/api/v1/files/",
        files={"uploaded_file": ("notas.txt", b"contenido", "text/plain")},
    )
    assert response.status_code == 500
    assert response.json() == {"error": messages.UPLOAD_FAILED}

    assert len(blob_stub.uploaded) == 1
    (storage_path,) = blob_stub.uploaded
    assert blob_stub.deleted == [storage_path]
    assert db.query(File).count() == 0


def test_unexpected_errors_return_generic_body(client):
    def failing_file_service():
        raise RuntimeError("connection pool exhausted")

    app.dependency_overrides[get_file_service] = failing_file_service
    with TestClient(app, raise_server_exceptions=False) as raw_client:
        response = raw_client.get("/api/v1/files/some-id")

    assert response.status_code == 500
    assert response.json() == {"error": messages.INTERNAL_ERROR}
