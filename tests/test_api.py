"""End-to-end tests for the games HTTP API."""
import os
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError


def upload(client, data=b"game-bytes", file_name="game.iso", **fields):
    form = {"title": "X", **fields}
    return client.post(
        "/api/games/upload",
        data=form,
        files={"gameFile": (file_name, data, "application/octet-stream")},
    )


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "connected"}


def test_upload_creates_record_and_blob(client):
    data = b"\x7fELF" + b"0" * 500

    resp = upload(client, data=data, file_name="Quake.zip", genre="FPS", releaseDate="1996-06-22")

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Game uploaded successfully"
    game = body["game"]
    assert game["title"] == "X"
    assert game["genre"] == "FPS"
    assert game["releaseDate"] == "1996-06-22"
    assert game["fileName"] == "Quake.zip"
    assert game["fileSize"] == len(data)
    assert Path(game["filePath"]).read_bytes() == data
    assert Path(game["filePath"]).suffix == ".zip"
    uuid.UUID(game["id"])
    assert game["uploadedAt"]


def test_upload_blank_release_date_means_unknown(client):
    resp = upload(client, releaseDate="")
    assert resp.status_code == 201
    assert resp.json()["game"]["releaseDate"] is None


def test_upload_without_file(client):
    resp = client.post("/api/games/upload", data={"title": "X"})

    assert resp.status_code == 400
    assert resp.json()["kind"] == "missing_file"
    assert client.get("/api/games").json() == []


def test_upload_without_title_leaves_no_blob(client, test_settings):
    resp = client.post(
        "/api/games/upload",
        files={"gameFile": ("x.iso", b"data", "application/octet-stream")},
    )

    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"
    assert os.listdir(test_settings.FILE_STORAGE_PATH) == []


def test_upload_bad_release_date(client):
    resp = upload(client, releaseDate="someday")
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"


def test_upload_too_large(client, test_settings):
    resp = upload(client, data=b"x" * (test_settings.MAX_UPLOAD_BYTES + 1))

    assert resp.status_code == 413
    assert resp.json()["kind"] == "payload_too_large"
    assert client.get("/api/games").json() == []
    assert os.listdir(test_settings.FILE_STORAGE_PATH) == []


def test_get_round_trip(client):
    created = upload(client, description="Classic", developer="Capcom", genre="Platformer").json()["game"]

    resp = client.get(f"/api/games/{created['id']}")

    assert resp.status_code == 200
    assert resp.json() == created


@pytest.mark.parametrize("game_id", [str(uuid.uuid4()), "not-a-valid-id"])
def test_get_unknown(client, game_id):
    resp = client.get(f"/api/games/{game_id}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Game not found", "kind": "not_found"}


def test_list_returns_all(client):
    ids = {upload(client, file_name=f"g{i}.bin").json()["game"]["id"] for i in range(4)}

    resp = client.get("/api/games")

    assert resp.status_code == 200
    assert {g["id"] for g in resp.json()} == ids


def test_download_uses_original_file_name(client):
    game = upload(client, data=b"payload", file_name="Final_Fantasy.iso").json()["game"]

    resp = client.get(f"/api/games/{game['id']}/download")

    assert resp.status_code == 200
    assert resp.content == b"payload"
    assert "Final_Fantasy.iso" in resp.headers["content-disposition"]


def test_download_missing_blob(client):
    game = upload(client).json()["game"]
    os.remove(game["filePath"])

    resp = client.get(f"/api/games/{game['id']}/download")

    assert resp.status_code == 404
    assert resp.json()["error"] == "File not found"


def test_download_unknown_game(client):
    resp = client.get(f"/api/games/{uuid.uuid4()}/download")
    assert resp.status_code == 404


def test_legacy_downloads_path_serves_blob(client):
    game = upload(client, data=b"legacy").json()["game"]
    storage_name = Path(game["filePath"]).name

    resp = client.get(f"/downloads/{storage_name}")

    assert resp.status_code == 200
    assert resp.content == b"legacy"
    assert client.get("/downloads/missing.iso").status_code == 404


def test_update_metadata(client):
    game = upload(client).json()["game"]

    resp = client.put(
        f"/api/games/{game['id']}",
        json={
            "title": "Renamed",
            "releaseDate": "2004-11-09",
            "filePath": "/etc/passwd",
            "fileSize": 1,
            "fileName": "evil.exe",
        },
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Game updated successfully"
    updated = body["game"]
    assert updated["title"] == "Renamed"
    assert updated["releaseDate"] == "2004-11-09"
    for field in ("fileName", "filePath", "fileSize", "uploadedAt", "id"):
        assert updated[field] == game[field]


def test_update_unknown(client):
    resp = client.put(f"/api/games/{uuid.uuid4()}", json={"title": "Y"})
    assert resp.status_code == 404


def test_update_invalid(client):
    game = upload(client).json()["game"]

    assert client.put(f"/api/games/{game['id']}", json={"title": ""}).status_code == 400
    resp = client.put(f"/api/games/{game['id']}", json={"releaseDate": "not a date"})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation"


def test_delete_removes_blob_and_record(client):
    game = upload(client).json()["game"]

    resp = client.delete(f"/api/games/{game['id']}")

    assert resp.status_code == 200
    assert resp.json() == {"message": "Game deleted successfully"}
    assert not os.path.exists(game["filePath"])
    assert client.get(f"/api/games/{game['id']}").status_code == 404
    assert client.delete(f"/api/games/{game['id']}").status_code == 404


def test_database_error_maps_to_500(app, monkeypatch):
    async def broken():
        raise SQLAlchemyError("connection refused")

    monkeypatch.setattr(app.state.game_files.catalog, "list_all", broken)

    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/api/games")

    assert resp.status_code == 500
    assert resp.json() == {"error": "connection refused", "kind": "internal"}


def test_unexpected_error_maps_to_500(app, monkeypatch):
    async def broken(game_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(app.state.game_files, "delete_with_cleanup", broken)

    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.delete(f"/api/games/{uuid.uuid4()}")

    assert resp.status_code == 500
    assert resp.json()["error"] == "boom"


def test_upload_over_declared_length_rejected_before_reading(app, client, monkeypatch, test_settings):
    calls = []

    async def spy_store(*args, **kwargs):
        calls.append(kwargs)
        raise AssertionError("body should not reach the blob store")

    monkeypatch.setattr(app.state.blob_store, "store", spy_store)

    resp = upload(client, data=b"x" * (test_settings.MAX_UPLOAD_BYTES + 200 * 1024))

    assert resp.status_code == 413
    assert resp.json()["kind"] == "payload_too_large"
    assert calls == []
    assert client.get("/api/games").json() == []


def test_upload_without_file_checked_before_metadata(client):
    resp = client.post("/api/games/upload", data={"title": "X", "releaseDate": "someday"})

    assert resp.status_code == 400
    assert resp.json()["kind"] == "missing_file"


def test_framework_errors_use_error_body(client):
    missing_static = client.get("/downloads/missing.iso")
    assert missing_static.status_code == 404
    assert missing_static.json()["kind"] == "not_found"

    unknown_route = client.get("/api/nothing-here")
    assert unknown_route.status_code == 404
    assert set(unknown_route.json()) == {"error", "kind"}

    wrong_method = client.patch(f"/api/games/{uuid.uuid4()}")
    assert wrong_method.status_code == 405
    assert wrong_method.json()["kind"] == "http"
    assert "allow" in wrong_method.headers
