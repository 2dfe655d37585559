"""Task attachments."""

import io
import zipfile
from pathlib import Path

import pytest
import pytest_asyncio


@pytest_asyncio.fixture()
async def task_id(client, auth_headers):
    response = await client.post("/api/tasks", json={"item": "Attach"}, headers=auth_headers)
    return response.json()["id"]


async def _upload(client, headers, task_id, name="notes.txt", content=b"hello", description=""):
    return await client.post(
        "/api/task_files",
        data={"task_id": str(task_id), "description": description},
        files={"file": (name, content, "text/plain")},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_upload_and_list(client, auth_headers, task_id, app):
    response = await _upload(client, auth_headers, task_id, description="meeting notes")

    assert response.status_code == 201
    body = response.json()
    assert body["original_name"] == "notes.txt"
    assert body["file_size"] == 5
    assert body["description"] == "meeting notes"
    assert body["file_path"] == f"uploads/{body['filename']}"
    assert app.state.file_storage.resolve(body["file_path"]).read_bytes() == b"hello"

    served = await client.get(f"/{body['file_path']}")
    assert served.status_code == 200
    assert served.content == b"hello"

    listed = (await client.get(f"/api/task_files/{task_id}", headers=auth_headers)).json()
    assert [f["id"] for f in listed] == [body["id"]]

    everything = (await client.get("/api/all_files", headers=auth_headers)).json()
    assert everything[0]["task_name"] == "Attach"


@pytest.mark.asyncio
async def test_upload_rejects_extension_and_size(client, auth_headers, task_id, app):
    blocked = await _upload(client, auth_headers, task_id, name="run.exe")
    assert blocked.status_code == 400

    app.state.file_storage.max_bytes = 4
    too_big = await _upload(client, auth_headers, task_id, content=b"12345")
    assert too_big.status_code == 400
    assert list(Path(app.state.settings.upload_dir).iterdir()) == []


@pytest.mark.asyncio
async def test_upload_to_missing_task(client, auth_headers):
    response = await _upload(client, auth_headers, 999)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_download_all_as_zip(client, auth_headers, task_id):
    await _upload(client, auth_headers, task_id, name="a.txt", content=b"first")
    await _upload(client, auth_headers, task_id, name="a.txt", content=b"second")

    response = await client.get(f"/api/task_files/{task_id}/download-all", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert f"task-{task_id}-files.zip" in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert sorted(archive.namelist()) == ["a (1).txt", "a.txt"]
        assert archive.read("a.txt") == b"first"


@pytest.mark.asyncio
async def test_download_all_without_files(client, auth_headers, task_id):
    response = await client.get(f"/api/task_files/{task_id}/download-all", headers=auth_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_file_removes_it_from_disk(client, auth_headers, task_id, app):
    body = (await _upload(client, auth_headers, task_id)).json()

    response = await client.delete(f"/api/task_files/{body['id']}", headers=auth_headers)

    assert response.json() == {"success": True}
    assert not app.state.file_storage.resolve(body["file_path"]).exists()
    again = await client.delete(f"/api/task_files/{body['id']}", headers=auth_headers)
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_deleting_task_removes_its_files(client, auth_headers, task_id, app):
    body = (await _upload(client, auth_headers, task_id)).json()

    await client.delete(f"/api/tasks/{task_id}", headers=auth_headers)

    assert not app.state.file_storage.resolve(body["file_path"]).exists()
    assert (await client.get(f"/api/task_files/{task_id}", headers=auth_headers)).json() == []
