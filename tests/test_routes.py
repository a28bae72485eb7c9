import asyncio
import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from resume_scanner.models.models import ParseOutcome
from resume_scanner.models.settings import AIServiceSettings, AppSettings
from resume_scanner.routers import resumes
from resume_scanner.routers.dependencies import (
    cancel_on_disconnect,
    get_ai_client,
    get_app_settings,
    get_parser,
    get_storage,
)
from resume_scanner.services.ai_client import AzureOpenAIClient
from resume_scanner.services.pipeline import ResumeParser
from resume_scanner.services.storage import LocalStorage
from resume_scanner.utils.exceptions import OperationCancelled


@pytest.fixture
def folder(tmp_path):
    path = tmp_path / "resumes"
    path.mkdir()
    return path


@pytest.fixture
def overrides(folder):
    settings = AppSettings(resume_folder=str(folder), ai=AIServiceSettings())
    storage = LocalStorage()
    parser = ResumeParser(settings.ai, storage=storage, processing=settings.processing)
    return {
        get_app_settings: lambda: settings,
        get_storage: lambda: storage,
        get_parser: lambda: parser,
        get_ai_client: lambda: AzureOpenAIClient(settings.ai, session=MagicMock()),
    }


@pytest.fixture
def test_app(overrides):
    app = FastAPI()
    app.include_router(resumes.router, prefix="/api/resume")
    app.dependency_overrides.update(overrides)
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


class TestResumeRouter:
    """Resume endpoints backed by a temporary folder"""

    def test_scan(self, client, folder, sample_text):
        (folder / "b.txt").write_text(sample_text)
        (folder / "a.bin").write_bytes(b"\xff\xfe\x00")

        response = client.get("/api/resume/scan")

        assert response.status_code == 200
        data = response.json()
        assert [d["success"] for d in data] == [False, True]
        assert data[1]["resume"]["name"] == "Priya Sharma"
        assert data[1]["resume"]["skills"] == ["sql", "python", "aws"]

    def test_upload(self, client, folder, sample_text):
        response = client.post(
            "/api/resume/upload",
            files={"file": ("Priya CV.txt", sample_text.encode(), "text/plain")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["resume"]["email"] == "priya.sharma@example.com"
        saved = list(folder.iterdir())
        assert len(saved) == 1
        assert saved[0].name.startswith("priya-cv-")
        assert saved[0].suffix == ".txt"

    def test_upload_empty_file(self, client, folder):
        response = client.post("/api/resume/upload", files={"file": ("cv.txt", b"", "text/plain")})
        assert response.status_code == 400
        assert response.json()["detail"] == "No file uploaded."
        assert list(folder.iterdir()) == []

    def test_upload_unsupported_file(self, client):
        response = client.post(
            "/api/resume/upload",
            files={"file": ("photo.bin", b"\xff\xfe\x00\x01", "application/octet-stream")},
        )
        assert response.status_code == 500
        assert "not supported" in response.json()["detail"]

    def test_search(self, client, folder):
        (folder / "lead.txt").write_text("Asha Rao\nPune, Maharashtra\n6 years of SQL. Team Lead.")
        (folder / "dev.txt").write_text("Ravi Kumar\nMumbai, Maharashtra\n2 years of Python.")

        query = {
            "skills": [{"name": "sql"}],
            "min_total_experience": 3,
            "require_team_lead": True,
            "min_score": 20,
            "locations": ["Pune"],
            "location_mode": "Contains",
        }
        response = client.post("/api/resume/search", json=query)

        assert response.status_code == 200
        hits = response.json()
        assert len(hits) == 1
        assert hits[0]["file_path"].endswith("lead.txt")
        assert hits[0]["score"] == 70
        assert "Location 'Pune' matched (+15.0)" in hits[0]["explanation"]

    def test_search_rejects_bad_min_score(self, client):
        response = client.post("/api/resume/search", json={"min_score": 150})
        assert response.status_code == 422

    def test_files_and_download(self, client, folder):
        (folder / "b.txt").write_text("bbb")
        (folder / "a.txt").write_text("aaa")

        assert client.get("/api/resume/files").json() == ["a.txt", "b.txt"]

        response = client.get("/api/resume/download/a.txt")
        assert response.status_code == 200
        assert response.content == b"aaa"
        assert response.headers["content-type"].startswith("text/plain")

    def test_download_missing(self, client):
        response = client.get("/api/resume/download/nope.pdf")
        assert response.status_code == 404
        assert response.json()["detail"] == "File not found."

    def test_parse_single_file(self, client, folder, sample_text):
        (folder / "priya.txt").write_text(sample_text)

        response = client.get("/api/resume/priya.txt")

        assert response.status_code == 200
        assert response.json()["resume"]["designation"] == "Senior Software Engineer"

    def test_parse_missing_file(self, client):
        assert client.get("/api/resume/missing.txt").status_code == 404

    def test_delete(self, client, folder):
        (folder / "old.txt").write_text("x")

        response = client.delete("/api/resume/old.txt")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "File deleted successfully."}

        assert client.delete("/api/resume/old.txt").status_code == 404


class TestApplication:
    """Full application with middleware"""

    @pytest.fixture
    def app_client(self, overrides):
        from resume_scanner.main import app

        app.dependency_overrides.update(overrides)
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_health(self, app_client):
        response = app_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert "X-Request-ID" in response.headers
        assert "X-Processing-Time" in response.headers

    def test_cancelled_scan_maps_to_499(self, app_client):
        parser = MagicMock()
        parser.parse_folder = AsyncMock(side_effect=OperationCancelled("resume parsing cancelled"))
        app_client.app.dependency_overrides[get_parser] = lambda: parser

        response = app_client.get("/api/resume/scan")

        assert response.status_code == 499
        body = response.json()
        assert body["success"] is False
        assert body["error"]["error_code"] == "OPERATION_CANCELLED"

    def test_connection_check_through_main_app(self, app_client, ai_settings, folder):
        session = MagicMock()
        session.post.return_value = MagicMock(status_code=200, reason="OK", text='{"choices": []}', headers={})
        settings = AppSettings(resume_folder=str(folder), ai=ai_settings)
        app_client.app.dependency_overrides[get_app_settings] = lambda: settings
        app_client.app.dependency_overrides[get_ai_client] = lambda: AzureOpenAIClient(ai_settings, session=session)

        response = app_client.get("/api/resume/test-connection")

        assert response.status_code == 200
        assert response.json()["status"] == 200
        assert response.json()["url"].startswith("https://example.openai.azure.com/openai/deployments/")

    def test_connection_check_without_key(self, app_client):
        response = app_client.get("/api/resume/test-connection")

        assert response.status_code == 400
        assert response.json()["error"]["error_code"] == "CONFIGURATION_ERROR"


class TestConnectionRoute:
    """GET /test-connection"""

    def test_reports_deployment_answer(self, test_app, client, ai_settings, folder):
        session = MagicMock()
        resp = MagicMock(status_code=200, reason="OK", text='{"choices": [{"message": {"content": "ok"}}]}')
        resp.headers = {}
        session.post.return_value = resp
        settings = AppSettings(resume_folder=str(folder), ai=ai_settings)
        test_app.dependency_overrides[get_app_settings] = lambda: settings
        test_app.dependency_overrides[get_ai_client] = lambda: AzureOpenAIClient(ai_settings, session=session)

        response = client.get("/api/resume/test-connection")

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://example.openai.azure.com/openai/deployments/gpt-4o-mini/chat/completions"
                   "?api-version=2024-02-01",
            "status": 200,
            "reason": "OK",
            "response": '{"choices": [{"message": {"content": "ok"}}]}',
        }
        _, kwargs = session.post.call_args
        assert kwargs["headers"]["api-key"] == "secret"

    def test_does_not_shadow_file_routes(self, client, folder):
        (folder / "a.txt").write_text("Alice Smith")
        assert client.get("/api/resume/a.txt").status_code == 200


class TestCancellationWiring:
    """Client disconnects cancel folder-wide work"""

    def test_scan_passes_cancel_event(self, test_app, client):
        parser = MagicMock()
        parser.parse_folder = AsyncMock(return_value=[])
        test_app.dependency_overrides[get_parser] = lambda: parser

        assert client.get("/api/resume/scan").status_code == 200
        assert isinstance(parser.parse_folder.await_args.args[1], asyncio.Event)

    def test_search_passes_cancel_event(self, test_app, client):
        parser = MagicMock()
        parser.parse_folder = AsyncMock(return_value=[])
        test_app.dependency_overrides[get_parser] = lambda: parser

        assert client.post("/api/resume/search", json={}).json() == []
        assert isinstance(parser.parse_folder.await_args.args[1], asyncio.Event)

    @pytest.mark.asyncio
    async def test_disconnect_sets_event(self):
        request = MagicMock()
        request.is_disconnected = AsyncMock(side_effect=[False, True])

        async with cancel_on_disconnect(request, poll_interval=0.01) as event:
            await asyncio.wait_for(event.wait(), timeout=2)

        assert event.is_set()

    @pytest.mark.asyncio
    async def test_connected_client_leaves_event_clear(self):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)

        async with cancel_on_disconnect(request, poll_interval=0.01) as event:
            await asyncio.sleep(0.05)

        assert not event.is_set()
        assert request.is_disconnected.await_count >= 2


class TestUploadOffLoop:
    """Uploads are written from a worker thread"""

    def test_save_runs_outside_event_loop_thread(self, test_app, client, folder):
        threads = {}

        def save_file(folder_path, name, stream):
            threads["save"] = threading.get_ident()
            return folder / name

        async def parse_one(path, cancel_event=None):
            threads["loop"] = threading.get_ident()
            return ParseOutcome(file_path=path, success=True)

        storage = MagicMock()
        storage.save_file.side_effect = save_file
        parser = MagicMock()
        parser.parse_one = parse_one
        test_app.dependency_overrides[get_storage] = lambda: storage
        test_app.dependency_overrides[get_parser] = lambda: parser

        response = client.post("/api/resume/upload", files={"file": ("cv.txt", b"Alice Smith", "text/plain")})

        assert response.status_code == 201
        assert threads["save"] != threads["loop"]
