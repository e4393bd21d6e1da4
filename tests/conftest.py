"""
Pytest configuration and shared fixtures for the report intake tests.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote, unquote

import pytest
from aiohttp import web
from hypothesis import settings, Verbosity

from report_intake.core import ApiError
from report_intake.models.catalog import ReferenceCatalog
from report_intake.upload.models import AnalysisStatus, FileAttachment, UploadReceipt
from report_intake.upload.orchestrator import UploadOrchestrator
from report_intake.wizard.controller import WizardController

# Configure Hypothesis settings for all property-based tests
settings.register_profile(
    "default",
    max_examples=100,
    deadline=5000,
    suppress_health_check=[],
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "ci",
    max_examples=200,
    deadline=10000,
    suppress_health_check=[],
    verbosity=Verbosity.quiet,
)

settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    suppress_health_check=[],
    verbosity=Verbosity.verbose,
)

settings.load_profile("default")


class RecordingClient:
    """In-memory stand-in for FileApiClient that records every call in order.

    Uploads of files whose name is in ``fail_uploads`` raise; status updates
    for ids in ``fail_status`` raise.
    """

    def __init__(self, fail_uploads=(), fail_status=()):
        self.calls: list[tuple] = []
        self.fail_uploads = set(fail_uploads)
        self.fail_status = set(fail_status)
        self._counter = 0

    async def upload_file(self, attachment, company_id, report_type_id, form_data=None):
        self.calls.append(("upload", attachment.name, dict(form_data or {})))
        if attachment.name in self.fail_uploads:
            raise ConnectionError(f"Connection reset while uploading {attachment.name}")
        self._counter += 1
        return UploadReceipt(
            id=f"file-{self._counter}",
            stored_name=attachment.name,
            declared_type=attachment.content_type,
            byte_size=attachment.size,
            form_data=dict(form_data or {}),
        )

    async def update_file_analysis(self, file_id, status, analysis_result=None):
        self.calls.append(("status", file_id, AnalysisStatus(status)))
        if file_id in self.fail_status:
            raise ApiError("File not found", status_code=404)
        return {"success": True}

    @property
    def uploads(self) -> list[tuple]:
        return [call for call in self.calls if call[0] == "upload"]


def make_attachment(name: str, content: bytes = b"report-bytes") -> FileAttachment:
    return FileAttachment(name=name, content=content)


@pytest.fixture
def catalog():
    """Built-in reference catalog."""
    return ReferenceCatalog()


@pytest.fixture
def recording_client():
    return RecordingClient()


@pytest.fixture
def controller(catalog, recording_client):
    """Wizard controller wired to a recording client."""
    return WizardController(
        catalog=catalog,
        orchestrator=UploadOrchestrator(client=recording_client),
    )


@dataclass
class FakeBackend:
    """aiohttp application mimicking the intake backend's file API."""

    fail_names: set[str] = field(default_factory=set)
    token: Optional[str] = None
    files: list[dict[str, Any]] = field(default_factory=list)
    status_updates: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    upload_date: str = "2023-07-23T08:00:00.000Z"
    contents: dict[str, bytes] = field(default_factory=dict)
    # "rfc5987", "plain" or None for no Content-Disposition header
    disposition: Optional[str] = "rfc5987"

    def _authorized(self, request: web.Request) -> bool:
        if self.token is None:
            return True
        return request.headers.get("Authorization") == f"Bearer {self.token}"

    async def upload(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"success": False, "message": "Access token required"}, status=401)

        form = await request.post()
        upload = form["file"]
        # aiohttp percent-encodes multipart file names
        filename = unquote(upload.filename)
        if filename in self.fail_names:
            return web.json_response(
                {"success": False, "message": f"Storage unavailable for {filename}"},
                status=500,
            )

        content = upload.file.read()
        item = {
            "_id": f"srv-{len(self.files) + 1}",
            "originalFileName": filename,
            "fileType": upload.content_type,
            "fileSize": len(content),
            "companyId": form["companyId"],
            "reportTypeId": form["reportTypeId"],
            "uploadDate": self.upload_date,
            "analysisStatus": "pending",
            "formData": json.loads(form.get("formData") or "{}"),
        }
        self.files.append(item)
        self.contents[item["_id"]] = content
        return web.json_response({"success": True, "message": "File uploaded", "data": {"file": item}})

    async def update_analysis(self, request: web.Request) -> web.Response:
        file_id = request.match_info["file_id"]
        payload = await request.json()
        for item in self.files:
            if item["_id"] == file_id:
                self.status_updates.append((file_id, payload))
                item["analysisStatus"] = payload["analysisStatus"]
                if "analysisResult" in payload:
                    item["analysisResult"] = payload["analysisResult"]
                return web.json_response({"success": True, "data": {"file": item}})
        return web.json_response({"success": False, "message": "File not found"}, status=404)

    async def list_files(self, request: web.Request) -> web.Response:
        items = list(self.files)
        company_id = request.query.get("companyId")
        if company_id:
            items = [item for item in items if item["companyId"] == company_id]
        return web.json_response({
            "success": True,
            "data": {"files": items, "pagination": {"page": 1, "total": len(items)}},
        })

    async def get_file(self, request: web.Request) -> web.Response:
        file_id = request.match_info["file_id"]
        for item in self.files:
            if item["_id"] == file_id:
                return web.json_response({"success": True, "data": {"file": item}})
        return web.json_response({"success": False, "message": "File not found"}, status=404)

    async def download(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.json_response({"success": False, "message": "Access token required"}, status=401)

        file_id = request.match_info["file_id"]
        item = next((item for item in self.files if item["_id"] == file_id), None)
        if item is None:
            return web.json_response({"success": False, "message": "File not found"}, status=404)

        headers = {}
        name = quote(item["originalFileName"], safe="")
        if self.disposition == "rfc5987":
            headers["Content-Disposition"] = f"attachment; filename*=UTF-8''{name}"
        elif self.disposition == "plain":
            headers["Content-Disposition"] = f'attachment; filename="{name}"'
        return web.Response(
            body=self.contents[file_id],
            content_type=item["fileType"] or "application/octet-stream",
            headers=headers,
        )

    async def gateway_error(self, request: web.Request) -> web.Response:
        return web.Response(text="Bad gateway", status=502)

    async def malformed_json(self, request: web.Request) -> web.Response:
        return web.Response(text="{not json", content_type="application/json")

    async def json_list(self, request: web.Request) -> web.Response:
        return web.json_response(["unexpected", "list"])

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/files/upload", self.upload)
        app.router.add_put("/api/files/{file_id}/analysis", self.update_analysis)
        app.router.add_get("/api/files", self.list_files)
        app.router.add_get("/api/files/{file_id}", self.get_file)
        app.router.add_get("/api/files/{file_id}/download", self.download)
        app.router.add_get("/api/broken", self.gateway_error)
        app.router.add_get("/api/malformed", self.malformed_json)
        app.router.add_get("/api/listing", self.json_list)
        return app


@pytest.fixture
def backend():
    """Fake intake backend; serve it with aiohttp's TestServer."""
    return FakeBackend()
