"""HTTP client for the intake backend API.

Endpoints used:
- POST /files/upload - Store one file with its company, report type and metadata
- PUT /files/{id}/analysis - Move a file to another analysis status
- GET /files - List uploaded files
- GET /files/{id} - Fetch one file
- GET /files/{id}/download - Fetch the stored bytes of one file
"""

import asyncio
import json
import os
from typing import Any, Awaitable, Callable, Optional, TypeVar
from urllib.parse import unquote

import aiohttp
from aiohttp.multipart import content_disposition_filename, parse_content_disposition

from report_intake.core import get_logger, ApiError, IntakeSettings
from report_intake.core.config import DEFAULT_API_URL
from report_intake.upload.models import (
    AnalysisResult,
    AnalysisStatus,
    FileAttachment,
    FileRecord,
    UploadReceipt,
)

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_DOWNLOAD_NAME = "download"


class FileApiClient:
    """Async client for the upload, status-transition and file-list API.

    Every failure is raised as ApiError carrying the backend's message
    unchanged, so callers can show it to the user as-is.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_seconds: float = 60.0,
    ):
        """Initialize the client.

        Args:
            base_url: API base URL including the ``/api`` prefix
            token: Optional bearer token
            timeout_seconds: Total timeout per request
        """
        self.base_url = (
            base_url or os.environ.get("REPORT_INTAKE_API_URL", DEFAULT_API_URL)
        ).rstrip("/")
        self.token = token or os.environ.get("REPORT_INTAKE_API_TOKEN")
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: IntakeSettings) -> "FileApiClient":
        return cls(
            base_url=settings.api_url,
            token=settings.api_token,
            timeout_seconds=settings.timeout_seconds,
        )

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def upload_file(
        self,
        attachment: FileAttachment,
        company_id: str,
        report_type_id: str,
        form_data: Optional[dict[str, Any]] = None,
    ) -> UploadReceipt:
        """Upload one file.

        Args:
            attachment: File to upload
            company_id: Owning company
            report_type_id: Report type
            form_data: Metadata stored with the file

        Returns:
            UploadReceipt for the stored file
        """
        form = aiohttp.FormData()
        form.add_field(
            "file",
            attachment.content,
            filename=attachment.name,
            content_type=attachment.content_type,
        )
        form.add_field("companyId", company_id)
        form.add_field("reportTypeId", report_type_id)
        if form_data:
            form.add_field("formData", json.dumps(form_data, ensure_ascii=False))

        body = await self._request("POST", "/files/upload", data=form)
        file_item = (body.get("data") or {}).get("file")
        if not file_item:
            raise ApiError(
                body.get("message") or "File upload failed",
                endpoint="/files/upload",
            )

        receipt = UploadReceipt.from_api(file_item)
        logger.info(
            "file_uploaded",
            file_id=receipt.id,
            file_name=attachment.name,
            file_size=attachment.size,
            company_id=company_id,
            report_type_id=report_type_id,
        )
        return receipt

    async def update_file_analysis(
        self,
        file_id: str,
        status: AnalysisStatus,
        analysis_result: Optional[AnalysisResult] = None,
    ) -> dict[str, Any]:
        """Set the analysis status of a file.

        Args:
            file_id: Server-assigned file identifier
            status: New analysis status
            analysis_result: Optional result payload

        Returns:
            The backend acknowledgement body
        """
        payload: dict[str, Any] = {"analysisStatus": AnalysisStatus(status).value}
        if analysis_result is not None:
            payload["analysisResult"] = analysis_result.to_api()

        body = await self._request("PUT", f"/files/{file_id}/analysis", json_body=payload)
        logger.info(
            "file_status_updated",
            file_id=file_id,
            status=payload["analysisStatus"],
        )
        return body

    async def list_files(
        self,
        company_id: Optional[str] = None,
        report_type_id: Optional[str] = None,
        analysis_status: Optional[AnalysisStatus] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> list[FileRecord]:
        """List uploaded files, optionally filtered server-side."""
        params = {
            "companyId": company_id,
            "reportTypeId": report_type_id,
            "analysisStatus": AnalysisStatus(analysis_status).value if analysis_status else None,
            "page": page,
            "limit": limit,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        }
        body = await self._request(
            "GET",
            "/files",
            params={k: str(v) for k, v in params.items() if v is not None},
        )
        items = (body.get("data") or {}).get("files") or []
        return [FileRecord.from_api(item) for item in items]

    async def get_file(self, file_id: str) -> FileRecord:
        body = await self._request("GET", f"/files/{file_id}")
        file_item = (body.get("data") or {}).get("file")
        if not file_item:
            raise ApiError(f"File not found: {file_id}", endpoint=f"/files/{file_id}", status_code=404)
        return FileRecord.from_api(file_item)

    async def download_file(self, file_id: str) -> tuple[str, bytes]:
        """Download the stored content of a file.

        Args:
            file_id: Server-assigned file identifier

        Returns:
            Tuple of (file name from Content-Disposition, file content)
        """
        filename, content = await self._send(
            "GET", f"/files/{file_id}/download", self._read_download
        )
        logger.info(
            "file_downloaded",
            file_id=file_id,
            file_name=filename,
            file_size=len(content),
        )
        return filename, content

    def _headers(self) -> dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_body: Optional[dict[str, Any]] = None,
        data: Optional[aiohttp.FormData] = None,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: On transport failure, non-JSON responses, HTTP errors or
                ``success: false`` bodies
        """
        return await self._send(
            method,
            endpoint,
            self._read_json,
            json=json_body,
            data=data,
            params=params,
        )

    async def _send(
        self,
        method: str,
        endpoint: str,
        read: Callable[[aiohttp.ClientResponse, str], Awaitable[T]],
        **kwargs: Any,
    ) -> T:
        url = f"{self.base_url}{endpoint}"

        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method,
                    url,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                    **kwargs,
                ) as response:
                    return await read(response, endpoint)

        except asyncio.TimeoutError as e:
            logger.error("api_request_timeout", method=method, endpoint=endpoint)
            raise ApiError("Request timed out", endpoint=endpoint) from e
        except aiohttp.ClientConnectionError as e:
            logger.error("api_connection_failed", method=method, endpoint=endpoint, error=str(e))
            raise ApiError(
                f"Cannot connect to the server at {self.base_url}",
                endpoint=endpoint,
            ) from e
        except aiohttp.ClientError as e:
            logger.error("api_request_failed", method=method, endpoint=endpoint, error=str(e))
            raise ApiError(str(e), endpoint=endpoint) from e

    async def _read_json(self, response: aiohttp.ClientResponse, endpoint: str) -> dict[str, Any]:
        if "application/json" not in response.headers.get("Content-Type", ""):
            text = await response.text()
            raise ApiError(
                text or f"HTTP {response.status}: {response.reason}",
                endpoint=endpoint,
                status_code=response.status,
            )

        text = _body_text(await response.read(), response.charset)
        try:
            body = json.loads(text)
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.error(
                "api_response_malformed",
                endpoint=endpoint,
                status_code=response.status,
            )
            raise ApiError(
                text or f"HTTP {response.status}: {response.reason}",
                endpoint=endpoint,
                status_code=response.status,
            )

        if response.status >= 400 or body.get("success") is False:
            raise ApiError(
                body.get("message")
                or body.get("error")
                or f"Request failed with status {response.status}",
                endpoint=endpoint,
                status_code=response.status,
            )
        return body

    async def _read_download(
        self,
        response: aiohttp.ClientResponse,
        endpoint: str,
    ) -> tuple[str, bytes]:
        if response.status >= 400:
            message = None
            if "application/json" in response.headers.get("Content-Type", ""):
                try:
                    body = json.loads(_body_text(await response.read(), response.charset))
                except ValueError:
                    body = None
                if isinstance(body, dict):
                    message = body.get("message") or "Download failed"
            if message is None:
                message = await response.text() or f"Download failed with status {response.status}"
            raise ApiError(message, endpoint=endpoint, status_code=response.status)

        content = await response.read()
        return download_filename(response.headers.get("Content-Disposition")), content


def download_filename(header: Optional[str]) -> str:
    """Resolve the file name of a download from its Content-Disposition header.

    ``filename*`` (RFC 5987) wins over ``filename``; a plain ``filename`` is
    additionally percent-decoded. Falls back to ``download``.
    """
    if not header:
        return DEFAULT_DOWNLOAD_NAME
    _, params = parse_content_disposition(header)
    filename = content_disposition_filename(params)
    if not filename:
        return DEFAULT_DOWNLOAD_NAME
    if "filename*" not in params:
        filename = unquote(filename)
    return filename or DEFAULT_DOWNLOAD_NAME


def _body_text(raw: bytes, charset: Optional[str]) -> str:
    return raw.decode(charset or "utf-8", errors="replace")
