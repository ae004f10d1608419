"""
PDF rendering through the external PDF service.
"""
from typing import Any

import httpx

from app.core import config
from app.utils import get_logger


log = get_logger(__name__)


class PdfGenerator:
    """Render an HTML document to PDF."""

    endpoint = "/render"

    def __init__(self, html: str, options: dict[str, Any] | None = None):
        self.html = html
        self.options = options or {}

    def _payload(self) -> dict[str, Any]:
        return {"html": self.html, "options": self.options}

    def _post(self, path: str) -> httpx.Response:
        url = config.PDF_SERVICE_URL.rstrip("/") + path
        response = httpx.post(url, json=self._payload(), timeout=60)
        response.raise_for_status()
        return response

    def generate(self) -> bytes:
        response = self._post(self.endpoint)
        log.debug("Generated PDF (%d bytes)", len(response.content))
        return response.content

    def generate_with_feedback(self) -> dict[str, Any]:
        """Render and return the PDF together with the renderer's console logs."""
        response = self._post(self.endpoint + "/feedback")
        data = response.json()
        return {
            "content": bytes.fromhex(data.get("content", "")),
            "logs": data.get("logs", []),
            "error": data.get("error", ""),
        }


class AnnualReportPdfGenerator(PdfGenerator):
    """Annual reports need print margins and page numbers."""

    endpoint = "/render/annual-report"

    def __init__(self, html: str, year: int, options: dict[str, Any] | None = None):
        options = {"margin": "20mm", "page_numbers": True, **(options or {})}
        super().__init__(html, options)
        self.year = year

    def _payload(self) -> dict[str, Any]:
        return {**super()._payload(), "year": self.year}
