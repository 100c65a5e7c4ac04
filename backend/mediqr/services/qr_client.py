"""
QR code service client.
Decodes uploaded QR images through the public qrserver.com API and builds
image URLs for patient QR cards.
"""
import logging
from typing import Dict, Optional
from urllib.parse import parse_qs, quote, urlencode

import httpx

from ..core.config import settings
from ..core.exceptions import QrPayloadError, UpstreamError

logger = logging.getLogger(__name__)

UNDECODABLE_MESSAGE = "Could not decode QR code from the image."
MISSING_PATIENT_ID_MESSAGE = "Invalid QR code data. Patient ID not found."


def parse_qr_payload(text: str) -> Dict[str, str]:
    """Parse ``key=value&key=value`` text; the first value of a key wins."""
    parsed = parse_qs(text.strip().lstrip("?"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items()}


def extract_patient_id(text: str) -> str:
    patient_id = parse_qr_payload(text).get("patient_id", "").strip()
    if not patient_id:
        raise QrPayloadError(MISSING_PATIENT_ID_MESSAGE)
    return patient_id


class QrCodeClient:
    """HTTP client for the QR decode/render API.

    ``transport`` is handed to ``httpx.Client``; tests pass an
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        read_url: Optional[str] = None,
        create_url: Optional[str] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.read_url = read_url or settings.QR_READ_URL
        self.create_url = create_url or settings.QR_CREATE_URL
        self.timeout = timeout or settings.QR_TIMEOUT
        self.api_key = api_key if api_key is not None else settings.QR_API_KEY
        self.transport = transport

    def image_url(self, data: str, size: Optional[int] = None) -> str:
        """URL of a rendered QR image carrying ``data``."""
        size = size or settings.QR_IMAGE_SIZE
        query = urlencode({"size": f"{size}x{size}", "data": data}, quote_via=quote, safe="")
        return f"{self.create_url}?{query}"

    def decode(
        self,
        image_data: bytes,
        filename: str = "qr.png",
        content_type: str = "image/png",
    ) -> str:
        """
        Upload a QR image and return the decoded text.
        Raises UpstreamError when the service is unreachable, answers with an
        error status, or does not return a decoded symbol.
        """
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        files = {"file": (filename, image_data, content_type)}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(self.read_url, files=files, headers=headers)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("QR decode service unavailable: %s", exc)
            raise UpstreamError(f"QR decode service unavailable: {exc}") from exc
        except ValueError as exc:
            logger.warning("QR decode service returned non-JSON body: %s", exc)
            raise UpstreamError(UNDECODABLE_MESSAGE) from exc

        return self._read_symbol(payload)

    @staticmethod
    def _read_symbol(payload) -> str:
        """Pull ``payload[0]["symbol"][0]["data"]`` out of the response."""
        try:
            symbol = payload[0]["symbol"][0]
        except (IndexError, KeyError, TypeError):
            logger.warning("Malformed QR decode response: %r", payload)
            raise UpstreamError(UNDECODABLE_MESSAGE)

        if not isinstance(symbol, dict):
            raise UpstreamError(UNDECODABLE_MESSAGE)
        if symbol.get("data"):
            return symbol["data"]
        if symbol.get("error"):
            raise UpstreamError(symbol["error"])
        raise UpstreamError(UNDECODABLE_MESSAGE)
