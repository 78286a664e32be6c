"""
Label backend client - the OCR/translation/validation service.

The engine treats the service as opaque: it sends the source file and
gets back a structured result. How rules are evaluated is not our concern.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import ReviewSettings, get_settings
from errors import BackendError
from models import TranslationResult, ValidationResult

logger = logging.getLogger(__name__)


class LabelBackend(ABC):
    """What a review session needs from the label service."""

    @abstractmethod
    def validate(self, file_name: str, content: bytes, country: str) -> ValidationResult:
        """Run OCR + regulatory validation on a label image."""
        pass

    @abstractmethod
    def translate(self, file_name: str, content: bytes, country: str) -> TranslationResult:
        """Run OCR + translation, returning rendered label markup."""
        pass


def build_session(retries: int = 2, backoff: float = 0.5, timeout: float = 60.0) -> requests.Session:
    s = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=backoff,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET", "POST"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    # store desired default timeout on the session for convenience
    s.request_timeout = timeout  # type: ignore[attr-defined]
    return s


class HttpLabelBackend(LabelBackend):
    """HTTP client for the label service (multipart upload in, JSON out)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[ReviewSettings] = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.label_api_url).rstrip("/")
        self.timeout = settings.label_api_timeout
        self.session = session or build_session(
            retries=settings.label_api_retries, timeout=settings.label_api_timeout
        )

    def validate(self, file_name: str, content: bytes, country: str) -> ValidationResult:
        response = self._post("/api/label/validate", file_name, content, country)
        return ValidationResult.from_payload(self._json(response))

    def translate(self, file_name: str, content: bytes, country: str) -> TranslationResult:
        response = self._post("/api/label/translate", file_name, content, country)
        if "json" in response.headers.get("Content-Type", ""):
            return TranslationResult.from_payload(self._json(response))
        return TranslationResult(target_country=country.upper(), html_output=response.text)

    def _post(self, path: str, file_name: str, content: bytes, country: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info("[LabelBackend] POST %s file=%s country=%s", path, file_name, country)
        try:
            response = self.session.post(
                url,
                files={"file": (file_name, content)},
                data={"country": country.upper()},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BackendError(f"Label service unreachable: {e}") from e

        if response.status_code >= 400:
            raise BackendError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _json(response: requests.Response):
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Label service returned invalid JSON: {e}") from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"Label service returned HTTP {response.status_code}"
