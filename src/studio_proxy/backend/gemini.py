"""Async client for the Gemini generative-language REST API.

Each call takes the API key explicitly so the credential rotator decides
which key is used. Error replies are raised as ``BackendError`` with the
HTTP status, the backend status and the backend message in the exception
message, which is what the rotation classifier inspects.
"""

from typing import Any

import httpx
from structlog import get_logger

from studio_proxy.exceptions import (
    BackendError,
    HTTPConnectionError,
    HTTPTimeoutError,
)
from studio_proxy.rotation.pool import mask_credential


logger = get_logger(__name__)

API_KEY_HEADER = "x-goog-api-key"


def _error_reasons(details: Any) -> list[str]:
    if not isinstance(details, list):
        return []
    return [
        detail["reason"]
        for detail in details
        if isinstance(detail, dict) and isinstance(detail.get("reason"), str)
    ]


def _error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError from a non-success response.

    Google error envelopes look like
    ``{"error": {"code": 429, "message": "...", "status": "RESOURCE_EXHAUSTED"}}``.
    ``ErrorInfo`` reasons from ``details`` (e.g. ``API_KEY_INVALID``) follow
    the status in brackets.
    """
    backend_status: str | None = None
    message = response.reason_phrase or "Backend request failed"

    try:
        payload = response.json()
    except ValueError:
        payload = None

    reasons: list[str] = []
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        backend_status = error.get("status") or None
        message = error.get("message") or message
        reasons = _error_reasons(error.get("details"))
    elif response.text:
        message = response.text.strip()[:500]

    prefix = str(response.status_code)
    if backend_status:
        prefix = f"{prefix} {backend_status}"
    if reasons:
        prefix = f"{prefix} [{', '.join(reasons)}]"
    return BackendError(
        f"{prefix}: {message}",
        status_code=response.status_code,
        backend_status=backend_status,
    )


class GeminiClient:
    """Thin wrapper around the generateContent and predictLongRunning methods."""

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1beta",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_version = api_version.strip("/")
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def generate_content(
        self,
        api_key: str,
        model: str,
        contents: list[dict[str, Any]],
        generation_config: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call generateContent with the given API key.

        Args:
            api_key: Credential for this single call
            model: Model name, e.g. "gemini-2.5-flash"
            contents: Conversation contents in Gemini format
            generation_config: Optional generationConfig block

        Returns:
            Decoded JSON response

        Raises:
            BackendError: Backend answered with an error status
            HTTPTimeoutError: Request timed out
            HTTPConnectionError: Connection failed
        """
        body: dict[str, Any] = {"contents": contents}
        if generation_config:
            body["generationConfig"] = generation_config
        return await self._call(api_key, model, "generateContent", body)

    async def predict_long_running(
        self,
        api_key: str,
        model: str,
        instances: list[dict[str, Any]],
        parameters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Start a long-running prediction (video generation).

        Only the start request is made; the returned operation is not polled.

        Returns:
            The operation resource, e.g. ``{"name": "models/.../operations/..."}``
        """
        body: dict[str, Any] = {"instances": instances}
        if parameters:
            body["parameters"] = parameters
        return await self._call(api_key, model, "predictLongRunning", body)

    async def _call(
        self, api_key: str, model: str, method: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        url = f"/{self._api_version}/models/{model}:{method}"

        try:
            response = await self._client.post(
                url, json=body, headers={API_KEY_HEADER: api_key}
            )
        except httpx.TimeoutException as e:
            raise HTTPTimeoutError(f"Gemini request timed out: {e}") from e
        except httpx.TransportError as e:
            raise HTTPConnectionError(f"Gemini connection failed: {e}") from e

        if response.is_error:
            error = _error_from_response(response)
            logger.debug(
                "gemini_error_response",
                model=model,
                method=method,
                credential=mask_credential(api_key),
                status_code=response.status_code,
                backend_status=error.backend_status,
            )
            raise error

        logger.debug(
            "gemini_response",
            model=model,
            method=method,
            credential=mask_credential(api_key),
            status_code=response.status_code,
        )
        result: dict[str, Any] = response.json()
        return result


def _first_parts(response: dict[str, Any]) -> list[dict[str, Any]]:
    candidates = response.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return content.get("parts") or []


def extract_text(response: dict[str, Any]) -> str:
    """Join the text parts of the first candidate."""
    return "".join(
        part["text"]
        for part in _first_parts(response)
        if isinstance(part.get("text"), str)
    )


def extract_inline_data(response: dict[str, Any]) -> str | None:
    """Get the base64 payload of the first inline-data part, if any."""
    for part in _first_parts(response):
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            return str(inline["data"])
    return None
