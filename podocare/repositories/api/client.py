"""
HTTP client shared by every API repository.

Built on one ``requests.Session`` per aggregate; blocking calls run in a
worker thread so repository operations stay awaitable. The client is
constructed once (see RepositoryFactory) and injected into each repository.
"""

import asyncio
import logging
import time
from typing import Any, Mapping, Optional

import requests

from podocare.core.config import RepositoryConfig
from podocare.core.exceptions import NotFoundError, TransportError, ValidationError
from podocare.core.logging_config import log_performance

logger = logging.getLogger(__name__)

# Envelope "state" values that mean the request failed.
ERROR_STATES = ("error", "fail", "failed", "failure")

# Any envelope "state" value; other values belong to the payload itself.
ENVELOPE_STATES = ("success", "ok") + ERROR_STATES


class ApiClient:
    """Authenticated JSON client for the clinic REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Content-Type": "application/json", "Accept": "application/json"}
        )
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    @classmethod
    def from_config(cls, config: RepositoryConfig) -> "ApiClient":
        return cls(
            config.api_base_url,
            api_key=config.api_key,
            timeout=config.request_timeout,
        )

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
        allow_empty: bool = False,
    ) -> Any:
        """
        Send a request and return the ``data`` of the response envelope.

        Raises:
            NotFoundError: HTTP 404
            ValidationError: HTTP 400, 409 or 422
            TransportError: network failure, timeout, any other non-2xx
                status, an error envelope, or a success envelope without data
        """
        return await asyncio.to_thread(self._send, method, path, body, allow_empty)

    def close(self) -> None:
        self.session.close()

    def _send(
        self,
        method: str,
        path: str,
        body: Optional[Mapping[str, Any]],
        allow_empty: bool,
    ) -> Any:
        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            response = self.session.request(
                method,
                url,
                json=body,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(
                "API request timed out",
                extra={"context": {"method": method, "url": url, "timeout": self.timeout}},
            )
            raise TransportError(f"Request to {url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            logger.warning(
                "API request failed",
                extra={"context": {"method": method, "url": url, "error": str(e)}},
            )
            raise TransportError(f"Request to {url} failed: {e}") from e

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            f"{method} {path}",
            duration_ms,
            status_code=response.status_code,
        )
        logger.debug(
            "API response received",
            extra={
                "context": {
                    "method": method,
                    "url": url,
                    "status_code": response.status_code,
                }
            },
        )
        return parse_response(response, allow_empty=allow_empty)


def _json_or_none(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _is_envelope(body: Any) -> bool:
    """
    Entities may carry their own ``state`` field (sales do), so only an
    envelope-valued state counts; ``data``, ``success`` and ``error`` always do.
    """
    if not isinstance(body, Mapping):
        return False
    if "data" in body or "success" in body or "error" in body:
        return True
    state = body.get("state")
    return isinstance(state, str) and state.lower() in ENVELOPE_STATES


def error_for_status(status_code: int, message: str) -> Exception:
    if status_code == 404:
        return NotFoundError(message)
    if status_code in (400, 409, 422):
        return ValidationError(message)
    return TransportError(message, status_code=status_code)


def parse_response(response: requests.Response, allow_empty: bool = False) -> Any:
    """Check status and envelope; return the payload under ``data``."""
    status = response.status_code
    body = _json_or_none(response)

    if not 200 <= status < 300:
        message = None
        if isinstance(body, Mapping):
            message = body.get("message") or body.get("error")
        if not message:
            message = f"API request failed with status {status}"
        raise error_for_status(status, str(message))

    if body is None:
        if allow_empty:
            return None
        raise TransportError("Empty or non-JSON response body", status_code=status)

    if not _is_envelope(body):
        # Endpoints that answer with the bare payload
        return body

    error = body.get("error")
    if error:
        raise TransportError(str(error), status_code=status)
    state = str(body.get("state", "")).lower()
    if body.get("success") is False or state in ERROR_STATES:
        raise TransportError(
            str(body.get("message") or "API reported a failure"), status_code=status
        )

    data = body.get("data")
    if data is None:
        if allow_empty:
            return None
        raise TransportError("Response envelope has no data", status_code=status)
    if body.get("message"):
        logger.debug("API message", extra={"context": {"message": body["message"]}})
    return data
