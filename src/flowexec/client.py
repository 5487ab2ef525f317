"""Client for the workflow server's control API."""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:65432"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ControlClientError(RuntimeError):
    """The control API could not be reached or rejected the request."""


class ControlClient:
    """
    Minimal control API client.

    Parameters
    ----------
    endpoint : str
        Base URL of the workflow server.
    timeout_seconds : float, default 30.0
        Request timeout.
    transport : Optional[httpx.BaseTransport]
        Custom transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._client = httpx.Client(
            base_url=self.endpoint,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ControlClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def kill_attempt(self, attempt_id: int) -> None:
        """Ask the server to kill a running session attempt."""
        try:
            response = self._client.post(f"/api/attempts/{attempt_id}/kill")
        except httpx.HTTPError as exc:
            logger.warning("Kill request for attempt %s failed: %s", attempt_id, exc)
            raise ControlClientError(
                f"Cannot reach {self.endpoint}: {exc}"
            ) from exc
        if not response.is_success:
            raise ControlClientError(
                f"Kill of attempt {attempt_id} failed: HTTP {response.status_code} "
                f"{response.text.strip()}"
            )
        logger.debug("Kill requested for attempt %s", attempt_id)
