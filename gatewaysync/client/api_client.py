"""HTTP + websocket client for one remote workspace host."""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from http import HTTPMethod

import httpx
from pydantic import TypeAdapter, ValidationError
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from gatewaysync.client.models import WorkspaceInfoPayload, WorkspaceInstancePayload
from gatewaysync.constants import (
    ALL_SESSIONS_SELECTOR,
    API_PATH,
    DEFAULT_REQUEST_TIMEOUT_S,
    WS_CLOSE_TIMEOUT_S,
    WS_OPEN_TIMEOUT_S,
    WS_PATH,
)
from gatewaysync.core.models import UpdateEvent

logger = logging.getLogger(__name__)

API_CONNECT_RETRY_DELAYS_S = (0.1, 0.3, 0.6)
CONNECT_ERROR_LOG_INTERVAL_S = 10.0

__all__ = ["GatewayAPIClient", "APIError"]


class APIError(Exception):
    """API request failed with structured error info."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail or message  # Fallback to full message if no detail

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class GatewayAPIClient:
    """Async client bound to a single host and access token."""

    def __init__(self, host: str, token: str, timeout: float = DEFAULT_REQUEST_TIMEOUT_S):
        """Initialize client.

        Args:
            host: Remote host, without scheme (e.g. "gitpod.io")
            token: Bearer access token for the host
            timeout: Default request timeout in seconds
        """
        self.host = host
        self.token = token
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._last_connect_error_log: float | None = None

    @property
    def base_url(self) -> str:
        return f"https://{self.host}{API_PATH}"

    @property
    def ws_uri(self) -> str:
        return f"wss://{self.host}{WS_PATH}"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    async def connect(self) -> None:
        """Open the HTTP connection pool."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._auth_headers(),
            timeout=self.timeout,
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        """Close connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: HTTPMethod | str,
        url: str,
        *,
        timeout: float | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make HTTP request with error handling.

        Connect errors are retried with short delays; everything else fails fast.

        Raises:
            APIError: If request fails
        """
        if not self._client:
            raise APIError("Client not connected. Call connect() first.")

        request_timeout = timeout if timeout is not None else self.timeout
        logged_connect_error = False

        try:
            try:
                method_enum = HTTPMethod(method)
            except ValueError as e:
                raise APIError(f"Unsupported HTTP method: {method}") from e

            for attempt, delay in enumerate((0.0, *API_CONNECT_RETRY_DELAYS_S), start=1):
                if delay:
                    await asyncio.sleep(delay)
                try:
                    resp = await self._client.request(
                        method_enum.value, url, params=params, timeout=request_timeout
                    )
                    resp.raise_for_status()
                    return resp
                except httpx.ConnectError as e:
                    if not logged_connect_error:
                        now = self._now_monotonic()
                        if (
                            self._last_connect_error_log is None
                            or (now - self._last_connect_error_log) >= CONNECT_ERROR_LOG_INTERVAL_S
                        ):
                            self._last_connect_error_log = now
                            logger.debug("API connect failed: %s %s on %s: %s", method_enum.value, url, self.host, e)
                        logged_connect_error = True
                    if attempt >= (1 + len(API_CONNECT_RETRY_DELAYS_S)):
                        raise APIError(f"Cannot connect to {self.host}.") from e
        except httpx.HTTPStatusError as e:
            # Parse JSON response to extract human-friendly detail
            status_code = e.response.status_code
            detail = None
            try:
                body = e.response.json()
                detail = body.get("detail") if isinstance(body, dict) else None
            except (json.JSONDecodeError, ValueError):
                detail = e.response.text
            raise APIError(
                f"API request failed: {status_code} {detail or e.response.text}",
                status_code=status_code,
                detail=detail,
            ) from e
        except httpx.TimeoutException as e:
            raise APIError(f"API request to {self.host} timed out.") from e
        except APIError:
            raise
        except httpx.HTTPError as e:
            raise APIError(f"Unexpected transport error: {e}") from e

        raise APIError(f"Cannot connect to {self.host}.")

    def _now_monotonic(self) -> float:
        """Return a monotonic timestamp for debounce logic."""
        return time.monotonic()

    async def get_workspaces(self, limit: int) -> list[WorkspaceInfoPayload]:
        """Fetch up to `limit` most relevant workspaces.

        Raises:
            APIError: If request fails or the payload is malformed
        """
        resp = await self._request("GET", "/workspaces", params={"limit": str(limit)})
        try:
            return TypeAdapter(list[WorkspaceInfoPayload]).validate_json(resp.text)
        except ValidationError as e:
            raise APIError(f"Invalid workspaces payload: {e.error_count()} error(s)") from e

    async def listen_to_workspace(self, selector: str = ALL_SESSIONS_SELECTOR) -> AsyncIterator[UpdateEvent]:
        """Yield instance updates pushed by the host until the connection ends.

        A clean close by the remote ends the iteration; any other websocket or
        socket failure raises APIError. Malformed messages are logged and skipped.
        """
        adapter = TypeAdapter(WorkspaceInstancePayload)
        try:
            async with ws_connect(
                self.ws_uri,
                additional_headers=self._auth_headers(),
                open_timeout=WS_OPEN_TIMEOUT_S,
                close_timeout=WS_CLOSE_TIMEOUT_S,
            ) as ws:
                await ws.send(json.dumps({"subscribe": {"workspaceId": selector}}))
                logger.info("Listening for instance updates on %s (selector=%s)", self.host, selector)

                async for message in ws:
                    try:
                        payload = json.loads(message)
                    except json.JSONDecodeError:
                        logger.warning("Invalid JSON from %s: %s", self.host, str(message)[:100])
                        continue
                    # JSON-RPC notifications carry the instance in `params`
                    if isinstance(payload, dict) and "params" in payload:
                        payload = payload["params"]
                    try:
                        instance = adapter.validate_python(payload)
                    except ValidationError as e:
                        logger.warning("Invalid instance update payload from %s: %s", self.host, e)
                        continue
                    yield instance.to_event()
        except ConnectionClosedOK:
            logger.info("Update connection to %s closed", self.host)
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            raise APIError(f"Update connection to {self.host} failed: {e}") from e
