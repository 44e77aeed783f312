"""Per-host client resolution.

`ConnectionProvider` hides token lookup and client setup from the sync core and
memoizes one `GatewayAPIClient` per host. Token storage itself lives behind
the `TokenStore` protocol; `EnvTokenStore` is the in-process implementation
fed from config and the environment.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Mapping, Protocol

from gatewaysync.client.api_client import GatewayAPIClient
from gatewaysync.constants import DEFAULT_REQUEST_TIMEOUT_S, ENV_TOKEN
from gatewaysync.core.errors import ConnectivityError
from gatewaysync.utils import normalize_host

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str, float], GatewayAPIClient]


class TokenStore(Protocol):
    def get_token(self, host: str) -> str | None: ...

    def set_token(self, host: str, token: str | None) -> None: ...


class EnvTokenStore:
    """Tokens from config, falling back to `GATEWAYSYNC_TOKEN`.

    `set_token` overrides are kept in memory only; setting None logs the host
    out for the rest of the process even if config or env carry a token.
    """

    _LOGGED_OUT = ""

    def __init__(self, tokens: Mapping[str, str] | None = None, env_var: str = ENV_TOKEN) -> None:
        self._tokens = {normalize_host(host): token for host, token in (tokens or {}).items()}
        self._overrides: dict[str, str] = {}
        self._env_var = env_var

    def get_token(self, host: str) -> str | None:
        host = normalize_host(host)
        if host in self._overrides:
            return self._overrides[host] or None
        token = self._tokens.get(host) or os.getenv(self._env_var)
        return token or None

    def set_token(self, host: str, token: str | None) -> None:
        self._overrides[normalize_host(host)] = token or self._LOGGED_OUT


class ConnectionProvider:
    """Resolves and memoizes one API client per host."""

    def __init__(
        self,
        token_store: TokenStore,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_S,
        client_factory: ClientFactory = GatewayAPIClient,
    ) -> None:
        self._token_store = token_store
        self._timeout = timeout
        self._client_factory = client_factory
        self._clients: dict[str, GatewayAPIClient] = {}
        self._lock = asyncio.Lock()

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    def is_connected(self, host: str) -> bool:
        """Connectivity predicate: an access token is available for the host."""
        return self._token_store.get_token(host) is not None

    async def obtain_client(self, host: str) -> GatewayAPIClient:
        """Return the memoized client for `host`, creating it on first use.

        Raises:
            ConnectivityError: If no token is available for the host
        """
        host = normalize_host(host)
        token = self._token_store.get_token(host)
        if token is None:
            raise ConnectivityError(f"Not authenticated with {host}", host=host)

        async with self._lock:
            client = self._clients.get(host)
            if client is not None and client.token == token:
                return client
            if client is not None:
                logger.info("Access token for %s changed, replacing client", host)
                await client.close()

            client = self._client_factory(host, token, self._timeout)
            await client.connect()
            self._clients[host] = client
            logger.debug("Created API client for %s", host)
            return client

    async def connect(self, host: str) -> GatewayAPIClient:
        return await self.obtain_client(host)

    async def forget(self, host: str) -> None:
        """Drop and close the memoized client for `host`, if any."""
        async with self._lock:
            client = self._clients.pop(normalize_host(host), None)
        if client is not None:
            await client.close()

    async def logout(self, host: str) -> None:
        """Drop the stored token and the memoized client for `host`."""
        self._token_store.set_token(host, None)
        await self.forget(host)
        logger.info("Logged out of %s", normalize_host(host))

    async def close(self) -> None:
        """Close every memoized client."""
        async with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.close()
