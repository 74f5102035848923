import logging

import httpx

logger = logging.getLogger(__name__)

# Seconds, used when the caller passes no timeout
DEFAULT_TIMEOUT = 60.0


def auth_headers(token: str | None) -> dict[str, str]:
    """Bearer header for a backend, empty when no token is configured."""
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


class BackendClient:
    """Shared async HTTP client for registered model backends.

    Calls are made once: a failed probe or generation is reported to the
    caller, never retried here.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client: httpx.AsyncClient | None = None
        self._transport = transport

    async def start(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            transport=self._transport,
        )

    async def stop(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        """Return initialized client or raise a clear runtime error."""
        if self._client is None:
            raise RuntimeError("Backend client is not started")
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs,
    ) -> httpx.Response:
        """Send a single request; transport errors propagate to the caller."""
        logger.debug("%s %s (timeout %.1fs)", method, url, timeout)
        return await self._require_client().request(method, url, timeout=timeout, **kwargs)


# Singleton
client = BackendClient()
