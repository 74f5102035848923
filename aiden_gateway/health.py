"""Reachability probes for registered backends."""

import asyncio
import logging

import httpx

from .backend_client import BackendClient, auth_headers
from .backend_kinds import DEFAULT_PROBE_TIMEOUT_MS, translator_for
from .models import EndpointStatus, RegistryEntry

logger = logging.getLogger(__name__)


class HealthProber:
    """Classifies one backend as online, offline or error under a time budget."""

    def __init__(self, backend_client: BackendClient, default_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS):
        self._client = backend_client
        self._default_timeout_ms = default_timeout_ms

    def timeout_seconds(self, entry: RegistryEntry) -> float:
        timeout_ms = entry.generation_defaults.timeout_ms or self._default_timeout_ms
        return timeout_ms / 1000.0

    async def probe(self, entry: RegistryEntry) -> EndpointStatus:
        url = translator_for(entry.kind).health_url(entry.endpoint_url)
        timeout = self.timeout_seconds(entry)
        try:
            # wait_for bounds the whole call, not just each httpx phase
            resp = await asyncio.wait_for(
                self._client.request(
                    "GET",
                    url,
                    timeout=timeout,
                    headers=auth_headers(entry.auth_token),
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.info("Probe of %s (%s) timed out after %.1fs", entry.id, url, timeout)
            return EndpointStatus.OFFLINE
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info("Probe of %s (%s) failed: %s", entry.id, url, e)
            return EndpointStatus.OFFLINE

        if resp.is_success:
            logger.debug("Probe of %s (%s) -> online", entry.id, url)
            return EndpointStatus.ONLINE
        logger.warning("Probe of %s (%s) returned HTTP %d", entry.id, url, resp.status_code)
        return EndpointStatus.ERROR
