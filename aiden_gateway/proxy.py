"""Generation proxy: one normalized generation call against a registered backend."""

import asyncio
import logging
import time

import httpx

from .backend_client import BackendClient, auth_headers
from .backend_kinds import DEFAULT_GENERATION_TIMEOUT_MS, ParsedResponse, resolve_params, translator_for
from .errors import NotFoundError, UpstreamError
from .interaction_log import new_log_id
from .models import (
    PROMPT_EXCERPT_CHARS,
    RESPONSE_EXCERPT_CHARS,
    GenerateRequest,
    GenerationError,
    GenerationOutcome,
    GenerationResult,
    InteractionLogEntry,
    RegistryEntry,
    excerpt,
)
from .registry_store import RegistryStore

logger = logging.getLogger(__name__)


class GenerationProxy:
    """Translates generation requests per backend kind and normalizes replies.

    Upstream failures never raise: they come back as ``success=False`` with a
    failed log entry. The caller decides whether to record the log entry.
    """

    def __init__(
        self,
        store: RegistryStore,
        backend_client: BackendClient,
        default_timeout_ms: int = DEFAULT_GENERATION_TIMEOUT_MS,
    ):
        self._store = store
        self._client = backend_client
        self._default_timeout_ms = default_timeout_ms

    async def generate(self, request: GenerateRequest) -> GenerationOutcome:
        entry = self._store.find(request.registry_id)
        if entry is None:
            logger.info("Generation requested for unknown backend %s", request.registry_id)
            return GenerationOutcome(
                success=False,
                error=GenerationError(
                    kind=NotFoundError.kind,
                    message=f"Registry entry '{request.registry_id}' not found",
                ),
            )

        translator = translator_for(entry.kind)
        params = resolve_params(
            request.gen_params,
            entry.generation_defaults,
            timeout_ms=self._default_timeout_ms,
        )
        body = translator.build_request(request.model_name, request.prompt, params)
        url = translator.generate_url(entry.endpoint_url)
        timeout = params.timeout_ms / 1000.0

        started = time.monotonic()
        try:
            resp = await asyncio.wait_for(
                self._client.request(
                    "POST",
                    url,
                    json=body,
                    headers={"Content-Type": "application/json", **auth_headers(entry.auth_token)},
                    timeout=timeout,
                ),
                timeout=timeout,
            )
            parsed = self._parse(translator.label, resp, translator.parse_response)
        except UpstreamError as e:
            message = e.message
        except (asyncio.TimeoutError, httpx.TimeoutException):
            message = f"{translator.label} API timed out after {params.timeout_ms} ms"
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            message = f"{translator.label} API unreachable: {str(e) or type(e).__name__}"
        else:
            latency_ms = _elapsed_ms(started)
            logger.info(
                "Generation on %s model=%s ok in %d ms (tokens=%s)",
                entry.id, request.model_name or "-", latency_ms, parsed.token_count,
            )
            return GenerationOutcome(
                success=True,
                result=GenerationResult(
                    text=parsed.text,
                    model=parsed.model or request.model_name or None,
                    token_count=parsed.token_count,
                    latency_ms=latency_ms,
                    backend_duration_ms=parsed.backend_duration_ms,
                ),
                log_entry=self._log_entry(entry, request, latency_ms, parsed=parsed),
            )

        latency_ms = _elapsed_ms(started)
        logger.warning("Generation on %s failed after %d ms: %s", entry.id, latency_ms, message)
        return GenerationOutcome(
            success=False,
            error=GenerationError(kind=UpstreamError.kind, message=message),
            log_entry=self._log_entry(entry, request, latency_ms, error=message),
        )

    @staticmethod
    def _parse(label: str, resp: httpx.Response, parse_response) -> ParsedResponse:
        if not resp.is_success:
            raise UpstreamError(f"{label} API error: {resp.status_code} {resp.reason_phrase}".strip())
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"{label} API returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise UpstreamError(f"{label} API returned an unexpected payload")
        return parse_response(data)

    @staticmethod
    def _log_entry(
        entry: RegistryEntry,
        request: GenerateRequest,
        latency_ms: int,
        *,
        parsed: ParsedResponse | None = None,
        error: str | None = None,
    ) -> InteractionLogEntry:
        return InteractionLogEntry(
            id=new_log_id(),
            registry_id=entry.id,
            registry_name=entry.display_name,
            requested_model=request.model_name,
            prompt_excerpt=excerpt(request.prompt, PROMPT_EXCERPT_CHARS),
            response_excerpt=excerpt(parsed.text, RESPONSE_EXCERPT_CHARS) if parsed else None,
            latency_ms=latency_ms,
            token_count=parsed.token_count if parsed else None,
            backend_duration_ms=parsed.backend_duration_ms if parsed else None,
            succeeded=parsed is not None,
            error_message=error,
        )


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))
