"""Per-kind request/response translation for registered model backends.

Each backend kind gets one translator that knows its health path, its
generation path, how to build the generation body and how to read the reply.
Kinds without a dedicated translator use the generic HTTP one.
"""

from dataclasses import dataclass
from typing import Any

from .errors import UpstreamError
from .models import GenerationDefaults

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.9
DEFAULT_PROBE_TIMEOUT_MS = 5000
DEFAULT_GENERATION_TIMEOUT_MS = 60000


@dataclass(frozen=True)
class ResolvedParams:
    max_tokens: int
    temperature: float
    top_p: float
    timeout_ms: int


@dataclass(frozen=True)
class ParsedResponse:
    text: str
    model: str | None = None
    token_count: int | None = None
    backend_duration_ms: int | None = None


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


def resolve_params(
    requested: GenerationDefaults | None,
    entry_defaults: GenerationDefaults | None,
    *,
    timeout_ms: int = DEFAULT_GENERATION_TIMEOUT_MS,
) -> ResolvedParams:
    """Merge request params over entry defaults over fallback constants."""
    requested = requested or GenerationDefaults()
    entry_defaults = entry_defaults or GenerationDefaults()
    return ResolvedParams(
        max_tokens=_first_set(requested.max_tokens, entry_defaults.max_tokens, DEFAULT_MAX_TOKENS),
        temperature=_first_set(requested.temperature, entry_defaults.temperature, DEFAULT_TEMPERATURE),
        top_p=_first_set(requested.top_p, entry_defaults.top_p, DEFAULT_TOP_P),
        timeout_ms=_first_set(requested.timeout_ms, entry_defaults.timeout_ms, timeout_ms),
    )


def _count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and value >= 0:
        return int(value)
    return None


def _require_text(data: dict, *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str):
            return value
    raise UpstreamError(f"Backend response is missing '{keys[0]}'")


class BackendTranslator:
    """Generic HTTP backend: POST {endpoint}/generate, health at the bare URL."""

    label = "Custom"
    health_path = ""
    generate_path = "/generate"

    def health_url(self, endpoint_url: str) -> str:
        return f"{endpoint_url}{self.health_path}"

    def generate_url(self, endpoint_url: str) -> str:
        return f"{endpoint_url}{self.generate_path}"

    def build_request(self, model: str, prompt: str, params: ResolvedParams) -> dict[str, Any]:
        body: dict[str, Any] = {
            "prompt": prompt,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
        }
        if model:
            body["model"] = model
        return body

    def parse_response(self, data: dict[str, Any]) -> ParsedResponse:
        return ParsedResponse(
            text=_require_text(data, "text", "response", "content"),
            model=data.get("model") if isinstance(data.get("model"), str) else None,
            token_count=_count(data.get("tokens")),
        )


class OllamaTranslator(BackendTranslator):
    label = "Ollama"
    health_path = "/api/tags"
    generate_path = "/api/generate"

    def build_request(self, model: str, prompt: str, params: ResolvedParams) -> dict[str, Any]:
        return {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": params.temperature,
                "num_predict": params.max_tokens,
                "top_p": params.top_p,
            },
        }

    def parse_response(self, data: dict[str, Any]) -> ParsedResponse:
        # Ollama reports durations in nanoseconds.
        total_ns = _count(data.get("total_duration"))
        return ParsedResponse(
            text=_require_text(data, "response"),
            model=data.get("model") if isinstance(data.get("model"), str) else None,
            token_count=_count(data.get("eval_count")),
            backend_duration_ms=total_ns // 1_000_000 if total_ns is not None else None,
        )


class LlamaCppTranslator(BackendTranslator):
    label = "LlamaCPP"
    health_path = "/health"
    generate_path = "/completion"

    def build_request(self, model: str, prompt: str, params: ResolvedParams) -> dict[str, Any]:
        return {
            "prompt": prompt,
            "n_predict": params.max_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
        }

    def parse_response(self, data: dict[str, Any]) -> ParsedResponse:
        timings = data.get("timings")
        predicted_ms = None
        if isinstance(timings, dict):
            predicted_ms = _count(timings.get("predicted_ms"))
        model = data.get("model")
        return ParsedResponse(
            text=_require_text(data, "content"),
            model=model if isinstance(model, str) else None,
            token_count=_count(data.get("tokens_predicted")),
            backend_duration_ms=predicted_ms,
        )


class TextGenTranslator(BackendTranslator):
    """text-generation-webui style server speaking the OpenAI completions API."""

    label = "TextGen"
    health_path = "/v1/models"
    generate_path = "/v1/completions"

    def parse_response(self, data: dict[str, Any]) -> ParsedResponse:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise UpstreamError("Backend response is missing 'choices'")
        usage = data.get("usage")
        model = data.get("model")
        return ParsedResponse(
            text=_require_text(choices[0], "text"),
            model=model if isinstance(model, str) else None,
            token_count=_count(usage.get("completion_tokens")) if isinstance(usage, dict) else None,
        )


DEFAULT_TRANSLATOR = BackendTranslator()

TRANSLATORS: dict[str, BackendTranslator] = {
    "ollama": OllamaTranslator(),
    "llamacpp": LlamaCppTranslator(),
    "textgen": TextGenTranslator(),
    "generic-http": DEFAULT_TRANSLATOR,
}


def translator_for(kind: str) -> BackendTranslator:
    return TRANSLATORS.get(kind, DEFAULT_TRANSLATOR)
