from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError

BACKEND_KINDS = ("ollama", "llamacpp", "textgen", "generic-http")

KIND_ALIASES = {
    "ollama-like": "ollama",
    "llamacpp-like": "llamacpp",
    "llama.cpp": "llamacpp",
    "llama-cpp": "llamacpp",
    "text-generation-webui": "textgen",
    "textgen-like": "textgen",
    "custom": "generic-http",
    "generic": "generic-http",
}

PROMPT_EXCERPT_CHARS = 100
RESPONSE_EXCERPT_CHARS = 200
EXCERPT_MARKER = "..."


def normalize_kind(raw: str) -> str:
    """Map a user-supplied backend kind onto the closed set of kinds."""
    kind = (raw or "").strip().lower()
    kind = KIND_ALIASES.get(kind, kind)
    if kind not in BACKEND_KINDS:
        raise ValueError(f"kind must be one of: {', '.join(BACKEND_KINDS)}")
    return kind


def excerpt(text: str | None, limit: int) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}{EXCERPT_MARKER}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())

    def to_wire(self, *, exclude_none: bool = False) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=exclude_none)


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_model(model_cls: type[ModelT], data: Any) -> ModelT:
    """Validate a decoded JSON body, raising the gateway's ValidationError."""
    if isinstance(data, model_cls):
        return data
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        summary = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in errors
        )
        raise ValidationError(summary, details={"errors": errors}) from e


class EndpointStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"


# --- Registry Models ---


class GenerationDefaults(CamelModel):
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    timeout_ms: int | None = Field(default=None, ge=1)


class EntryMetadata(CamelModel):
    version: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)


class RegistryEntryCreate(CamelModel):
    display_name: str = Field(..., min_length=1, max_length=200)
    kind: str
    endpoint_url: str = Field(..., min_length=1)
    auth_token: str | None = None
    generation_defaults: GenerationDefaults = Field(default_factory=GenerationDefaults)
    models: list[str] = Field(default_factory=list)
    metadata: EntryMetadata = Field(default_factory=EntryMetadata)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("displayName must not be blank")
        return value

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, value: str) -> str:
        return normalize_kind(value)

    @field_validator("endpoint_url")
    @classmethod
    def validate_endpoint_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("endpointUrl must not be blank")
        if not value.startswith(("http://", "https://")):
            raise ValueError("endpointUrl must start with http:// or https://")
        return value

    @field_validator("auth_token")
    @classmethod
    def blank_token_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class RegistryEntry(RegistryEntryCreate):
    id: str = Field(..., min_length=1)
    last_known_status: EndpointStatus = EndpointStatus.OFFLINE
    last_checked_at: datetime | None = None


# --- Generation Models ---


class GenerateRequest(CamelModel):
    registry_id: str = Field(..., min_length=1)
    model_name: str = ""
    prompt: str = Field(..., min_length=1)
    gen_params: GenerationDefaults = Field(default_factory=GenerationDefaults)


class GenerationResult(CamelModel):
    text: str
    model: str | None = None
    token_count: int | None = None
    latency_ms: int
    backend_duration_ms: int | None = None


class GenerationError(CamelModel):
    kind: str
    message: str


# --- Interaction Log Models ---


def _bounded_excerpt(value: str, limit: int) -> str:
    # An excerpt already cut to the limit keeps its marker unchanged.
    if len(value) <= limit:
        return value
    if len(value) == limit + len(EXCERPT_MARKER) and value.endswith(EXCERPT_MARKER):
        return value
    return excerpt(value, limit)


class InteractionLogEntry(CamelModel):
    id: str = ""
    registry_id: str = Field(..., min_length=1)
    registry_name: str | None = None
    requested_model: str = ""
    prompt_excerpt: str = ""
    response_excerpt: str | None = None
    latency_ms: int = Field(default=0, ge=0)
    token_count: int | None = Field(default=None, ge=0)
    backend_duration_ms: int | None = Field(default=None, ge=0)
    succeeded: bool
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("prompt_excerpt")
    @classmethod
    def bound_prompt_excerpt(cls, value: str) -> str:
        return _bounded_excerpt(value, PROMPT_EXCERPT_CHARS)

    @field_validator("response_excerpt")
    @classmethod
    def bound_response_excerpt(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _bounded_excerpt(value, RESPONSE_EXCERPT_CHARS)

    @field_validator("error_message")
    @classmethod
    def blank_error_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def error_message_iff_failed(self):
        if not self.succeeded and self.error_message is None:
            raise ValueError("errorMessage is required when succeeded is false")
        if self.succeeded and self.error_message is not None:
            raise ValueError("errorMessage is only allowed when succeeded is false")
        return self


class GenerationOutcome(CamelModel):
    success: bool
    result: GenerationResult | None = None
    error: GenerationError | None = None
    log_entry: InteractionLogEntry | None = None


class LogPage(CamelModel):
    logs: list[InteractionLogEntry]
    total: int
    has_more: bool


# --- Provider Catalog Models ---


class ProviderConfig(CamelModel):
    api_key: str = ""
    models: list[str] = Field(default_factory=list)
