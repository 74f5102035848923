"""HTTP helpers for gateway route handlers."""

import json
from typing import Any

from fastapi import Request

from .errors import InternalError, ValidationError


async def read_json_body(request: Request, *, required: bool = True) -> Any:
    """Decode the request body as JSON.

    An undecodable body is reported as an internal fault (500); an empty
    body where one is required is a validation failure (400).
    """
    body = await request.body()
    if not body:
        if required:
            raise ValidationError("Request body is required")
        return {}
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InternalError(f"Invalid JSON body: {e}") from e


def parse_query_int(raw: str | None, default: int, *, name: str, minimum: int = 0) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValidationError(f"'{name}' must be an integer") from e
    if value < minimum:
        raise ValidationError(f"'{name}' must be >= {minimum}")
    return value
