"""Admin session check and login/logout routes.

Session handling is cookie presence only; the gateway trusts whatever
issued the cookie.
"""

import logging
import secrets

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import Unauthorized, ValidationError
from .http_utils import read_json_body

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def is_authenticated(request: Request) -> bool:
    return bool(request.cookies.get(settings.session_cookie_name))


async def require_session(request: Request) -> None:
    """Route dependency rejecting requests without an admin session."""
    if not is_authenticated(request):
        logger.warning("Unauthenticated %s %s", request.method, request.url.path)
        raise Unauthorized("Not authenticated")


@router.post("")
async def login(request: Request):
    payload = await read_json_body(request)
    password = payload.get("password") if isinstance(payload, dict) else None
    if not isinstance(password, str):
        raise ValidationError("'password' is required")
    if not secrets.compare_digest(password.encode(), settings.admin_password.encode()):
        logger.warning("Failed admin login from %s", request.client.host if request.client else "unknown")
        raise Unauthorized("Wrong password")

    response = JSONResponse(content={"success": True})
    response.set_cookie(
        settings.session_cookie_name,
        secrets.token_urlsafe(32),
        httponly=True,
        secure=settings.cookie_secure,
        max_age=settings.session_max_age_seconds,
        path="/",
    )
    logger.info("Admin session opened")
    return response


@router.get("")
async def session_status(request: Request):
    return {"authenticated": is_authenticated(request)}


@router.delete("")
async def logout():
    response = JSONResponse(content={"success": True})
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response
