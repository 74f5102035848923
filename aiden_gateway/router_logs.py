"""Interaction log routes.

Endpoints:
  GET    /logs  — Newest-first page of entries (?registryId=&limit=&offset=)
  POST   /logs  — Append one entry
  DELETE /logs  — Drop every entry
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from .dependencies import get_interaction_log
from .http_utils import parse_query_int, read_json_body
from .interaction_log import InteractionLog
from .router_auth import require_session

router = APIRouter(prefix="/logs", tags=["logs"], dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


@router.get("")
async def list_logs(
    registry_id: str | None = Query(None, alias="registryId"),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    interaction_log: InteractionLog = Depends(get_interaction_log),
):
    page = interaction_log.query(
        registry_id=registry_id or None,
        limit=parse_query_int(limit, DEFAULT_PAGE_SIZE, name="limit"),
        offset=parse_query_int(offset, 0, name="offset"),
    )
    return page.to_wire(exclude_none=True)


@router.post("")
async def append_log(request: Request, interaction_log: InteractionLog = Depends(get_interaction_log)):
    entry = interaction_log.append(await read_json_body(request))
    return entry.to_wire(exclude_none=True)


@router.delete("")
async def clear_logs(interaction_log: InteractionLog = Depends(get_interaction_log)):
    cleared = interaction_log.clear()
    logger.info("Cleared %d interaction log entries", cleared)
    return {"success": True, "cleared": cleared}
