"""Registry routes: CRUD over registered model backends plus the generation proxy.

Endpoints:
  GET    /registry           — List entries, each re-probed unless ?refresh=false
  POST   /registry           — Register a backend (probed before it is returned)
  PUT    /registry           — Replace an entry by id (re-probed)
  DELETE /registry           — Remove an entry by id; idempotent
  POST   /registry/generate  — Run one generation against a registered backend
"""

import logging

from fastapi import APIRouter, Depends, Request

from .config import settings
from .dependencies import get_generation_proxy, get_interaction_log, get_registry_store
from .http_utils import read_json_body
from .interaction_log import InteractionLog
from .models import GenerateRequest, parse_model
from .proxy import GenerationProxy
from .registry_store import RegistryStore
from .router_auth import require_session

router = APIRouter(prefix="/registry", tags=["registry"], dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)


@router.get("")
async def list_entries(refresh: bool = True, store: RegistryStore = Depends(get_registry_store)):
    entries = await store.list(refresh=refresh)
    return [entry.to_wire() for entry in entries]


@router.post("")
async def create_entry(request: Request, store: RegistryStore = Depends(get_registry_store)):
    entry = await store.create(await read_json_body(request))
    return entry.to_wire()


@router.put("")
async def update_entry(request: Request, store: RegistryStore = Depends(get_registry_store)):
    entry = await store.update(await read_json_body(request))
    return entry.to_wire()


@router.delete("")
async def delete_entry(request: Request, store: RegistryStore = Depends(get_registry_store)):
    payload = await read_json_body(request, required=False)
    entry_id = payload.get("id") if isinstance(payload, dict) else None
    if isinstance(entry_id, str) and entry_id:
        store.delete(entry_id)
    return {"success": True}


@router.post("/generate")
async def generate(
    request: Request,
    proxy: GenerationProxy = Depends(get_generation_proxy),
    interaction_log: InteractionLog = Depends(get_interaction_log),
):
    """Proxy a generation; the success flag, not the HTTP status, carries the outcome."""
    generate_request = parse_model(GenerateRequest, await read_json_body(request))
    outcome = await proxy.generate(generate_request)
    if outcome.log_entry is not None and settings.record_generations:
        interaction_log.append(outcome.log_entry)
    return outcome.to_wire(exclude_none=True)
