"""Hosted provider catalog routes (admin models page)."""

from fastapi import APIRouter, Depends, Request

from .dependencies import get_provider_catalog
from .http_utils import read_json_body
from .provider_catalog import ProviderCatalog
from .router_auth import require_session

router = APIRouter(prefix="/models", tags=["models"], dependencies=[Depends(require_session)])


@router.get("")
async def get_catalog(catalog: ProviderCatalog = Depends(get_provider_catalog)):
    return {"providers": catalog.public_view(), "available": catalog.available()}


@router.post("")
async def update_catalog(request: Request, catalog: ProviderCatalog = Depends(get_provider_catalog)):
    providers = catalog.update(await read_json_body(request))
    return {"success": True, "providers": providers, "available": catalog.available()}
