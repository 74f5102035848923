"""Shared gateway components, populated at startup and injected into routes."""

from .interaction_log import InteractionLog
from .provider_catalog import ProviderCatalog
from .proxy import GenerationProxy
from .registry_store import RegistryStore

_registry_store: RegistryStore | None = None
_interaction_log: InteractionLog | None = None
_generation_proxy: GenerationProxy | None = None
_provider_catalog: ProviderCatalog | None = None


def configure(
    *,
    registry_store: RegistryStore,
    interaction_log: InteractionLog,
    generation_proxy: GenerationProxy,
    provider_catalog: ProviderCatalog,
) -> None:
    global _registry_store, _interaction_log, _generation_proxy, _provider_catalog
    _registry_store = registry_store
    _interaction_log = interaction_log
    _generation_proxy = generation_proxy
    _provider_catalog = provider_catalog


def reset() -> None:
    global _registry_store, _interaction_log, _generation_proxy, _provider_catalog
    _registry_store = None
    _interaction_log = None
    _generation_proxy = None
    _provider_catalog = None


def get_registry_store() -> RegistryStore:
    if _registry_store is None:
        raise RuntimeError("Registry store is not initialized")
    return _registry_store


def get_interaction_log() -> InteractionLog:
    if _interaction_log is None:
        raise RuntimeError("Interaction log is not initialized")
    return _interaction_log


def get_generation_proxy() -> GenerationProxy:
    if _generation_proxy is None:
        raise RuntimeError("Generation proxy is not initialized")
    return _generation_proxy


def get_provider_catalog() -> ProviderCatalog:
    if _provider_catalog is None:
        raise RuntimeError("Provider catalog is not initialized")
    return _provider_catalog
