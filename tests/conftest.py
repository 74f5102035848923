import inspect

import httpx
import pytest
import pytest_asyncio

from aiden_gateway import dependencies
from aiden_gateway.backend_client import BackendClient
from aiden_gateway.health import HealthProber
from aiden_gateway.interaction_log import InteractionLog
from aiden_gateway.main import app
from aiden_gateway.models import ProviderConfig
from aiden_gateway.provider_catalog import ProviderCatalog
from aiden_gateway.proxy import GenerationProxy
from aiden_gateway.registry_store import RegistryStore


class FakeBackends:
    """Outbound HTTP stand-in: (method, url) -> handler. Unknown URLs refuse connections."""

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, url: str, handler) -> None:
        if isinstance(handler, httpx.Response):
            response = handler
            handler = lambda request: response  # noqa: E731
        self.routes[(method.upper(), url)] = handler

    def json(self, method: str, url: str, payload, status_code: int = 200) -> None:
        self.on(method, url, lambda request: httpx.Response(status_code, json=payload))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, str(request.url)))
        if handler is None:
            raise httpx.ConnectError("Connection refused", request=request)
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result


@pytest.fixture
def backends() -> FakeBackends:
    return FakeBackends()


@pytest_asyncio.fixture
async def backend_client(backends):
    bc = BackendClient(transport=httpx.MockTransport(backends))
    await bc.start()
    yield bc
    await bc.stop()


@pytest.fixture
def prober(backend_client) -> HealthProber:
    return HealthProber(backend_client)


@pytest.fixture
def store(prober) -> RegistryStore:
    return RegistryStore(prober)


@pytest.fixture
def interaction_log() -> InteractionLog:
    return InteractionLog(capacity=1000)


@pytest.fixture
def proxy(store, backend_client) -> GenerationProxy:
    return GenerationProxy(store, backend_client)


@pytest.fixture
def catalog() -> ProviderCatalog:
    return ProviderCatalog(
        providers={
            "groq": ProviderConfig(api_key="gsk-secret", models=["llama3-8b-8192"]),
            "openai": ProviderConfig(api_key="", models=["gpt-4o-mini"]),
        }
    )


@pytest_asyncio.fixture
async def api(store, interaction_log, proxy, catalog):
    """Gateway client with an admin session cookie and fake backends behind it."""
    dependencies.configure(
        registry_store=store,
        interaction_log=interaction_log,
        generation_proxy=proxy,
        provider_catalog=catalog,
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://gateway",
        cookies={"admin-session": "test-session"},
    ) as c:
        yield c
    dependencies.reset()


@pytest_asyncio.fixture
async def anonymous(store, interaction_log, proxy, catalog):
    """Gateway client without a session cookie."""
    dependencies.configure(
        registry_store=store,
        interaction_log=interaction_log,
        generation_proxy=proxy,
        provider_catalog=catalog,
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as c:
        yield c
    dependencies.reset()
