"""Shared fixtures: in-memory storage, app state and a faked marketplace backend"""

import json

import httpx
import pytest

from marketplace_mcp.app_state import AppStore
from marketplace_mcp.client_storage import ClientStorage
from marketplace_mcp.marketplace_backend_client import MarketplaceBackendClient
from marketplace_mcp.models.cart import CartItem, MarketplaceOptions, SellerRef
from marketplace_mcp.services.payment_guard import InMemoryNavigationHost
from marketplace_mcp.utils.notifier import ToastNotifier

BASE_URL = "http://marketplace.test"


class FakeBackend:
    """Route table served through httpx.MockTransport; records every request"""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method: str, path: str, status: int = 200, json_body=None, handler=None):
        self.routes[(method.upper(), path)] = handler or (status, json_body if json_body is not None else {})
        return self

    def fail_connection(self, method: str, path: str):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        return self.on(method, path, handler=handler)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str):
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content) if request.content else None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def storage():
    return ClientStorage()


@pytest.fixture
def store(storage):
    return AppStore(storage).init()


@pytest.fixture
def notifier():
    return ToastNotifier()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend(fake_backend, store):
    return MarketplaceBackendClient(
        base_url=BASE_URL,
        token_provider=lambda: store.access_token,
        transport=fake_backend.transport
    )


@pytest.fixture
def navigation():
    return InMemoryNavigationHost(initial_path="/cart")


@pytest.fixture
def make_item():
    def factory(product_id: str, price: float = 10.0, quantity: int = 1, seller: str = "seller-1",
                pickup: bool = True, delivery: bool = True, shipping: bool = True,
                shipping_price=None, variant_id=None, with_options: bool = True) -> CartItem:
        return CartItem(
            id=f"{product_id}-{variant_id or 'base'}",
            product_id=product_id,
            title=f"Product {product_id}",
            price=price,
            quantity=quantity,
            variant_id=variant_id,
            seller=SellerRef(id=seller, business_name=f"Shop {seller}") if seller else None,
            marketplace_options=MarketplaceOptions(pickup, delivery, shipping) if with_options else None,
            shipping_price=shipping_price
        )
    return factory
