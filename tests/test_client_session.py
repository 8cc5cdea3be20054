import json

import httpx
import pytest

from business_reports.client import ApiClient, ApiError, AuthenticationError
from business_reports.models import ResourceKind
from business_reports.session import REPORT_KINDS, ReportSession, fetch_records

BASE = "http://api.test/api"

PAYLOADS = {
    "/api/expenses": {"expenses": [{"_id": "e1", "amount": "₹1,000.00", "category": "Rent"}]},
    "/api/products": [{"_id": "p1", "name": "Pen", "price": 10, "stock": 3}],
    "/api/invoices": {"invoices": [{"_id": "i1", "total": 500, "status": "paid",
                                    "issueDate": "2025-04-02"}]},
    "/api/purchase-orders": {"purchaseOrders": [{"_id": "po1", "total": 200}]},
    "/api/sales-orders": {"data": [{"_id": "so1", "total": 300, "status": "pending"}]},
}


def _client(handler, token="tok") -> ApiClient:
    return ApiClient(BASE, token=token, transport=httpx.MockTransport(handler))


def _serve(overrides=None):
    overrides = overrides or {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path in overrides:
            return overrides[path]
        return httpx.Response(200, json=PAYLOADS[path])

    return handler


def test_collection_fetch_sends_bearer_and_cache_buster():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    with _client(handler) as client:
        assert client.get_collection(ResourceKind.PURCHASE_ORDERS) == []

    req = seen[0]
    assert req.url.path == "/api/purchase-orders"
    assert req.headers["Authorization"] == "Bearer tok"
    assert req.url.params["_t"].isdigit()


def test_no_authorization_header_without_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    _client(handler, token="").get_collection(ResourceKind.PRODUCTS)
    assert "Authorization" not in seen[0].headers


def test_401_drops_token_and_raises_authentication_error():
    client = _client(lambda request: httpx.Response(401, json={"message": "expired"}))
    with pytest.raises(AuthenticationError) as excinfo:
        client.get_collection(ResourceKind.INVOICES)
    assert excinfo.value.status_code == 401
    assert client.token is None
    assert not client.authenticated


def test_http_and_transport_errors_become_api_error():
    client = _client(lambda request: httpx.Response(500))
    with pytest.raises(ApiError) as excinfo:
        client.get_collection(ResourceKind.INVOICES)
    assert excinfo.value.status_code == 500
    assert not isinstance(excinfo.value, AuthenticationError)

    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ApiError) as excinfo:
        _client(boom).get_collection(ResourceKind.INVOICES)
    assert excinfo.value.status_code is None


def test_login_stores_token_and_current_user():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/auth/login":
            body = json.loads(request.content)
            assert body == {"email": "a@b.c", "password": "pw"}
            return httpx.Response(200, json={"token": "new-token"})
        assert request.headers["Authorization"] == "Bearer new-token"
        return httpx.Response(200, json={"email": "a@b.c"})

    client = _client(handler, token="")
    assert client.login("a@b.c", "pw") == "new-token"
    assert client.current_user() == {"email": "a@b.c"}


def test_login_without_token_in_response_fails():
    client = _client(lambda request: httpx.Response(200, json={"ok": True}))
    with pytest.raises(ApiError):
        client.login("a@b.c", "pw")


def test_fetch_records_normalizes_envelope():
    records = fetch_records(_client(_serve()), ResourceKind.SALES_ORDERS)
    assert [(r.id, r.amount) for r in records] == [("so1", 300)]


def test_session_loads_all_resources():
    session = ReportSession(_client(_serve()), year=2025)
    overview = session.load()
    assert overview is not None
    assert session.overview is overview
    assert overview.errors == {}
    assert not overview.auth_failed
    assert overview.expenses.total_expenses == 1000
    assert overview.products.total_stock_value == 30
    assert overview.invoices.paid_amount == 500
    assert overview.invoices.monthly_revenue[3] == 500
    assert overview.purchase_orders.total_amount == 200
    assert overview.sales_orders.total_amount == 300
    assert set(session.records) == set(REPORT_KINDS)


def test_partial_failure_is_isolated_per_resource():
    handler = _serve({"/api/products": httpx.Response(503)})
    overview = ReportSession(_client(handler), year=2025, max_workers=2).load()
    assert overview is not None
    assert set(overview.errors) == {ResourceKind.PRODUCTS}
    assert overview.products.total_products == 0
    assert overview.expenses.total_expenses == 1000
    assert not overview.auth_failed


def test_auth_failure_is_flagged():
    handler = _serve({"/api/invoices": httpx.Response(401)})
    overview = ReportSession(_client(handler), year=2025).load()
    assert overview is not None
    assert overview.auth_failed
    assert ResourceKind.INVOICES in overview.errors


def test_closed_session_discards_results():
    session = ReportSession(_client(_serve()), year=2025)
    session.close()
    assert not session.alive
    assert session.load() is None
    assert session.overview is None


def test_close_during_load_discards_late_results():
    session: ReportSession

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/expenses":
            session.close()
        return httpx.Response(200, json=PAYLOADS[request.url.path])

    session = ReportSession(_client(handler), year=2025)
    assert session.load() is None
    assert session.overview is None
