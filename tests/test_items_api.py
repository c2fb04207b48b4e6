import pytest

from app.crud.item import CRUDItem
from app.dependencies import get_item_service
from app.models import Item
from app.services.item import ItemService
from main import app


@pytest.fixture
def tenant_a(register, auth_headers):
    return auth_headers(register("a@x.com")["access_token"])


@pytest.fixture
def tenant_b(register, auth_headers):
    return auth_headers(register("b@x.com")["access_token"])


def _create(client, headers, name, description=None):
    response = client.post("/api/items", json={"name": name, "description": description}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_crud_roundtrip(client, tenant_a):
    item = _create(client, tenant_a, "Report", "Q3 numbers")

    fetched = client.get(f"/api/items/{item['id']}", headers=tenant_a).json()
    assert fetched["name"] == "Report"

    updated = client.patch(f"/api/items/{item['id']}", json={"name": "Final report"}, headers=tenant_a).json()
    assert updated["name"] == "Final report"
    assert updated["description"] == "Q3 numbers"

    assert client.delete(f"/api/items/{item['id']}", headers=tenant_a).status_code == 204
    assert client.get(f"/api/items/{item['id']}", headers=tenant_a).status_code == 404


def test_items_are_invisible_across_tenants(client, tenant_a, tenant_b):
    item = _create(client, tenant_a, "Secret")

    assert client.get(f"/api/items/{item['id']}", headers=tenant_b).status_code == 404
    assert client.patch(f"/api/items/{item['id']}", json={"name": "x"}, headers=tenant_b).status_code == 404
    assert client.delete(f"/api/items/{item['id']}", headers=tenant_b).status_code == 404
    assert client.get("/api/items", headers=tenant_b).json()["meta"]["total"] == 0

    # Still intact for its owner
    assert client.get(f"/api/items/{item['id']}", headers=tenant_a).json()["name"] == "Secret"


def test_client_supplied_tenant_id_is_ignored(client, tenant_a, tenant_b):
    item = _create(client, tenant_a, "Mine")

    response = client.post("/api/items", json={"name": "Sneaky", "tenant_id": item["tenant_id"]}, headers=tenant_b)

    assert response.status_code == 201
    assert response.json()["tenant_id"] != item["tenant_id"]


def test_pagination(client, tenant_a):
    for i in range(5):
        _create(client, tenant_a, f"Item {i}")

    page = client.get("/api/items?page=2&limit=2", headers=tenant_a).json()

    assert page["meta"] == {"total": 5, "page": 2, "limit": 2, "total_pages": 3}
    assert len(page["data"]) == 2


def test_newest_first(client, tenant_a):
    first = _create(client, tenant_a, "First")
    second = _create(client, tenant_a, "Second")

    ids = [item["id"] for item in client.get("/api/items", headers=tenant_a).json()["data"]]

    assert ids == [second["id"], first["id"]]


def test_search_matches_name_and_description(client, tenant_a):
    _create(client, tenant_a, "Invoice March")
    _create(client, tenant_a, "Contract", "signed invoice copy")
    _create(client, tenant_a, "Unrelated")

    page = client.get("/api/items?search=INVOICE", headers=tenant_a).json()

    assert page["meta"]["total"] == 2
    assert {item["name"] for item in page["data"]} == {"Invoice March", "Contract"}


@pytest.mark.parametrize("query", ["limit=101", "limit=0", "page=0"])
def test_page_bounds_are_validated(client, tenant_a, query):
    assert client.get(f"/api/items?{query}", headers=tenant_a).status_code == 422


def test_empty_list(client, tenant_a):
    page = client.get("/api/items", headers=tenant_a).json()

    assert page == {"data": [], "meta": {"total": 0, "page": 1, "limit": 10, "total_pages": 0}}


def test_requires_authentication(client):
    assert client.get("/api/items").status_code == 401


class RecordingItems(CRUDItem):
    def __init__(self):
        super().__init__(Item)
        self.created_for = []

    def create(self, db, *, obj_in, tenant_id):
        self.created_for.append(tenant_id)
        return super().create(db, obj_in=obj_in, tenant_id=tenant_id)


def test_service_uses_injected_item_store(client, tenant_a):
    items = RecordingItems()
    app.dependency_overrides[get_item_service] = lambda: ItemService(items=items)

    item = _create(client, tenant_a, "Injected")

    assert items.created_for == [item["tenant_id"]]
