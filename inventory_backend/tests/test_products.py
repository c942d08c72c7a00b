"""
Integration tests for the product catalog and its change history.
"""

import pytest

from inventory_backend.app.core.config import settings
from inventory_backend.app.models.enums import Role
from inventory_backend.app.services.products import file_size_formatter

PRODUCT_FORM = {
    "name": "Hammer",
    "category": "Tools",
    "quantity": "12",
    "price": "19.5",
    "description": "Steel claw hammer",
    "sku": "HAM-001",
}


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


@pytest.mark.parametrize("size,expected", [
    (0, "0 Bytes"),
    (512, "512 Bytes"),
    (1500, "1.5 KB"),
    (2_000_000, "2 MB"),
])
def test_file_size_formatter(size, expected):
    assert file_size_formatter(size) == expected


@pytest.mark.asyncio
async def test_create_product_records_history(manager, client_for):
    ac = client_for(manager)

    response = await ac.post("/api/products", data=PRODUCT_FORM)

    assert response.status_code == 201
    product = response.json()["data"]
    assert product["name"] == "Hammer"
    assert product["quantity"] == 12
    assert product["price"] == 19.5
    assert product["user_id"] == manager.id
    assert product["image"] is None

    history = (await ac.get(f"/api/products/{product['id']}/history")).json()["data"]
    assert history["total"] == 1
    assert history["items"][0]["change_type"] == "created"


@pytest.mark.asyncio
async def test_create_product_with_image(manager, client_for, upload_dir):
    response = await client_for(manager).post(
        "/api/products",
        data=PRODUCT_FORM,
        files={"image": ("hammer.png", b"\x89PNG fake image bytes", "image/png")},
    )

    assert response.status_code == 201
    image = response.json()["data"]["image"]
    assert image["file_name"] == "hammer.png"
    assert image["file_type"] == "image/png"
    assert image["file_path"].startswith("/uploads/")
    assert len(list(upload_dir.iterdir())) == 1


@pytest.mark.asyncio
async def test_rejects_non_image_upload(manager, client_for, upload_dir):
    response = await client_for(manager).post(
        "/api/products",
        data=PRODUCT_FORM,
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.EMPLOYEE, Role.CUSTOMER])
async def test_only_privileged_roles_manage_catalog(role, create_user, client_for):
    user = await create_user(role)
    response = await client_for(user).post("/api/products", data=PRODUCT_FORM)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_records_one_entry_per_changed_field(admin, create_product, client_for):
    product = await create_product(admin, name="Saw", price=10.0, quantity=5)
    ac = client_for(admin)

    response = await ac.patch(f"/api/products/{product.id}", data={
        "price": "12.5",
        "quantity": "5",
        "description": "Sharper saw",
    })

    assert response.status_code == 200
    assert response.json()["data"]["price"] == 12.5

    history = (await ac.get(f"/api/products/{product.id}/history", params={"page_size": 10})).json()["data"]
    changes = {(h["change_type"], h["field"]) for h in history["items"]}
    assert changes == {("price", "price"), ("information", "description")}

    price_entry = next(h for h in history["items"] if h["field"] == "price")
    assert price_entry["previous_value"] == 10.0
    assert price_entry["new_value"] == 12.5
    assert price_entry["user_id"] == admin.id


@pytest.mark.asyncio
async def test_soft_delete_hides_product_but_keeps_history(admin, create_product, client_for, client):
    product = await create_product(admin, name="Drill")
    ac = client_for(admin)

    deleted = await ac.delete(f"/api/products/{product.id}")
    assert deleted.status_code == 200

    assert (await ac.get(f"/api/products/{product.id}")).status_code == 404
    assert (await client.get("/api/products/public")).json()["data"] == []

    history = (await ac.get(f"/api/products/{product.id}/history")).json()["data"]
    assert [h["change_type"] for h in history["items"]] == ["deleted"]


@pytest.mark.asyncio
async def test_public_listing_needs_no_session(admin, create_product, client):
    await create_product(admin, name="Pliers", category="Tools")
    await create_product(admin, name="Paint", category="Decor")

    everything = await client.get("/api/products/public")
    tools = await client.get("/api/products/public", params={"category": "Tools"})

    assert everything.status_code == 200
    assert len(everything.json()["data"]) == 2
    assert [p["name"] for p in tools.json()["data"]] == ["Pliers"]

    assert (await client.get("/api/products")).status_code == 401


@pytest.mark.asyncio
async def test_customer_sees_all_active_products(admin, manager, customer, create_product, client_for):
    await create_product(admin, name="Admin Product")
    await create_product(manager, name="Manager Product")

    data = (await client_for(customer).get("/api/products")).json()["data"]

    assert {p["name"] for p in data} == {"Admin Product", "Manager Product"}


@pytest.mark.asyncio
async def test_all_history_filters_and_paginates(admin, manager, client_for):
    admin_client = client_for(admin)
    for name in ("A", "B", "C"):
        form = dict(PRODUCT_FORM, name=name)
        assert (await admin_client.post("/api/products", data=form)).status_code == 201
    await client_for(manager).post("/api/products", data=dict(PRODUCT_FORM, name="D"))

    page = (await admin_client.get("/api/products/history/all", params={"page_size": 2})).json()["data"]
    assert page["total"] == 4
    assert page["pages"] == 2
    assert len(page["items"]) == 2

    by_manager = (await admin_client.get(
        "/api/products/history/all", params={"user_id": manager.id}
    )).json()["data"]
    assert by_manager["total"] == 1

    created = (await admin_client.get(
        "/api/products/history/all", params={"change_type": "created", "sort": "asc"}
    )).json()["data"]
    assert created["total"] == 4

    assert (await client_for(manager).get("/api/products/history/all")).status_code == 200
