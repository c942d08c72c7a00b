"""
Report, export and dashboard tests.
"""

import pytest

from inventory_backend.app.models.enums import Role


@pytest.fixture
async def shop(admin, customer, create_product, place_order, client_for):
    """
    Two products and three orders:
    one delivered (2 x Hammer), one pending (1 x Seeds) and one cancelled (1 x Hammer).
    """
    hammer = await create_product(admin, name="Hammer", price=10.0, quantity=20, category="Tools")
    seeds = await create_product(admin, name="Seeds", price=5.0, quantity=3, category="Garden")

    delivered = await place_order(customer, [{"product_id": hammer.id, "quantity": 2}])
    pending = await place_order(customer, [{"product_id": seeds.id, "quantity": 1}])
    cancelled = await place_order(customer, [{"product_id": hammer.id, "quantity": 1}])

    ac = client_for(admin)
    for action in ("approve", "ship", "deliver"):
        assert (await ac.patch(f"/api/orders/{delivered['id']}/{action}")).status_code == 200
    assert (await ac.patch(f"/api/orders/{cancelled['id']}/cancel")).status_code == 200

    return {
        "hammer": hammer, "seeds": seeds,
        "delivered": delivered, "pending": pending, "cancelled": cancelled,
    }


@pytest.mark.asyncio
async def test_sales_report_excludes_cancelled(shop, admin, client_for):
    response = await client_for(admin).get("/api/reports/sales")

    assert response.status_code == 200
    report = response.json()["data"]
    assert report["summary"]["total_sales"] == 25.0
    assert report["summary"]["order_count"] == 2
    assert report["summary"]["min_order_value"] == 5.0
    assert report["summary"]["max_order_value"] == 20.0
    assert sum(p["order_count"] for p in report["sales_data"]) == 2
    assert report["top_products"] == []


@pytest.mark.asyncio
async def test_sales_report_by_category_lists_top_products(shop, manager, client_for):
    report = (await client_for(manager).get(
        "/api/reports/sales", params={"category": "Tools", "period": "monthly"}
    )).json()["data"]

    assert report["period"] == "monthly"
    assert report["summary"]["total_sales"] == 20.0
    assert [(p["name"], p["total_quantity"], p["total_revenue"]) for p in report["top_products"]] == [
        ("Hammer", 2, 20.0)
    ]


@pytest.mark.asyncio
async def test_inventory_report_flags_low_stock(shop, admin, client_for):
    report = (await client_for(admin).get("/api/reports/inventory")).json()["data"]

    # Cancelled orders do not restock
    quantities = {item["name"]: item["quantity"] for item in report["inventory_data"]}
    assert quantities == {"Hammer": 17, "Seeds": 2}
    assert [item["name"] for item in report["low_stock_products"]] == ["Seeds"]
    assert report["inventory_stats"]["total_products"] == 2
    assert report["inventory_stats"]["total_value"] == 180.0
    assert {c["category"] for c in report["inventory_summary"]} == {"Garden", "Tools"}


@pytest.mark.asyncio
async def test_inventory_report_rejects_unknown_sort_field(admin, client_for):
    response = await client_for(admin).get("/api/reports/inventory", params={"sort_by": "password"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_orders_report_counts_and_fulfilment(shop, admin, client_for):
    report = (await client_for(admin).get("/api/reports/orders")).json()["data"]

    assert report["status_counts"] == {"Delivered": 1, "Pending": 1, "Cancelled": 1}
    stats = report["fulfillment_time_stats"]
    assert 0 <= stats["avg_total_fulfillment_time"] < 1
    assert sum(point["total_orders"] for point in report["order_trend"]) == 3
    assert sum(point["cancelled_orders"] for point in report["order_trend"]) == 1


@pytest.mark.asyncio
async def test_products_report_ranks_by_revenue(shop, admin, client_for):
    report = (await client_for(admin).get("/api/reports/products")).json()["data"]

    ranked = [(p["name"], p["total_revenue"], p["order_count"]) for p in report["product_performance"]]
    assert ranked == [("Hammer", 20.0, 1), ("Seeds", 5.0, 1)]
    assert [c["category"] for c in report["category_performance"]] == ["Tools", "Garden"]


@pytest.mark.asyncio
async def test_csv_export(shop, admin, client_for):
    response = await client_for(admin).get("/api/reports/inventory/export", params={"format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "inventory_report_" in response.headers["content-disposition"]

    lines = response.text.splitlines()
    assert lines[0] == "name,category,quantity,price,sku"
    assert len(lines) == 3


@pytest.mark.asyncio
async def test_export_rejects_unsupported_format(admin, client_for):
    response = await client_for(admin).get("/api/reports/sales/export", params={"format": "pdf"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_export_rejects_unknown_report(admin, client_for):
    response = await client_for(admin).get("/api/reports/payroll/export")
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.EMPLOYEE, Role.CUSTOMER])
async def test_reports_are_privileged(role, create_user, client_for):
    user = await create_user(role)
    ac = client_for(user)

    assert (await ac.get("/api/reports/sales")).status_code == 403
    assert (await ac.get("/api/reports/orders/export")).status_code == 403
    assert (await ac.get("/api/dashboard/stats")).status_code == 403


@pytest.mark.asyncio
async def test_dashboard_stats(shop, admin, client_for):
    stats = (await client_for(admin).get("/api/dashboard/stats")).json()["data"]

    assert stats["order_counts"] == {
        "Pending": 1, "Approved": 0, "Shipped": 0, "Delivered": 1, "Cancelled": 1,
    }
    assert stats["user_counts"] == {"admin": 1, "customer": 1}
    assert [p["name"] for p in stats["low_stock_products"]] == ["Seeds"]
    assert len(stats["recent_orders"]) == 3


@pytest.mark.asyncio
async def test_customer_stats_cover_own_orders_only(shop, customer, create_user, client_for):
    mine = (await client_for(customer).get("/api/dashboard/customer-stats")).json()["data"]
    assert mine["total_orders"] == 3
    assert mine["total_spent"] == 25.0

    other = await create_user(Role.CUSTOMER)
    theirs = (await client_for(other).get("/api/dashboard/customer-stats")).json()["data"]
    assert theirs["total_orders"] == 0
    assert theirs["total_spent"] == 0.0
    assert theirs["recent_orders"] == []
