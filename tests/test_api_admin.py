from datetime import timedelta

from app.modules.orders import crud as orders_crud
from app.modules.orders.schemas import OrderItemIn
from app.utils.dates import utcnow

API = "/api/v1/admin"


async def test_product_management(client, admin, auth):
    h = auth(admin)
    res = await client.post(f"{API}/products", json={"name": "E-book de Áudio", "price": 1900, "type": "ebook"}, headers=h)
    assert res.status_code == 201
    product = res.json()
    assert product["sales"] == 0

    bad = await client.post(f"{API}/products", json={"name": "X", "price": 100, "type": "course", "category": "webcam"}, headers=h)
    assert bad.status_code == 422
    bad = await client.put(f"{API}/products/{product['id']}", json={"category": "webcam"}, headers=h)
    assert bad.status_code == 400

    res = await client.put(f"{API}/products/{product['id']}", json={"price": 2500, "featured": True}, headers=h)
    assert res.json()["price"] == 2500 and res.json()["featured"] is True

    res = await client.post(f"{API}/products/{product['id']}/toggle", headers=h)
    assert res.json()["is_active"] is False
    assert (await client.get(f"/api/v1/products/{product['id']}")).status_code == 404
    assert [p["id"] for p in (await client.get(f"{API}/products", headers=h)).json()] == [product["id"]]

    assert (await client.delete(f"{API}/products/{product['id']}", headers=h)).status_code == 204
    assert (await client.delete(f"{API}/products/{product['id']}", headers=h)).status_code == 404


async def test_digital_product_management(client, admin, auth, make_product):
    h = auth(admin)
    p = await make_product()
    res = await client.post(f"{API}/digital-products", json={
        "product_id": p.id,
        "file_name": "aula.mp4",
        "file_type": "video",
        "file_size": 10_000_000,
        "file_url": "https://cdn.test/aula.mp4",
        "download_limit": 5,
    }, headers=h)
    assert res.status_code == 201
    dp = res.json()
    assert dp["file_url"] == "https://cdn.test/aula.mp4"

    bad = await client.post(f"{API}/digital-products", json={
        "product_id": p.id, "file_name": "x.exe", "file_type": "exe", "file_url": "https://cdn.test/x.exe",
    }, headers=h)
    assert bad.status_code == 422

    listed = (await client.get(f"{API}/digital-products", params={"product_id": p.id}, headers=h)).json()
    assert [d["id"] for d in listed] == [dp["id"]]

    res = await client.put(f"{API}/digital-products/{dp['id']}", json={"download_limit": 10}, headers=h)
    assert res.json()["download_limit"] == 10

    stats = (await client.get(f"{API}/digital-products/{dp['id']}/stats", headers=h)).json()
    assert stats == {"digital_product_id": dp["id"], "total_downloads": 0, "unique_users": 0}

    assert (await client.delete(f"{API}/digital-products/{dp['id']}", headers=h)).status_code == 204
    assert (await client.get(f"{API}/digital-products/{dp['id']}/stats", headers=h)).status_code == 404


async def test_order_management_and_stats(client, db, admin, user, auth, make_product):
    h = auth(admin)
    p = await make_product(name="Curso", price=9700)
    paid = await orders_crud.create_order(db, user.id, [OrderItemIn(product_id=p.id, quantity=2)])
    pending = await orders_crud.create_order(db, user.id, [OrderItemIn(product_id=p.id)])

    res = await client.put(f"{API}/orders/{paid.id}", json={"status": "paid", "payment_id": "tr_manual"}, headers=h)
    assert res.status_code == 200
    assert res.json()["status"] == "paid"
    assert res.json()["paid_at"] is not None

    res = await client.put(f"{API}/orders/{pending.id}", json={"status": "refunded"}, headers=h)
    assert res.status_code == 409

    only_pending = (await client.get(f"{API}/orders", params={"status": "pending"}, headers=h)).json()
    assert [o["id"] for o in only_pending] == [pending.id]

    params = {
        "start": (utcnow() - timedelta(days=1)).isoformat(),
        "end": (utcnow() + timedelta(days=1)).isoformat(),
    }
    in_range = (await client.get(f"{API}/orders/range", params=params, headers=h)).json()
    assert [o["id"] for o in in_range["orders"]] == [paid.id]
    assert in_range["total_revenue"] == 19400

    stats = (await client.get(f"{API}/stats", headers=h)).json()
    assert stats["total_users"] == 2
    assert stats["total_products"] == 1
    assert stats["orders"]["total_revenue"] == 19400
    assert stats["orders"]["pending_orders"] == 1

    top = (await client.get(f"{API}/stats/top-products", params={"limit": 5}, headers=h)).json()
    assert top == [{"product_id": p.id, "product_name": "Curso", "total_sold": 2, "total_revenue": 19400}]

    assert (await client.delete(f"{API}/orders/{pending.id}", headers=h)).status_code == 204
    assert (await client.delete(f"{API}/orders/{pending.id}", headers=h)).status_code == 404


async def test_user_management(client, admin, user, auth):
    h = auth(admin)
    users = (await client.get(f"{API}/users", headers=h)).json()
    assert {u["email"] for u in users} == {"admin@example.com", "ana@example.com"}

    res = await client.patch(f"{API}/users/{user.id}/role", json={"role": "ADMIN"}, headers=h)
    assert res.json()["role"] == "ADMIN"
    assert (await client.patch(f"{API}/users/{user.id}/role", json={"role": "ROOT"}, headers=h)).status_code == 422

    assert (await client.delete(f"{API}/users/{admin.id}", headers=h)).status_code == 403
    assert (await client.delete(f"{API}/users/{user.id}", headers=h)).status_code == 204
    assert (await client.delete(f"{API}/users/{user.id}", headers=h)).status_code == 404
