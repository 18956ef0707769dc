from datetime import timedelta

from app.core.config import settings
from app.core.security import create_download_token
from app.modules.digital_products import crud as dp_crud
from app.modules.digital_products.schemas import DigitalProductCreate
from app.services import access
from app.utils.dates import utcnow

API = "/api/v1"


async def _file(db, product_id, **kw):
    data = {"file_name": "curso.zip", "file_type": "zip", "file_size": 4096, "file_url": "https://cdn.test/curso.zip"}
    data.update(kw)
    return await dp_crud.add_digital_product(db, DigitalProductCreate(product_id=product_id, **data))


async def test_healthz(client):
    assert (await client.get("/healthz")).json() == {"status": "ok"}


async def test_catalog_lists_active_products(client, make_product):
    await make_product(name="Curso Ativo")
    await make_product(name="Rascunho", is_active=False)
    await make_product(name="Microfone X", type="review", category="microfoon", price=0)

    names = [p["name"] for p in (await client.get(f"{API}/products")).json()]
    assert set(names) == {"Curso Ativo", "Microfone X"}

    reviews = (await client.get(f"{API}/products", params={"category": "microfoon"})).json()
    assert [p["name"] for p in reviews] == ["Microfone X"]

    found = (await client.get(f"{API}/products", params={"q": "ativo"})).json()
    assert [p["name"] for p in found] == ["Curso Ativo"]


async def test_cart_routes(client, user, auth, make_product):
    p = await make_product(price=9700)
    h = auth(user)

    res = await client.post(f"{API}/cart", json={"product_id": p.id, "quantity": 1}, headers=h)
    assert res.status_code == 201
    await client.post(f"{API}/cart", json={"product_id": p.id, "quantity": 2}, headers=h)

    cart = (await client.get(f"{API}/cart", headers=h)).json()
    assert cart["total"] == 3 * 9700
    assert cart["item_count"] == 3
    assert cart["items"][0]["product"]["name"] == p.name

    res = await client.put(f"{API}/cart/{p.id}", json={"quantity": 0}, headers=h)
    assert res.json() == {"removed": True, "item": None}
    assert (await client.put(f"{API}/cart/{p.id}", json={"quantity": 2}, headers=h)).status_code == 404

    assert (await client.post(f"{API}/cart", json={"product_id": 999}, headers=h)).status_code == 404
    assert (await client.delete(f"{API}/cart", headers=h)).status_code == 204


async def test_purchase_download_refund_flow(client, db, user, auth, payments, make_product):
    p = await make_product(name="Curso de Vídeo", price=9700)
    dp = await _file(db, p.id, download_limit=2)
    h = auth(user)

    await client.post(f"{API}/cart", json={"product_id": p.id, "quantity": 1}, headers=h)
    assert (await client.get(f"{API}/cart", headers=h)).json()["total"] == 9700

    res = await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": p.id, "quantity": 1}]}, headers=h)
    assert res.status_code == 201
    checkout = res.json()
    order_id, payment_id = checkout["order_id"], checkout["payment_id"]
    assert checkout["checkout_url"].endswith(payment_id)
    assert payments.payments[payment_id]["amount"] == {"currency": "EUR", "value": "97.00"}
    assert payments.payments[payment_id]["metadata"] == {"order_id": order_id, "user_id": user.id}

    order = (await client.get(f"{API}/orders/{order_id}", headers=h)).json()
    assert order["status"] == "pending"
    assert order["total_amount"] == 9700

    # pendente: nada liberado
    assert (await client.post(f"{API}/download/{dp.id}", headers=h)).status_code == 403
    assert (await client.get(f"{API}/digital-products/{p.id}/user", headers=h)).status_code == 403

    payments.set_status(payment_id, "paid")
    res = await client.post(f"{API}/webhooks/payment", data={"id": payment_id})
    assert res.status_code == 200
    assert res.json()["status"] == "paid"
    # entrega repetida do webhook
    res = await client.post(f"{API}/webhooks/payment", json={"id": payment_id})
    assert res.json()["status"] == "paid"

    files = (await client.get(f"{API}/digital-products/{p.id}/user", headers=h)).json()
    assert [f["id"] for f in files] == [dp.id]
    assert "file_url" not in files[0]

    purchases = (await client.get(f"{API}/orders/purchases", headers=h)).json()
    assert purchases["count"] == 1
    assert [c["id"] for c in purchases["courses"]] == [p.id]

    link = await client.post(f"{API}/download/{dp.id}", headers=h)
    assert link.status_code == 200
    link = link.json()
    assert link["download_count"] == 1
    assert link["download_limit"] == 2

    served = await client.get(f"{API}/download/{dp.id}", params={"token": link["token"]})
    assert served.status_code == 200
    assert served.json()["file_url"] == "https://cdn.test/curso.zip"
    # resolver o link não consome download
    assert (await dp_crud.get_user_download(db, user.id, dp.id)).download_count == 1

    payments.refund(payment_id)
    res = await client.post(f"{API}/webhooks/payment", data={"id": payment_id})
    assert res.json()["status"] == "refunded"

    assert (await client.post(f"{API}/download/{dp.id}", headers=h)).status_code == 403
    assert (await client.get(f"{API}/download/{dp.id}", params={"token": link["token"]})).status_code == 403

    # reembolsado -> "failed" não é transição válida: 200 e nada muda
    payments.set_status(payment_id, "failed")
    res = await client.post(f"{API}/webhooks/payment", data={"id": payment_id})
    assert res.status_code == 200
    assert res.json()["status"] == "refunded"


async def test_download_limit_over_http(client, db, user, auth, payments, make_product):
    p = await make_product()
    dp = await _file(db, p.id, download_limit=1)
    h = auth(user)

    checkout = (await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": p.id}]}, headers=h)).json()
    payments.set_status(checkout["payment_id"], "paid")
    await client.post(f"{API}/webhooks/payment", data={"id": checkout["payment_id"]})

    assert (await client.post(f"{API}/download/{dp.id}", headers=h)).status_code == 200
    denied = await client.post(f"{API}/download/{dp.id}", headers=h)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Limite de downloads atingido"


async def test_download_token_is_bound_to_user_and_file(client, db, user, other_user, auth, payments, make_product):
    p = await make_product()
    dp = await _file(db, p.id)
    other = await _file(db, p.id, file_name="extra.pdf", file_type="pdf")

    checkout = (await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": p.id}]}, headers=auth(user))).json()
    payments.set_status(checkout["payment_id"], "paid")
    await client.post(f"{API}/webhooks/payment", data={"id": checkout["payment_id"]})

    token = (await client.post(f"{API}/download/{dp.id}", headers=auth(user))).json()["token"]
    assert (await client.get(f"{API}/download/{other.id}", params={"token": token})).status_code == 401
    assert (await client.get(f"{API}/download/{dp.id}", params={"token": "lixo"})).status_code == 401

    expired, _ = create_download_token(user.id, dp.id, expires_minutes=-1, secret_key=settings.SECRET_KEY)
    assert (await client.get(f"{API}/download/{dp.id}", params={"token": expired})).status_code == 401

    # token de outro usuário que não comprou
    stranger, _ = create_download_token(other_user.id, dp.id, expires_minutes=5, secret_key=settings.SECRET_KEY)
    assert (await client.get(f"{API}/download/{dp.id}", params={"token": stranger})).status_code == 403

    # token de download não serve como sessão
    assert (await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})).status_code == 401


async def test_checkout_provider_failure_keeps_order_pending(client, user, auth, payments, make_product):
    p = await make_product()
    payments.fail = True

    res = await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": p.id}]}, headers=auth(user))
    assert res.status_code == 502

    orders = (await client.get(f"{API}/orders", headers=auth(user))).json()
    assert [o["status"] for o in orders] == ["pending"]
    assert orders[0]["payment_id"] is None


async def test_checkout_validation(client, user, auth, make_product):
    h = auth(user)
    assert (await client.post(f"{API}/checkout/create-payment", json={"items": []}, headers=h)).status_code == 422
    res = await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": 77}]}, headers=h)
    assert res.status_code == 404


async def test_webhook_unknown_payment(client):
    assert (await client.post(f"{API}/webhooks/payment", data={"id": "tr_nope"})).status_code == 404
    assert (await client.post(f"{API}/webhooks/payment", data={})).status_code == 400


async def test_orders_are_private(client, user, other_user, auth, make_product):
    p = await make_product()
    order = (await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": p.id}]}, headers=auth(user))).json()
    assert (await client.get(f"{API}/orders/{order['order_id']}", headers=auth(other_user))).status_code == 404


async def test_issued_link_stops_working_once_file_expires(client, db, user, auth, payments, make_product, monkeypatch):
    p = await make_product()
    dp = await _file(db, p.id, expires_at=utcnow() + timedelta(minutes=5))
    h = auth(user)

    checkout = (await client.post(f"{API}/checkout/create-payment", json={"items": [{"product_id": p.id}]}, headers=h)).json()
    payments.set_status(checkout["payment_id"], "paid")
    await client.post(f"{API}/webhooks/payment", data={"id": checkout["payment_id"]})

    token = (await client.post(f"{API}/download/{dp.id}", headers=h)).json()["token"]
    assert (await client.get(f"{API}/download/{dp.id}", params={"token": token})).status_code == 200

    # o link (60 min) ainda é válido, o arquivo não
    monkeypatch.setattr(access, "utcnow", lambda: utcnow() + timedelta(minutes=10))
    res = await client.get(f"{API}/download/{dp.id}", params={"token": token})
    assert res.status_code == 403
    assert res.json()["detail"] == "Arquivo expirado"
