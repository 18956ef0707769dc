import pytest

from app.core.exceptions import Conflict, SubscriptionNotFound, ValidationError
from app.modules.newsletter import crud
from app.modules.newsletter.schemas import SubscribeIn, SubscriptionCreate, SubscriptionUpdate

API = "/api/v1/newsletter"
ADMIN = "/api/v1/admin/newsletter"


async def test_subscribe_normalizes_email_and_starts_pending(db):
    sub = await crud.subscribe(db, SubscribeIn(email="Leitora@Example.COM", name="Leitora"))
    assert sub.email == "leitora@example.com"
    assert sub.status == "pending"
    assert sub.confirmation_token and sub.confirmed_at is None


async def test_subscribe_requires_consent(db):
    with pytest.raises(ValidationError):
        await crud.subscribe(db, SubscribeIn(email="leitora@example.com", consent=False))


async def test_confirm_is_single_use(db):
    sub = await crud.subscribe(db, SubscribeIn(email="leitora@example.com"))
    token = sub.confirmation_token

    confirmed = await crud.confirm_subscription(db, token)
    assert confirmed.id == sub.id
    assert confirmed.status == "confirmed"
    assert confirmed.confirmed_at is not None
    assert confirmed.confirmation_token is None
    assert await crud.count_confirmed(db) == 1

    with pytest.raises(SubscriptionNotFound):
        await crud.confirm_subscription(db, token)
    with pytest.raises(SubscriptionNotFound):
        await crud.confirm_subscription(db, "nao-existe")


async def test_resubscribe_resets_to_pending_with_new_token(db):
    first = await crud.subscribe(db, SubscribeIn(email="leitora@example.com"))
    old_token = first.confirmation_token
    await crud.confirm_subscription(db, old_token)

    again = await crud.subscribe(db, SubscribeIn(email="LEITORA@example.com", name="Outra"))
    assert again.id == first.id
    assert again.status == "pending"
    assert again.name == "Outra"
    assert again.confirmation_token not in (None, old_token)
    assert again.confirmed_at is None
    assert await crud.count_confirmed(db) == 0


async def test_admin_create_list_update_delete(db):
    a = await crud.admin_create(db, SubscriptionCreate(email="a@example.com"))
    assert a.status == "confirmed" and a.confirmed_at is not None
    b = await crud.admin_create(db, SubscriptionCreate(email="b@example.com", status="pending"))
    assert b.confirmed_at is None
    a_id, b_id = a.id, b.id

    assert [s.id for s in await crud.list_subscriptions(db)] == [b_id, a_id]
    assert [s.id for s in await crud.list_subscriptions(db, status="pending")] == [b_id]

    b = await crud.update_subscription(db, b_id, SubscriptionUpdate(status="confirmed"))
    assert b.status == "confirmed" and b.confirmed_at is not None
    b = await crud.update_subscription(db, b_id, SubscriptionUpdate(status="pending"))
    assert b.confirmed_at is None

    with pytest.raises(Conflict):
        await crud.update_subscription(db, b_id, SubscriptionUpdate(email="A@example.com"))
    with pytest.raises(ValidationError):
        await crud.update_subscription(db, b_id, SubscriptionUpdate())
    with pytest.raises(SubscriptionNotFound):
        await crud.update_subscription(db, 999, SubscriptionUpdate(name="x"))

    await crud.delete_subscription(db, a_id)
    assert [s.id for s in await crud.list_subscriptions(db)] == [b_id]
    with pytest.raises(SubscriptionNotFound):
        await crud.delete_subscription(db, a_id)


async def test_public_subscribe_and_confirm_flow(client, db):
    res = await client.post(API, json={"email": "Leitora@example.com", "name": "Leitora"})
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "pending"
    assert body["message"]
    assert "confirmation_token" not in body

    assert (await client.post(API, json={"email": "nao-e-email"})).status_code == 422
    assert (await client.get(f"{API}/confirm")).status_code == 422
    assert (await client.get(f"{API}/confirm", params={"token": "nao-existe"})).status_code == 404

    # o link iria por e-mail; aqui o token sai direto do banco
    token = (await crud.get_subscription_by_email(db, "leitora@example.com")).confirmation_token
    res = await client.get(f"{API}/confirm", params={"token": token})
    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"
    assert (await client.get(f"{API}/confirm", params={"token": token})).status_code == 404

    assert (await client.get(API)).json() == {"count": 1}


async def test_admin_newsletter_routes(client, admin, user, auth):
    h = auth(admin)
    assert (await client.get(ADMIN, headers=auth(user))).status_code == 403

    res = await client.post(ADMIN, json={"email": "a@example.com", "name": "A"}, headers=h)
    assert res.status_code == 201
    created = res.json()
    assert created["status"] == "confirmed"

    await client.post(API, json={"email": "b@example.com"})
    pending = (await client.get(ADMIN, params={"status": "pending"}, headers=h)).json()
    assert [s["email"] for s in pending] == ["b@example.com"]
    assert (await client.get(ADMIN, params={"status": "outro"}, headers=h)).status_code == 422

    res = await client.put(f"{ADMIN}/{pending[0]['id']}", json={"email": "a@example.com"}, headers=h)
    assert res.status_code == 409
    res = await client.put(f"{ADMIN}/{pending[0]['id']}", json={"status": "confirmed"}, headers=h)
    assert res.status_code == 200 and res.json()["confirmed_at"] is not None

    assert (await client.delete(f"{ADMIN}/{created['id']}", headers=h)).status_code == 204
    assert (await client.delete(f"{ADMIN}/{created['id']}", headers=h)).status_code == 404
    assert [s["email"] for s in (await client.get(ADMIN, headers=h)).json()] == ["b@example.com"]
