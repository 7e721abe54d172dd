"""HTTP flows through the app with session cookies."""


async def test_products_hide_locked_images_until_approved(client, login, user, product):
    resp = await client.get("/v1/products/air-runner")
    assert resp.status_code == 200
    assert [i["url"] for i in resp.json()["images"]] == ["/img/air-runner.jpg"]

    await user.set({"is_approved": True})
    login(client, user)
    resp = await client.get("/v1/products/air-runner")
    assert len(resp.json()["images"]) == 2


async def test_unknown_product_is_404(client, db):
    resp = await client.get("/v1/products/nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


async def test_admin_routes_reject_customers(client, login, user):
    assert (await client.get("/v1/admin/dashboard")).status_code == 401
    login(client, user)
    assert (await client.get("/v1/admin/dashboard")).status_code == 403
    assert (await client.get("/v1/payments/admin/all")).status_code == 403


async def test_checkout_to_paid_over_http(client, login, user, admin_user, product, enqueued):
    login(client, user)
    resp = await client.post("/v1/cart/items", json={"product_id": str(product.id), "variant_id": "ar-9", "quantity": 2})
    assert resp.status_code == 200
    cart = resp.json()["cart"]
    assert cart["subtotal"] == 5000

    resp = await client.post("/v1/orders/checkout", json={"cart_id": cart["id"]}, headers={"Idempotency-Key": "chk-1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["order"]["total_price"] == 5000
    assert "checkout_key" not in body["order"]
    assert body["upi"]["uri"].startswith("upi://pay?")
    payment_id = body["payment_id"]

    replay = await client.post("/v1/orders/checkout", json={"cart_id": cart["id"]}, headers={"Idempotency-Key": "chk-1"})
    assert replay.json()["order"]["id"] == body["order"]["id"]

    first = await client.post(f"/v1/payments/{payment_id}/initiate")
    second = await client.post(f"/v1/payments/{payment_id}/initiate")
    assert first.json() == second.json()

    pending = await client.get("/v1/payments/mine/pending")
    assert [p["id"] for p in pending.json()["payments"]] == [payment_id]

    # customers cannot record payments
    assert (await client.patch(f"/v1/payments/{payment_id}", json={"amount_paid": 5000})).status_code == 403

    login(client, admin_user)
    resp = await client.patch(f"/v1/payments/{payment_id}", json={"amount_paid": 5000, "transaction_id": "UTR1"})
    assert resp.json() == {"success": True, "status": "paid"}

    order = await client.get(f"/v1/orders/{body['order']['id']}")
    assert order.json()["financial_status"] == "paid"
    assert order.json()["payment"]["status"] == "paid"
    assert [args[0]["type"] for name, args in enqueued] == ["initiated", "completed"]


async def test_orders_are_private(client, login, user, admin_user, product):
    from storefront.services import carts as carts_service
    from storefront.services import orders as orders_service

    cart = await carts_service.get_or_create(user_id=admin_user.id)
    await carts_service.add_item(cart.id, product.id, "ar-8", 1)
    result = await orders_service.checkout(admin_user.id, cart.id)

    login(client, user)
    assert (await client.get(f"/v1/orders/{result['order'].id}")).status_code == 404
    assert (await client.get(f"/v1/payments/{result['payment_id']}")).status_code == 404


async def test_guest_cart_by_session_header(client, product):
    headers = {"X-Guest-Session": "guest-abc"}
    resp = await client.post(
        "/v1/cart/items",
        json={"product_id": str(product.id), "variant_id": "ar-8", "quantity": 1},
        headers=headers,
    )
    assert resp.json()["cart"]["session_id"] == "guest-abc"
    resp = await client.get("/v1/cart", headers=headers)
    assert len(resp.json()["cart"]["items"]) == 1


async def test_contact_form_queues_a_message(client, monkeypatch, enqueued):
    from storefront.core.config import get_settings

    monkeypatch.setattr(get_settings(), "contact_webhook_url", "https://discord.test/contact")
    resp = await client.post("/v1/contact", json={"email": "visitor@example.com", "message": "Do you ship to Pune?"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    function, args = enqueued[0]
    assert function == "send_contact_notification"
    assert args[0]["message"] == "Do you ship to Pune?"
    assert args[0]["submitted_at"].endswith("IST")


async def test_contact_form_validation_and_outage(client, monkeypatch, enqueued):
    from storefront.core.config import get_settings

    resp = await client.post("/v1/contact", json={"email": "visitor@example.com", "message": ""})
    assert resp.status_code == 422
    monkeypatch.setattr(get_settings(), "contact_webhook_url", "")
    monkeypatch.setattr(get_settings(), "notify_webhook_url", "")
    resp = await client.post("/v1/contact", json={"email": "visitor@example.com", "message": "hello"})
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "CONTACT_UNAVAILABLE"
    assert enqueued == []


async def test_active_coupons_are_public_and_admin_cards_are_not(client, login, user, db):
    from storefront.services import discounts as discounts_service

    await discounts_service.create_coupon("LIVE", "fixed", 100)
    off = await discounts_service.create_coupon("OFF", "fixed", 100)
    await discounts_service.update_coupon(off.id, is_active=False)

    resp = await client.get("/v1/discounts/coupons/active")
    assert resp.status_code == 200
    assert [c["code"] for c in resp.json()["coupons"]] == ["LIVE"]

    login(client, user)
    assert (await client.get("/v1/discounts/admin/gift-cards/active")).status_code == 403


async def test_admin_lists_active_gift_cards(client, login, admin_user):
    from storefront.services import discounts as discounts_service

    await discounts_service.create_admin_gift_card("GIFT100", 100)
    login(client, admin_user)
    resp = await client.get("/v1/discounts/admin/gift-cards/active")
    assert resp.status_code == 200
    assert [c["code"] for c in resp.json()["gift_cards"]] == ["GIFT100"]
