from storefront.models.order import Order, OrderLineItem
from storefront.services import analytics
from storefront.services import filters as filters_service
from storefront.services import homepage as homepage_service


async def test_homepage_defaults_until_content_exists(db):
    assert (await homepage_service.get_hero())["videos"] == ["/Intro.mp4"]
    assert len(await homepage_service.get_category_cards()) == 4


async def test_update_hero_creates_once_and_keeps_unset_fields(db):
    first = await homepage_service.update_hero(videos=["/a.mp4"], hero_image="/a.jpg")
    second = await homepage_service.update_hero(videos=["/b.mp4"])
    assert first == second
    assert await homepage_service.get_hero() == {"id": str(first), "videos": ["/b.mp4"], "hero_image": "/a.jpg"}


async def test_category_cards_append_in_order(db):
    await homepage_service.upsert_category_card("Running", "running", "/run.jpg")
    card_id = await homepage_service.upsert_category_card("Court", "court", "/court.jpg")
    await homepage_service.upsert_category_card("Court Classics", "court", "/court.jpg", card_id=card_id)
    cards = await homepage_service.get_category_cards()
    assert [c["title"] for c in cards] == ["Running", "Court Classics"]


async def test_filters_grouped_by_type_in_order(db):
    await filters_service.create_filter("brand", "puma", "Puma", order=2)
    await filters_service.create_filter("brand", "nike", "Nike", order=1)
    hidden = await filters_service.create_filter("size", "uk-13", "UK 13")
    await filters_service.update_filter(hidden.id, is_active=False)
    grouped = await filters_service.get_all_active()
    assert list(grouped) == ["brand"]
    assert [f.name for f in grouped["brand"]] == ["nike", "puma"]


async def test_dashboard_stats(user, admin_user, product):
    item = OrderLineItem(product_id=product.id, variant_id="ar-8", title="Air Runner - UK 8", quantity=2, price=2500)
    await Order(user_id=user.id, order_number=1, items=[item], total_price=5000, financial_status="paid").insert()
    await Order(user_id=user.id, order_number=2, items=[item], total_price=5000).insert()

    stats = await analytics.dashboard_stats()
    assert stats["revenue"] == {"total": 5000, "pending": 5000, "recent": 5000}
    assert stats["users"] == {"total": 2, "admins": 1, "customers": 1}
    assert stats["orders"]["total"] == 2
    assert stats["orders"]["pending"] == 2
    assert stats["inventory"] == {"total": 24, "low_stock": 1}
    assert stats["top_products"][0]["sales"] == 4
    assert stats["top_products"][0]["title"] == "Air Runner"
