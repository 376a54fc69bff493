"""Application tests for shop discovery, trending, recommendations and catalogue reads."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from marketplace.catalogue import queries as catalogue
from marketplace.catalogue.food import Food
from marketplace.catalogue.shop import Shop, ShopRating
from marketplace.discovery import search
from marketplace.order.order import Order

HOME = (77.5946, 12.9716)
# Roughly 5.4 km east of HOME
NEARBY = (77.6446, 12.9716)
# Roughly 21 km east of HOME
FAR = (77.7946, 12.9716)


def _rate(shop, average, count=5):
    shop.rating = ShopRating(average=average, count=count)
    current_domain.repository_for(Shop).add(shop)
    return shop


def _delivered_order(shop, food, user_id="user-001", created_at=None, number=0):
    order = Order.place(
        order_number=f"ORD1700000000000{number:03d}",
        user_id=user_id,
        shop_id=shop.id,
        lines=[{"food_id": food.id, "food_name": food.name, "price": food.price, "quantity": 1, "subtotal": food.price}],
        charges={"total_amount": food.price, "delivery_fee": 50.0, "taxes": 5.0, "grand_total": food.price + 55.0},
        payment_method="cod",
        payment_status="pending",
        payment_reference="COD_1700000000000",
        delivery_address={"street": "1 Road", "city": "Bengaluru", "state": "KA", "pincode": "560001"},
        phone_number="9876543210",
    )
    for status in ("preparing", "out_for_delivery", "delivered"):
        order.advance_to(status)
    if created_at is not None:
        order.created_at = created_at
    current_domain.repository_for(Order).add(order)
    return order


@pytest.fixture()
def dragon_wok(make_shop):
    return make_shop(
        "owner-002",
        name="Dragon Wok",
        longitude=NEARBY[0],
        latitude=NEARBY[1],
        cuisines='["Chinese"]',
        menu_categories='["Chinese", "Soups"]',
        delivery_charge=20.0,
    )


class TestShopCard:
    def test_card_at_the_shop_itself(self, shop):
        card = search.shop_card(shop, *HOME, now=datetime(2024, 1, 1, 12, 0))
        assert card["distance"] == 0.0
        assert card["estimated_delivery_time"] == 20
        assert card["calculated_delivery_charge"] == 30.0
        assert card["is_currently_open"] is True

    def test_card_without_a_point(self, shop):
        card = search.shop_card(shop)
        assert card["distance"] is None
        assert card["estimated_delivery_time"] is None
        assert card["calculated_delivery_charge"] == 30.0


class TestListShops:
    def test_only_verified_active_shops(self, shop, make_shop):
        make_shop("owner-003", name="Pending Place", verify=False)
        assert [s["id"] for s in search.list_shops()["shops"]] == [str(shop.id)]

    def test_rating_order_without_a_point(self, shop, dragon_wok):
        _rate(dragon_wok, 4.6)
        _rate(shop, 3.9)
        names = [s["name"] for s in search.list_shops()["shops"]]
        assert names == ["Dragon Wok", "Spice Route"]

    def test_distance_order_with_a_point(self, shop, dragon_wok):
        _rate(dragon_wok, 4.6)
        result = search.list_shops(longitude=HOME[0], latitude=HOME[1])
        assert [s["name"] for s in result["shops"]] == ["Spice Route", "Dragon Wok"]
        assert result["shops"][1]["calculated_delivery_charge"] == 20.0

    def test_default_radius(self, shop, make_shop):
        make_shop("owner-004", name="Faraway Foods", longitude=FAR[0], latitude=FAR[1])
        result = search.list_shops(longitude=HOME[0], latitude=HOME[1])
        assert [s["name"] for s in result["shops"]] == ["Spice Route"]

    def test_cuisine_and_text_filters(self, shop, dragon_wok):
        assert [s["name"] for s in search.list_shops(cuisines=["Chinese"])["shops"]] == ["Dragon Wok"]
        assert [s["name"] for s in search.list_shops(search="spice")["shops"]] == ["Spice Route"]
        assert [s["name"] for s in search.list_shops(menu_categories=["Soups"])["shops"]] == ["Dragon Wok"]

    def test_open_now(self, shop, make_shop):
        make_shop("owner-005", name="Lunch Box", open_time="11:00", close_time="15:00")
        late_evening = datetime(2024, 1, 1, 22, 30)

        result = search.list_shops(open_now=True, now=late_evening)
        assert [s["name"] for s in result["shops"]] == ["Spice Route"]

        result = search.list_shops(open_now=True, now=datetime(2024, 1, 1, 12, 0))
        assert sorted(s["name"] for s in result["shops"]) == ["Lunch Box", "Spice Route"]

    def test_fast_delivery(self, shop, dragon_wok):
        result = search.list_shops(longitude=HOME[0], latitude=HOME[1])
        assert result["shops"][1]["estimated_delivery_time"] == 31

        result = search.list_shops(longitude=HOME[0], latitude=HOME[1], fast_delivery=True)
        assert [s["name"] for s in result["shops"]] == ["Spice Route"]

    def test_false_flags_filter_too(self, shop, make_shop):
        make_shop("owner-006", name="Star Kitchen", featured=True, delivery_available=False)

        assert [s["name"] for s in search.list_shops(featured=False)["shops"]] == ["Spice Route"]
        assert [s["name"] for s in search.list_shops(featured=True)["shops"]] == ["Star Kitchen"]
        assert [s["name"] for s in search.list_shops(delivery_available=False)["shops"]] == ["Star Kitchen"]

    def test_pagination(self, shop, dragon_wok):
        result = search.list_shops(page=2, limit=1)
        assert len(result["shops"]) == 1
        assert result["pagination"]["total_items"] == 2
        assert result["pagination"]["has_prev"] is True
        assert result["pagination"]["has_next"] is False


class TestSearchAndNearby:
    def test_point_is_required(self, shop):
        with pytest.raises(ValidationError):
            search.search_shops("spice", None, None)

    def test_matches_city_case_insensitively(self, shop, dragon_wok):
        result = search.search_shops("BENGALURU", *HOME)
        assert result["count"] == 2
        assert result["search_query"] == "BENGALURU"

    def test_rating_floor(self, shop, dragon_wok):
        _rate(dragon_wok, 4.2)
        result = search.search_shops(None, *HOME, min_rating=4.0)
        assert [s["name"] for s in result["shops"]] == ["Dragon Wok"]

    def test_nearby_respects_distance(self, shop, dragon_wok):
        assert [s["name"] for s in search.nearby_shops(*HOME, max_distance_km=3)] == ["Spice Route"]
        assert [s["name"] for s in search.nearby_shops(*HOME)] == ["Spice Route", "Dragon Wok"]

    def test_by_cuisine(self, shop, dragon_wok):
        result = search.shops_by_cuisine("chinese", *HOME)
        assert result["cuisine"] == "chinese"
        assert [s["name"] for s in result["shops"]] == ["Dragon Wok"]


class TestTrendingShops:
    def test_quiet_mediocre_shop_is_not_trending(self, shop, food):
        _rate(shop, 3.5)
        for number in range(2):
            _delivered_order(shop, food, number=number)

        assert search.trending_shops(*HOME)["count"] == 0

    def test_busy_week_makes_it_trending(self, shop, food):
        _rate(shop, 3.5)
        for number in range(6):
            _delivered_order(shop, food, number=number)

        result = search.trending_shops(*HOME)
        assert result["count"] == 1
        entry = result["trending_shops"][0]
        assert entry["weekly_orders"] == 6
        assert entry["badge"] == "Trending"

    def test_old_orders_do_not_count(self, shop, food):
        _rate(shop, 3.5)
        last_month = datetime.now(UTC) - timedelta(days=30)
        for number in range(6):
            _delivered_order(shop, food, created_at=last_month, number=number)

        assert search.trending_shops(*HOME)["count"] == 0

    def test_offline_shops_are_skipped(self, shop, owner_id):
        _rate(shop, 4.8)
        shop = current_domain.repository_for(Shop).get(shop.id)
        shop.change_status(online=False)
        current_domain.repository_for(Shop).add(shop)

        assert search.trending_shops(*HOME)["count"] == 0


class TestRecommendations:
    def test_history_drives_the_ranking(self, shop, food, dragon_wok):
        _delivered_order(shop, food, user_id="user-001")

        result = search.recommend_shops("user-001", *HOME)

        assert result["user_preferences"] == {
            "top_cuisines": ["North Indian", "Mughlai"],
            "top_categories": ["Indian", "Biryani"],
        }
        first, second = result["recommendations"]
        assert first["name"] == "Spice Route"
        assert first["match_score"] == 4
        assert first["recommendation_reason"] == "Based on your preferences"
        assert second["name"] == "Dragon Wok"
        assert second["recommendation_reason"] == "Popular nearby"

    def test_without_history(self, shop):
        result = search.recommend_shops("user-new", *HOME)
        assert result["user_preferences"] == {"top_cuisines": [], "top_categories": []}
        assert [r["match_score"] for r in result["recommendations"]] == [0]


class TestShopMetadata:
    def test_distinct_values(self, shop, dragon_wok):
        metadata = search.shop_metadata()
        assert metadata["cuisines"]["all"] == ["Chinese", "Mughlai", "North Indian"]
        assert metadata["cities"] == ["Bengaluru"]
        assert "Pizza" in metadata["menu_categories"]["popular"]


class TestCatalogueReads:
    def test_get_shop(self, shop, food, make_food):
        make_food(shop, name="Sweet Lassi", price=90.0, menu_category="Beverages", beverage=True)
        detail = catalogue.get_shop(shop.id, *HOME)

        assert detail["shop"]["distance"] == 0.0
        assert [group["category"] for group in detail["menu"]] == ["Beverages", "Indian"]
        assert detail["delivery_info"] == {
            "available": True,
            "charge": 30.0,
            "min_order_value": 100.0,
            "estimated_time": 20,
        }
        assert detail["stats"]["total_orders"] == 0

    def test_popular_items_from_delivered_orders(self, shop, food):
        _delivered_order(shop, food)
        detail = catalogue.get_shop(shop.id)
        assert detail["popular_items"][0]["id"] == str(food.id)
        assert detail["stats"]["total_orders"] == 1

    def test_list_foods_filters_and_sorts(self, shop, food, make_food):
        make_food(shop, name="Butter Chicken", price=320.0, veg=False)
        make_food(shop, name="Garlic Naan", price=60.0)

        result = catalogue.list_foods(veg=True, sort_by="price", sort_order="asc")
        assert [f["name"] for f in result["foods"]] == ["Garlic Naan", "Paneer Tikka"]

        result = catalogue.list_foods(min_price=100, max_price=300)
        assert [f["name"] for f in result["foods"]] == ["Paneer Tikka"]

        result = catalogue.list_foods(search="chicken")
        assert [f["name"] for f in result["foods"]] == ["Butter Chicken"]

    def test_page_size_is_capped(self, shop, food):
        result = catalogue.list_foods(limit=500)
        assert result["pagination"]["items_per_page"] == 50

    def test_trending_foods(self, shop, food, make_food):
        naan = make_food(shop, name="Garlic Naan", price=60.0)
        food_repo = current_domain.repository_for(Food)
        for item, count in ((food, 5), (naan, 4)):
            item = food_repo.get(item.id)
            item.record_order(count)
            food_repo.add(item)

        assert [f["name"] for f in catalogue.trending_foods()] == ["Paneer Tikka"]

    def test_get_food_with_related(self, shop, food, make_food):
        naan = make_food(shop, name="Garlic Naan", price=60.0)
        make_food(shop, name="Sweet Lassi", price=90.0, menu_category="Beverages", cuisine="Punjabi")

        result = catalogue.get_food(food.id)
        assert result["food"]["name"] == "Paneer Tikka"
        assert [f["id"] for f in result["related_foods"]] == [str(naan.id)]

    def test_distinct_cuisines_and_categories(self, shop, food, make_food):
        make_food(shop, name="Sweet Lassi", price=90.0, menu_category="Beverages", cuisine="Punjabi")
        assert catalogue.food_cuisines() == ["North Indian", "Punjabi"]
        assert catalogue.food_categories() == ["Beverages", "Indian"]

    def test_shops_of_owner(self, shop, owner_id, make_shop):
        make_shop(owner_id, name="Spice Route Two", verify=False)
        result = catalogue.shops_of_owner(owner_id, status="unverified")
        assert [s["name"] for s in result["shops"]] == ["Spice Route Two"]
        assert result["shops"][0]["menu_items"] == 0
