import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from marketplace.catalogue.food import Food
from marketplace.catalogue.management import VerifyShop
from marketplace.catalogue.registration import AddFood, RegisterShop
from marketplace.catalogue.shop import Shop

SHOP_LONGITUDE = 77.5946
SHOP_LATITUDE = 12.9716

DELIVERY_ADDRESS = {
    "street": "221 Residency Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560025",
    "landmark": "Opp. park",
}


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------
@pytest.fixture()
def owner_id():
    return "owner-001"


@pytest.fixture()
def admin_id():
    return "admin-001"


@pytest.fixture()
def user_id():
    return "user-001"


# ---------------------------------------------------------------------------
# Catalogue builders
# ---------------------------------------------------------------------------
def register_shop(owner_id, name="Spice Route", verify=True, featured=False, **overrides):
    """Register a shop through its command and, by default, verify it."""
    fields = {
        "owner_id": owner_id,
        "name": name,
        "food_licence": "FSSAI-10012345",
        "phone": "9876543210",
        "email": "Hello@SpiceRoute.example",
        "address": json.dumps(
            {"street": "12 MG Road", "city": "Bengaluru", "state": "Karnataka", "zip_code": "560001"}
        ),
        "longitude": SHOP_LONGITUDE,
        "latitude": SHOP_LATITUDE,
        "cuisines": json.dumps(["North Indian", "Mughlai"]),
        "menu_categories": json.dumps(["Indian", "Biryani"]),
        "delivery_charge": 30.0,
        "min_order_value": 100.0,
        "open_time": "00:00",
        "close_time": "23:59",
    }
    fields.update(overrides)
    shop_id = current_domain.process(RegisterShop(**fields), asynchronous=False)
    if verify:
        current_domain.process(
            VerifyShop(shop_id=shop_id, requested_by="admin-001", is_admin=True, featured=featured),
            asynchronous=False,
        )
    return current_domain.repository_for(Shop).get(shop_id)


def add_food(shop, name="Paneer Tikka", price=100.0, **overrides):
    fields = {
        "shop_id": str(shop.id),
        "requested_by": str(shop.owner_id),
        "name": name,
        "price": price,
        "cooking_time": 20,
        "menu_category": "Indian",
        "cuisine": "North Indian",
        "veg": True,
    }
    fields.update(overrides)
    food_id = current_domain.process(AddFood(**fields), asynchronous=False)
    return current_domain.repository_for(Food).get(food_id)


@pytest.fixture()
def shop(owner_id):
    return register_shop(owner_id)


@pytest.fixture()
def food(shop):
    return add_food(shop)


@pytest.fixture()
def make_shop():
    return register_shop


@pytest.fixture()
def make_food():
    return add_food


@pytest.fixture()
def delivery_address():
    return dict(DELIVERY_ADDRESS)
