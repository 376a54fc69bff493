"""Biteline database management CLI.

Provides commands to create and drop the marketplace schema, and to seed a
small demo catalogue.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py seed       # Register a verified demo shop with a menu
"""

import argparse
import json
import sys
import uuid

_DEMO_MENU = [
    {"name": "Paneer Tikka", "price": 220.0, "cooking_time": 20, "menu_category": "Indian", "veg": True},
    {"name": "Butter Chicken", "price": 320.0, "cooking_time": 25, "menu_category": "Indian"},
    {"name": "Garlic Naan", "price": 60.0, "cooking_time": 10, "menu_category": "Indian", "veg": True},
    {"name": "Sweet Lassi", "price": 90.0, "cooking_time": 5, "menu_category": "Beverages", "veg": True, "beverage": True},
]


def setup_databases():
    """Create database schemas for the marketplace domain."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Creating marketplace database schema...")
    setup_db(marketplace)
    print("Done.")


def drop_databases():
    """Drop database schemas for the marketplace domain."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Dropping marketplace database schema...")
    drop_db(marketplace)
    print("Done.")


def seed(owner_id=None):
    """Register and verify a demo shop, fill its menu and print API tokens."""
    from marketplace.api.auth import issue_token
    from marketplace.catalogue.management import VerifyShop
    from marketplace.catalogue.registration import AddFood, RegisterShop
    from marketplace.domain import marketplace

    marketplace.init()
    owner_id = owner_id or str(uuid.uuid4())
    admin_id = str(uuid.uuid4())

    with marketplace.domain_context():
        shop_id = marketplace.process(
            RegisterShop(
                owner_id=owner_id,
                name="Spice Route",
                food_licence="FSSAI-10012345",
                phone="9876543210",
                email="hello@spiceroute.example",
                address=json.dumps(
                    {"street": "12 MG Road", "city": "Bengaluru", "state": "Karnataka", "zip_code": "560001"}
                ),
                longitude=77.5946,
                latitude=12.9716,
                cuisines=json.dumps(["North Indian", "Mughlai"]),
                menu_categories=json.dumps(["Indian", "Biryani", "Beverages"]),
                delivery_charge=30.0,
                min_order_value=150.0,
            ),
            asynchronous=False,
        )
        marketplace.process(
            VerifyShop(shop_id=shop_id, requested_by=admin_id, is_admin=True, featured=True),
            asynchronous=False,
        )
        for item in _DEMO_MENU:
            marketplace.process(
                AddFood(shop_id=shop_id, requested_by=owner_id, cuisine="North Indian", **item),
                asynchronous=False,
            )

    print(f"Seeded shop {shop_id} with {len(_DEMO_MENU)} menu items.")
    print(f"Owner token: {issue_token(owner_id, role='shop_owner')}")
    print(f"Admin token: {issue_token(admin_id, role='admin', is_admin=True)}")


def main():
    parser = argparse.ArgumentParser(description="Biteline database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed", help="Seed a demo shop and menu")
    seed_parser.add_argument("--owner", help="Owner id for the demo shop (default: random)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "seed":
        seed(args.owner)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
