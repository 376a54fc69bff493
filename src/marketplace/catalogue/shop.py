"""Shop aggregate: a restaurant on the marketplace with its location and rating.

A shop is registered by its owner, verified by an admin before it shows up in
discovery, and deactivated rather than deleted while orders are in flight.
The rating aggregate is an incremental mean that only review submission
moves.
"""

import json
import re
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text, ValueObject

from marketplace.catalogue.events import (
    ShopDeactivated,
    ShopProfileUpdated,
    ShopRated,
    ShopRegistered,
    ShopStatusChanged,
    ShopVerified,
)
from marketplace.discovery.geo import haversine_km
from marketplace.domain import marketplace
from marketplace.exceptions import ForbiddenError

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Cuisine(Enum):
    INDIAN = "Indian"
    AMERICAN = "American"
    MUGHLAI = "Mughlai"
    CHINESE = "Chinese"
    ITALIAN = "Italian"
    NORTH_INDIAN = "North Indian"
    SOUTH_INDIAN = "South Indian"
    MEXICAN = "Mexican"
    THAI = "Thai"
    CONTINENTAL = "Continental"
    PUNJABI = "Punjabi"


class MenuCategory(Enum):
    PASTA = "Pasta"
    PIZZA = "Pizza"
    BURGERS = "Burgers"
    SANDWICHES = "Sandwiches"
    SALADS = "Salads"
    CHINESE = "Chinese"
    INDIAN = "Indian"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"
    SOUPS = "Soups"
    WRAPS = "Wraps"
    GRILLED = "Grilled"
    MEXICAN = "Mexican"
    ITALIAN = "Italian"
    SNACKS = "Snacks"
    BIRYANI = "Biryani"


_CUISINES = {c.value for c in Cuisine}
_MENU_CATEGORIES = {c.value for c in MenuCategory}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Shop")
class GeoPoint:
    """Longitude/latitude pair of the shop's storefront."""

    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)


@marketplace.value_object(part_of="Shop")
class ShopAddress:
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(max_length=100, default="India")

    @property
    def full_address(self):
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}, {self.country}"


@marketplace.value_object(part_of="Shop")
class ShopRating:
    """Running mean of review ratings, rounded to one decimal."""

    average = Float(default=0.0, min_value=0.0, max_value=5.0)
    count = Integer(default=0, min_value=0)

    def including(self, rating):
        """The rating aggregate after one more review, without rescanning history."""
        total = (self.average or 0.0) * (self.count or 0) + rating
        count = (self.count or 0) + 1
        return ShopRating(average=_round_tenth(total / count), count=count)


def _round_tenth(value):
    # Half-up to one decimal, matching the rounding clients already display.
    return int(value * 10 + 0.5) / 10


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Shop:
    name = String(required=True, max_length=100)
    food_licence = String(required=True, max_length=50)
    image = String(max_length=500)
    cover_image = String(max_length=500)
    phone = String(required=True, max_length=20)
    email = String(required=True, max_length=254)
    address = ValueObject(ShopAddress, required=True)
    location = ValueObject(GeoPoint, required=True)
    cuisines = Text()  # JSON array of Cuisine values
    menu_categories = Text()  # JSON array of MenuCategory values
    rating = ValueObject(ShopRating)
    open_time = String(max_length=5, default="09:00")
    close_time = String(max_length=5, default="22:00")
    delivery_available = Boolean(default=True)
    online = Boolean(default=True)
    min_order_value = Float(default=0.0, min_value=0.0)
    delivery_charge = Float(default=0.0, min_value=0.0)
    is_active = Boolean(default=True)
    is_verified = Boolean(default=False)
    is_featured = Boolean(default=False)
    owner_id = Identifier(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def name_must_have_two_characters(self):
        if self.name is not None and len(self.name.strip()) < 2:
            raise ValidationError({"name": ["Shop name must be at least 2 characters long"]})

    @invariant.post
    def operating_hours_must_be_hhmm(self):
        for field_name in ("open_time", "close_time"):
            value = getattr(self, field_name)
            if value is not None and not _HHMM.match(value):
                raise ValidationError({field_name: ["Time must be in HH:MM (24h) format"]})

    @invariant.post
    def cuisines_must_be_known(self):
        unknown = set(self.cuisine_list) - _CUISINES
        if unknown:
            raise ValidationError({"cuisines": [f"Unknown cuisine(s): {', '.join(sorted(unknown))}"]})

    @invariant.post
    def menu_categories_must_be_known(self):
        unknown = set(self.menu_category_list) - _MENU_CATEGORIES
        if unknown:
            raise ValidationError({"menu_categories": [f"Unknown menu category(s): {', '.join(sorted(unknown))}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        owner_id,
        name,
        food_licence,
        phone,
        email,
        address,
        longitude,
        latitude,
        cuisines=None,
        menu_categories=None,
        image=None,
        cover_image=None,
        open_time="09:00",
        close_time="22:00",
        delivery_charge=0.0,
        min_order_value=0.0,
        delivery_available=True,
    ):
        now = datetime.now(UTC)
        shop = cls(
            owner_id=owner_id,
            name=name,
            food_licence=food_licence,
            phone=phone,
            email=email.lower() if email else email,
            address=ShopAddress(**address),
            location=GeoPoint(longitude=longitude, latitude=latitude),
            cuisines=json.dumps(cuisines or []),
            menu_categories=json.dumps(menu_categories or []),
            rating=ShopRating(average=0.0, count=0),
            image=image,
            cover_image=cover_image,
            open_time=open_time,
            close_time=close_time,
            delivery_charge=delivery_charge,
            min_order_value=min_order_value,
            delivery_available=delivery_available,
            is_active=True,
            is_verified=False,
            is_featured=False,
            created_at=now,
            updated_at=now,
        )
        shop.raise_(
            ShopRegistered(
                shop_id=str(shop.id),
                owner_id=str(owner_id),
                name=name,
                city=shop.address.city,
                cuisines=shop.cuisines,
                registered_at=now,
            )
        )
        return shop

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def cuisine_list(self):
        return json.loads(self.cuisines) if self.cuisines else []

    @property
    def menu_category_list(self):
        return json.loads(self.menu_categories) if self.menu_categories else []

    @property
    def rating_average(self):
        return self.rating.average if self.rating else 0.0

    def is_open_at(self, moment):
        """Whether ``moment``'s wall-clock time falls within [open, close).

        A close time earlier than the open time means the shop trades past
        midnight.
        """
        current = moment.strftime("%H:%M")
        if self.open_time <= self.close_time:
            return self.open_time <= current < self.close_time
        return current >= self.open_time or current < self.close_time

    @property
    def is_currently_open(self):
        return self.is_open_at(datetime.now())

    def distance_to(self, longitude, latitude):
        """Kilometres from the given point to this shop."""
        return haversine_km(self.location.longitude, self.location.latitude, longitude, latitude)

    def assert_managed_by(self, actor_id, is_admin=False):
        if is_admin or str(self.owner_id) == str(actor_id):
            return
        raise ForbiddenError({"shop": ["Only the shop owner or an admin can manage this shop"]})

    # -------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------
    def update_profile(
        self,
        name=_UNSET,
        phone=_UNSET,
        email=_UNSET,
        image=_UNSET,
        cover_image=_UNSET,
        address=_UNSET,
        longitude=_UNSET,
        latitude=_UNSET,
        cuisines=_UNSET,
        menu_categories=_UNSET,
        open_time=_UNSET,
        close_time=_UNSET,
        delivery_charge=_UNSET,
        min_order_value=_UNSET,
    ):
        """Apply a partial profile update; omitted arguments stay untouched."""
        changed = []
        with atomic_change(self):
            for field_name, value in (
                ("name", name),
                ("phone", phone),
                ("image", image),
                ("cover_image", cover_image),
                ("open_time", open_time),
                ("close_time", close_time),
                ("delivery_charge", delivery_charge),
                ("min_order_value", min_order_value),
            ):
                if value is not _UNSET:
                    setattr(self, field_name, value)
                    changed.append(field_name)

            if email is not _UNSET:
                self.email = email.lower() if email else email
                changed.append("email")
            if address is not _UNSET:
                self.address = ShopAddress(**address)
                changed.append("address")
            if longitude is not _UNSET or latitude is not _UNSET:
                self.location = GeoPoint(
                    longitude=self.location.longitude if longitude is _UNSET else longitude,
                    latitude=self.location.latitude if latitude is _UNSET else latitude,
                )
                changed.append("location")
            if cuisines is not _UNSET:
                self.cuisines = json.dumps(cuisines or [])
                changed.append("cuisines")
            if menu_categories is not _UNSET:
                self.menu_categories = json.dumps(menu_categories or [])
                changed.append("menu_categories")

            self.updated_at = datetime.now(UTC)

        if changed:
            self.raise_(ShopProfileUpdated(shop_id=str(self.id), changed_fields=json.dumps(changed)))

    def change_status(self, online=None, delivery_available=None, is_active=None):
        with atomic_change(self):
            if online is not None:
                self.online = online
            if delivery_available is not None:
                self.delivery_available = delivery_available
            if is_active is not None:
                self.is_active = is_active
            self.updated_at = datetime.now(UTC)

        self.raise_(
            ShopStatusChanged(
                shop_id=str(self.id),
                online=self.online,
                delivery_available=self.delivery_available,
                is_active=self.is_active,
            )
        )

    def verify(self, featured=False):
        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_verified = True
            self.is_featured = bool(featured)
            self.updated_at = now

        self.raise_(ShopVerified(shop_id=str(self.id), is_featured=self.is_featured, verified_at=now))

    def deactivate(self, deactivated_by):
        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_active = False
            self.updated_at = now

        self.raise_(ShopDeactivated(shop_id=str(self.id), deactivated_by=str(deactivated_by), deactivated_at=now))

    # -------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------
    def apply_review(self, rating):
        """Fold one review rating into the running average."""
        current = self.rating or ShopRating(average=0.0, count=0)
        self.rating = current.including(rating)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ShopRated(
                shop_id=str(self.id),
                rating=rating,
                new_average=self.rating.average,
                new_count=self.rating.count,
            )
        )
