"""Pydantic request/response schemas for the marketplace API.

These are external contracts, kept separate from the Protean commands they
are translated into.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class SuccessResponse(BaseModel):
    success: bool = True
    message: str = "OK"
    data: Any = None


class ShopAddressSchema(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str = "India"


class DeliveryAddressSchema(BaseModel):
    street: str
    city: str
    state: str
    pincode: str
    landmark: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    food_id: str
    shop_id: str
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "food_id": "food-001",
                    "shop_id": "shop-001",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class CheckoutRequest(BaseModel):
    payment_method: Literal["cod", "card", "upi", "wallet"]
    delivery_address: DeliveryAddressSchema
    phone_number: str = Field(min_length=1, max_length=20)
    order_notes: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class AdvanceOrderStatusRequest(BaseModel):
    status: Literal["confirmed", "preparing", "out_for_delivery", "delivered"]


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class RateOrderRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: str | None = None


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------
class RegisterShopRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    food_licence: str
    phone: str
    email: str
    address: ShopAddressSchema
    longitude: float = Field(ge=-180, le=180)
    latitude: float = Field(ge=-90, le=90)
    cuisines: list[str] = []
    menu_categories: list[str] = []
    image: str | None = None
    cover_image: str | None = None
    open_time: str = "09:00"
    close_time: str = "22:00"
    delivery_charge: float = Field(ge=0, default=0.0)
    min_order_value: float = Field(ge=0, default=0.0)
    delivery_available: bool = True


class UpdateShopRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    image: str | None = None
    cover_image: str | None = None
    address: ShopAddressSchema | None = None
    longitude: float | None = Field(default=None, ge=-180, le=180)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    cuisines: list[str] | None = None
    menu_categories: list[str] | None = None
    open_time: str | None = None
    close_time: str | None = None
    delivery_charge: float | None = Field(default=None, ge=0)
    min_order_value: float | None = Field(default=None, ge=0)


class UpdateShopStatusRequest(BaseModel):
    online: bool | None = None
    delivery_available: bool | None = None
    is_active: bool | None = None


class VerifyShopRequest(BaseModel):
    featured: bool = False


class SearchFilters(BaseModel):
    rating: float | None = None
    cuisine: list[str] | None = None
    delivery_available: bool = False


class SearchShopsRequest(BaseModel):
    query: str | None = None
    longitude: float | None = None
    latitude: float | None = None
    max_distance: float = Field(gt=0, default=10)
    limit: int = Field(ge=1, le=50, default=20)
    filters: SearchFilters = SearchFilters()


# ---------------------------------------------------------------------------
# Foods
# ---------------------------------------------------------------------------
class AddFoodRequest(BaseModel):
    shop_id: str
    name: str = Field(min_length=2, max_length=100)
    price: float = Field(ge=1)
    cooking_time: int = Field(ge=1)
    menu_category: str | None = None
    cuisine: str | None = None
    veg: bool = False
    beverage: bool = False
    image: str | None = None


class UpdateFoodRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    price: float | None = Field(default=None, ge=1)
    cooking_time: int | None = Field(default=None, ge=1)
    menu_category: str | None = None
    cuisine: str | None = None
    veg: bool | None = None
    beverage: bool | None = None
    image: str | None = None


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str | None = None
