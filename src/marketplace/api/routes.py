"""FastAPI routes for the marketplace: cart, orders, shops, foods and reviews."""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from marketplace.api.auth import Principal, current_principal, require_admin
from marketplace.api.schemas import (
    AddFoodRequest,
    AddToCartRequest,
    AdvanceOrderStatusRequest,
    CancelOrderRequest,
    CheckoutRequest,
    RateOrderRequest,
    RegisterShopRequest,
    SearchShopsRequest,
    SubmitReviewRequest,
    SuccessResponse,
    UpdateCartItemRequest,
    UpdateFoodRequest,
    UpdateShopRequest,
    UpdateShopStatusRequest,
    VerifyShopRequest,
)
from marketplace.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from marketplace.cart.summary import cart_count, cart_summary, get_cart
from marketplace.catalogue import queries as catalogue_queries
from marketplace.catalogue.management import (
    CloseShop,
    RemoveFood,
    ToggleFoodStock,
    UpdateFood,
    UpdateShop,
    UpdateShopStatus,
    VerifyShop,
)
from marketplace.catalogue.registration import AddFood, RegisterShop
from marketplace.discovery import search
from marketplace.order import queries as order_queries
from marketplace.order.checkout import Checkout
from marketplace.order.lifecycle import AdvanceOrderStatus, CancelOrder, RateOrder
from marketplace.review import queries as review_queries
from marketplace.review.submission import SubmitReview


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=SuccessResponse)
async def read_cart(principal: Principal = Depends(current_principal)) -> SuccessResponse:
    return SuccessResponse(message="Cart fetched", data=get_cart(principal.id))


@cart_router.get("/count", response_model=SuccessResponse)
async def read_cart_count(principal: Principal = Depends(current_principal)) -> SuccessResponse:
    return SuccessResponse(message="Cart count fetched", data={"count": cart_count(principal.id)})


@cart_router.get("/summary", response_model=SuccessResponse)
async def read_cart_summary(principal: Principal = Depends(current_principal)) -> SuccessResponse:
    return SuccessResponse(message="Cart summary fetched", data=cart_summary(principal.id))


@cart_router.post("/add", response_model=SuccessResponse)
async def add_to_cart(body: AddToCartRequest, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    command = AddToCart(
        user_id=principal.id,
        food_id=body.food_id,
        shop_id=body.shop_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Item added to cart successfully", data=get_cart(principal.id))


@cart_router.put("/update/{item_index}", response_model=SuccessResponse)
async def update_cart_item(
    item_index: int,
    body: UpdateCartItemRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = UpdateCartItem(user_id=principal.id, item_index=item_index, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Cart updated successfully", data=get_cart(principal.id))


@cart_router.delete("/remove/{item_index}", response_model=SuccessResponse)
async def remove_cart_item(item_index: int, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    command = RemoveFromCart(user_id=principal.id, item_index=item_index)
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Item removed from cart successfully", data=get_cart(principal.id))


@cart_router.delete("/clear", response_model=SuccessResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> SuccessResponse:
    cart_id = current_domain.process(ClearCart(user_id=principal.id), asynchronous=False)
    message = "Cart cleared successfully" if cart_id else "Cart is already empty"
    return SuccessResponse(message=message, data=get_cart(principal.id))


@cart_router.post("/checkout", status_code=201, response_model=SuccessResponse)
async def checkout(body: CheckoutRequest, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    command = Checkout(
        user_id=principal.id,
        payment_method=body.payment_method,
        delivery_address=json.dumps(body.delivery_address.model_dump()),
        phone_number=body.phone_number,
        order_notes=body.order_notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = order_queries.find_order(order_id, principal.id, principal.is_admin)
    return SuccessResponse(
        message="Order placed successfully!",
        data={
            "order": order,
            "payment_status": order["payment_status"],
            "estimated_delivery": order["estimated_delivery_at"],
        },
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=SuccessResponse)
async def list_my_orders(principal: Principal = Depends(current_principal)) -> SuccessResponse:
    return SuccessResponse(message="Orders fetched", data=order_queries.orders_of_user(principal.id))


@order_router.get("/{identifier}", response_model=SuccessResponse)
async def read_order(identifier: str, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    order = order_queries.find_order(identifier, principal.id, principal.is_admin)
    return SuccessResponse(message="Order fetched", data=order)


@order_router.patch("/{order_id}/status", response_model=SuccessResponse)
async def advance_order_status(
    order_id: str,
    body: AdvanceOrderStatusRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = AdvanceOrderStatus(
        order_id=order_id,
        status=body.status,
        requested_by=principal.id,
        is_admin=principal.is_admin,
    )
    current_domain.process(command, asynchronous=False)
    order = order_queries.find_order(order_id, principal.id, principal.is_admin)
    return SuccessResponse(message=f"Order marked {body.status}", data=order)


@order_router.post("/{order_id}/cancel", response_model=SuccessResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        requested_by=principal.id,
        is_admin=principal.is_admin,
    )
    current_domain.process(command, asynchronous=False)
    order = order_queries.find_order(order_id, principal.id, principal.is_admin)
    return SuccessResponse(message="Order cancelled", data=order)


@order_router.post("/{order_id}/rate", response_model=SuccessResponse)
async def rate_order(
    order_id: str,
    body: RateOrderRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = RateOrder(order_id=order_id, user_id=principal.id, rating=body.rating, review=body.review)
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Thanks for rating your order")


# ---------------------------------------------------------------------------
# Shop Router
# ---------------------------------------------------------------------------
shop_router = APIRouter(prefix="/shops", tags=["shops"])


@shop_router.get("", response_model=SuccessResponse)
async def list_shops(
    cuisine: str | None = None,
    menu_category: str | None = None,
    rating: float | None = None,
    featured: bool | None = None,
    delivery_available: bool | None = None,
    search_text: str | None = Query(default=None, alias="search"),
    longitude: float | None = None,
    latitude: float | None = None,
    max_distance: float | None = None,
    is_open: bool = False,
    fast_delivery: bool = False,
    sort_by: str | None = None,
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
) -> SuccessResponse:
    result = search.list_shops(
        cuisines=_split(cuisine),
        menu_categories=_split(menu_category),
        min_rating=rating,
        featured=featured,
        delivery_available=delivery_available,
        search=search_text,
        longitude=longitude,
        latitude=latitude,
        max_distance_km=max_distance,
        open_now=is_open,
        fast_delivery=fast_delivery,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return SuccessResponse(message="Shops fetched", data=result)


@shop_router.post("/search", response_model=SuccessResponse)
async def search_shops(body: SearchShopsRequest) -> SuccessResponse:
    result = search.search_shops(
        query=body.query,
        longitude=body.longitude,
        latitude=body.latitude,
        max_distance_km=body.max_distance,
        limit=body.limit,
        min_rating=body.filters.rating,
        cuisines=body.filters.cuisine,
        delivery_available=body.filters.delivery_available,
    )
    return SuccessResponse(message="Search completed", data=result)


@shop_router.get("/nearby", response_model=SuccessResponse)
async def nearby_shops(
    longitude: float | None = None,
    latitude: float | None = None,
    max_distance: float | None = None,
    limit: int = 20,
) -> SuccessResponse:
    shops = search.nearby_shops(longitude, latitude, max_distance_km=max_distance, limit=limit)
    return SuccessResponse(message="Nearby shops fetched", data={"shops": shops, "count": len(shops)})


@shop_router.get("/trending", response_model=SuccessResponse)
async def trending_shops(longitude: float | None = None, latitude: float | None = None, limit: int = 10):
    return SuccessResponse(message="Trending shops fetched", data=search.trending_shops(longitude, latitude, limit))


@shop_router.get("/recommendations", response_model=SuccessResponse)
async def recommended_shops(
    longitude: float | None = None,
    latitude: float | None = None,
    limit: int = 10,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    result = search.recommend_shops(principal.id, longitude, latitude, limit=limit)
    return SuccessResponse(message="Recommendations fetched", data=result)


@shop_router.get("/cuisine/{cuisine}", response_model=SuccessResponse)
async def shops_by_cuisine(
    cuisine: str,
    longitude: float | None = None,
    latitude: float | None = None,
    max_distance: float | None = None,
    sort_by: str = "rating",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 20,
) -> SuccessResponse:
    result = search.shops_by_cuisine(
        cuisine,
        longitude,
        latitude,
        max_distance_km=max_distance,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return SuccessResponse(message="Shops fetched", data=result)


@shop_router.get("/info/metadata", response_model=SuccessResponse)
async def shop_metadata() -> SuccessResponse:
    return SuccessResponse(message="Metadata fetched", data=search.shop_metadata())


@shop_router.get("/owner/my-shops", response_model=SuccessResponse)
async def my_shops(
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    result = catalogue_queries.shops_of_owner(principal.id, status=status, page=page, limit=limit)
    return SuccessResponse(message="Shops fetched", data=result)


@shop_router.post("", status_code=201, response_model=SuccessResponse)
async def register_shop(body: RegisterShopRequest, principal: Principal = Depends(current_principal)):
    command = RegisterShop(
        owner_id=principal.id,
        name=body.name,
        food_licence=body.food_licence,
        phone=body.phone,
        email=body.email,
        address=json.dumps(body.address.model_dump()),
        longitude=body.longitude,
        latitude=body.latitude,
        cuisines=json.dumps(body.cuisines),
        menu_categories=json.dumps(body.menu_categories),
        image=body.image,
        cover_image=body.cover_image,
        open_time=body.open_time,
        close_time=body.close_time,
        delivery_charge=body.delivery_charge,
        min_order_value=body.min_order_value,
        delivery_available=body.delivery_available,
    )
    shop_id = current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Shop registered; awaiting verification", data={"shop_id": shop_id})


@shop_router.get("/{shop_id}", response_model=SuccessResponse)
async def read_shop(shop_id: str, longitude: float | None = None, latitude: float | None = None):
    return SuccessResponse(message="Shop fetched", data=catalogue_queries.get_shop(shop_id, longitude, latitude))


@shop_router.put("/{shop_id}", response_model=SuccessResponse)
async def update_shop(
    shop_id: str,
    body: UpdateShopRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = UpdateShop(
        shop_id=shop_id,
        requested_by=principal.id,
        is_admin=principal.is_admin,
        changes=json.dumps(body.model_dump(exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Shop updated successfully")


@shop_router.patch("/{shop_id}/status", response_model=SuccessResponse)
async def update_shop_status(
    shop_id: str,
    body: UpdateShopStatusRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = UpdateShopStatus(
        shop_id=shop_id,
        requested_by=principal.id,
        is_admin=principal.is_admin,
        online=body.online,
        delivery_available=body.delivery_available,
        is_active=body.is_active,
    )
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Shop status updated")


@shop_router.patch("/{shop_id}/verify", response_model=SuccessResponse)
async def verify_shop(
    shop_id: str,
    body: VerifyShopRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    require_admin(principal)
    command = VerifyShop(shop_id=shop_id, requested_by=principal.id, is_admin=True, featured=body.featured)
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Shop verified successfully")


@shop_router.delete("/{shop_id}", response_model=SuccessResponse)
async def close_shop(
    shop_id: str,
    permanent: bool = False,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = CloseShop(
        shop_id=shop_id,
        requested_by=principal.id,
        is_admin=principal.is_admin,
        permanent=permanent,
    )
    current_domain.process(command, asynchronous=False)
    message = "Shop deleted permanently" if permanent else "Shop deactivated successfully"
    return SuccessResponse(message=message)


@shop_router.get("/{shop_id}/orders", response_model=SuccessResponse)
async def shop_orders(shop_id: str, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    orders = order_queries.orders_of_shop(shop_id, principal.id, principal.is_admin)
    return SuccessResponse(message="Orders fetched", data=orders)


@shop_router.get("/{shop_id}/reviews", response_model=SuccessResponse)
async def shop_reviews(shop_id: str, limit: int | None = None) -> SuccessResponse:
    return SuccessResponse(message="Reviews fetched", data=review_queries.reviews_of_shop(shop_id, limit=limit))


@shop_router.post("/{shop_id}/reviews", status_code=201, response_model=SuccessResponse)
async def submit_review(
    shop_id: str,
    body: SubmitReviewRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = SubmitReview(shop_id=shop_id, user_id=principal.id, rating=body.rating, comment=body.comment)
    review_id = current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Review submitted", data={"review_id": review_id})


# ---------------------------------------------------------------------------
# Food Router
# ---------------------------------------------------------------------------
food_router = APIRouter(prefix="/foods", tags=["foods"])


@food_router.get("", response_model=SuccessResponse)
async def list_foods(
    shop_id: str | None = None,
    cuisine: str | None = None,
    menu_category: str | None = None,
    veg: bool | None = None,
    beverage: bool | None = None,
    in_stock: bool | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    min_order_count: int | None = None,
    search_text: str | None = Query(default=None, alias="search"),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 12,
) -> SuccessResponse:
    result = catalogue_queries.list_foods(
        shop_id=shop_id,
        cuisine=cuisine,
        menu_category=menu_category,
        veg=veg,
        beverage=beverage,
        in_stock=in_stock,
        min_price=min_price,
        max_price=max_price,
        min_order_count=min_order_count,
        search=search_text,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return SuccessResponse(message="Foods fetched", data=result)


@food_router.get("/trending", response_model=SuccessResponse)
async def trending_foods(shop_id: str | None = None, limit: int = 10) -> SuccessResponse:
    foods = catalogue_queries.trending_foods(shop_id=shop_id, limit=limit)
    return SuccessResponse(message="Trending foods fetched successfully", data=foods)


@food_router.get("/meta/cuisines", response_model=SuccessResponse)
async def food_cuisines() -> SuccessResponse:
    return SuccessResponse(message="Cuisines fetched", data=catalogue_queries.food_cuisines())


@food_router.get("/meta/categories", response_model=SuccessResponse)
async def food_categories() -> SuccessResponse:
    return SuccessResponse(message="Categories fetched", data=catalogue_queries.food_categories())


@food_router.get("/shop/{shop_id}", response_model=SuccessResponse)
async def foods_of_shop(
    shop_id: str,
    in_stock: bool | None = None,
    veg: bool | None = None,
    beverage: bool | None = None,
    menu_category: str | None = None,
    limit: int = 20,
) -> SuccessResponse:
    foods = catalogue_queries.foods_of_shop(
        shop_id,
        in_stock=in_stock,
        veg=veg,
        beverage=beverage,
        menu_category=menu_category,
        limit=limit,
    )
    return SuccessResponse(message="Shop foods fetched successfully", data=foods)


@food_router.get("/{food_id}", response_model=SuccessResponse)
async def read_food(food_id: str) -> SuccessResponse:
    return SuccessResponse(message="Food item fetched successfully", data=catalogue_queries.get_food(food_id))


@food_router.post("", status_code=201, response_model=SuccessResponse)
async def add_food(body: AddFoodRequest, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    command = AddFood(
        shop_id=body.shop_id,
        requested_by=principal.id,
        is_admin=principal.is_admin,
        name=body.name,
        price=body.price,
        cooking_time=body.cooking_time,
        menu_category=body.menu_category,
        cuisine=body.cuisine,
        veg=body.veg,
        beverage=body.beverage,
        image=body.image,
    )
    food_id = current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Food item added successfully", data={"food_id": food_id})


@food_router.put("/{food_id}", response_model=SuccessResponse)
async def update_food(
    food_id: str,
    body: UpdateFoodRequest,
    principal: Principal = Depends(current_principal),
) -> SuccessResponse:
    command = UpdateFood(
        food_id=food_id,
        requested_by=principal.id,
        is_admin=principal.is_admin,
        changes=json.dumps(body.model_dump(exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Food item updated successfully", data=catalogue_queries.get_food(food_id)["food"])


@food_router.patch("/{food_id}/toggle-stock", response_model=SuccessResponse)
async def toggle_food_stock(food_id: str, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    command = ToggleFoodStock(food_id=food_id, requested_by=principal.id, is_admin=principal.is_admin)
    in_stock = current_domain.process(command, asynchronous=False)
    message = "Food item is now in stock" if in_stock else "Food item is now out of stock"
    return SuccessResponse(message=message, data={"in_stock": in_stock})


@food_router.delete("/{food_id}", response_model=SuccessResponse)
async def remove_food(food_id: str, principal: Principal = Depends(current_principal)) -> SuccessResponse:
    command = RemoveFood(food_id=food_id, requested_by=principal.id, is_admin=principal.is_admin)
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Food item deleted successfully")
