"""Shared test fixtures for all test modules."""

from datetime import date
from decimal import Decimal

import pytest

from coupon_engine.models import Cart, CartItem, CouponDefinition, DiscountType, Product
from coupon_engine.storage import InMemoryCatalog, InMemoryCouponStore

TODAY = date(2024, 6, 15)


def make_coupon(**overrides) -> CouponDefinition:
    fields = {
        "code": "TEST10",
        "discountType": DiscountType.PercentOffProduct,
        "discountValue": Decimal("10"),
    }
    fields.update(overrides)
    return CouponDefinition(**fields)


def make_cart(*items) -> Cart:
    """Build a cart from (itemId, unitPrice, count) tuples or CartItem objects."""
    cart_items = []
    for item in items:
        if isinstance(item, CartItem):
            cart_items.append(item)
        else:
            item_id, price, count = item
            cart_items.append(CartItem(itemId=item_id, unitPrice=Decimal(str(price)), count=count))
    return Cart(items=cart_items)


@pytest.fixture
def catalog():
    """Catalog with two categories.

    shirts (category 1): product 10 -> SKUs 101, 102; product 30 -> SKU 301
    mugs (category 2): product 20 -> SKU 201
    """
    return InMemoryCatalog(
        [
            Product(id=10, categoryIds={1}, skuIds={101, 102}),
            Product(id=20, categoryIds={2}, skuIds={201}),
            Product(id=30, categoryIds={1}, skuIds={301}),
        ]
    )


@pytest.fixture
def store():
    """Create an empty coupon store."""
    return InMemoryCouponStore()
