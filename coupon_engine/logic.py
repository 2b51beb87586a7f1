import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Optional, Set

from .models import Cart, CartItem, CouponDefinition, DiscountQuote, DiscountType
from .validity import ValidityEnforcer
from .validity import enforcer as default_enforcer

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def compute_cart_value(cart: Cart) -> Decimal:
    return sum((item.unitPrice * item.count for item in cart.items), ZERO)


def compute_items_count(cart: Cart) -> int:
    return sum(item.count for item in cart.items)


def _to_amount(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


# ---------------------------
# Eligibility
# ---------------------------

def is_date_eligible(coupon: CouponDefinition, today: Optional[date] = None) -> bool:
    today = _as_date(today) if today is not None else date.today()
    if coupon.beginDate is not None and today < coupon.beginDate:
        return False
    if coupon.expiresOn is not None and today > coupon.expiresOn:
        return False
    return True


def is_order_price_eligible(coupon: CouponDefinition, total_amount: Optional[Decimal]) -> bool:
    if coupon.minOrderPrice is None and coupon.maxOrderPrice is None:
        return True
    total_amount = _to_amount(total_amount)
    if total_amount is None:
        return False
    if coupon.minOrderPrice is not None and total_amount < coupon.minOrderPrice:
        return False
    if coupon.maxOrderPrice is not None and total_amount > coupon.maxOrderPrice:
        return False
    return True


def is_quantity_eligible(coupon: CouponDefinition, item: CartItem) -> bool:
    # minQty alone is left to is_span_eligible
    if coupon.maxQty is None:
        return True
    min_qty = coupon.minQty or 0
    return min_qty <= item.count <= coupon.maxQty


def _scope_skus(coupon: CouponDefinition, catalog) -> Set:
    if catalog is None:
        return set()
    skus = set()
    if coupon.productIds:
        skus |= catalog.skus_for_products(coupon.productIds)
    if coupon.categoryIds:
        skus |= catalog.skus_for_categories(coupon.categoryIds)
    return skus


def is_scope_eligible(coupon: CouponDefinition, item: CartItem, catalog=None) -> bool:
    if not coupon.productIds and not coupon.categoryIds:
        return True
    return item.itemId in _scope_skus(coupon, catalog)


def is_span_eligible(coupon: CouponDefinition, cart: Cart, item: CartItem) -> bool:
    min_qty = coupon.minQty or 0
    if coupon.span:
        return compute_items_count(cart) >= min_qty
    return item.count >= min_qty


def is_item_eligible(coupon: CouponDefinition, cart: Cart, item: CartItem, catalog=None) -> bool:
    if not item.is_discountable:
        return False
    if not is_quantity_eligible(coupon, item):
        logger.debug("Coupon %s: item %s outside quantity window", coupon.code, item.itemId)
        return False
    if not is_scope_eligible(coupon, item, catalog):
        logger.debug("Coupon %s: item %s out of scope", coupon.code, item.itemId)
        return False
    if not is_span_eligible(coupon, cart, item):
        logger.debug("Coupon %s: item %s below minimum quantity", coupon.code, item.itemId)
        return False
    return True


def is_cart_uniformly_eligible(coupon: CouponDefinition, cart: Cart, catalog=None) -> bool:
    items = [item for item in cart.items if item.is_discountable]
    if not items:
        return False
    return all(is_item_eligible(coupon, cart, item, catalog) for item in items)


# ---------------------------
# Discount calculation
# ---------------------------

def _product_discount(coupon: CouponDefinition, cart: Cart, catalog) -> Decimal:
    discount = ZERO
    for item in cart.items:
        if not is_item_eligible(coupon, cart, item, catalog):
            continue
        if coupon.discountType == DiscountType.DollarOffProduct:
            per_unit = coupon.discountValue
        else:
            per_unit = item.unitPrice * coupon.discountValue / HUNDRED
        discount += item.count * per_unit
    return discount


def _order_discount(
    coupon: CouponDefinition, cart: Cart, total_amount: Optional[Decimal], catalog
) -> Decimal:
    if not is_cart_uniformly_eligible(coupon, cart, catalog):
        return ZERO
    if coupon.discountType == DiscountType.DollarOffOrder:
        return coupon.discountValue
    if total_amount is None or total_amount <= 0:
        return ZERO
    return total_amount * coupon.discountValue / HUNDRED


def quote_discount(
    coupon: CouponDefinition,
    cart: Cart,
    total_amount: Optional[Decimal],
    catalog=None,
    today: Optional[date] = None,
) -> Decimal:
    """Compute the discount a coupon would grant, without consuming it."""
    if not coupon.isValid:
        return ZERO
    total_amount = _to_amount(total_amount)
    if not is_date_eligible(coupon, today):
        logger.debug("Coupon %s outside its date window", coupon.code)
        return ZERO
    if not is_order_price_eligible(coupon, total_amount):
        logger.debug("Coupon %s: order total %s outside price window", coupon.code, total_amount)
        return ZERO
    if (coupon.productIds or coupon.categoryIds) and not _scope_skus(coupon, catalog):
        logger.warning("Coupon %s scope resolves to no stock units", coupon.code)

    dtype = coupon.discountType
    if dtype in (DiscountType.PercentOffProduct, DiscountType.DollarOffProduct):
        discount = _product_discount(coupon, cart, catalog)
    elif dtype in (DiscountType.PercentOffOrder, DiscountType.DollarOffOrder):
        discount = _order_discount(coupon, cart, total_amount, catalog)
    else:
        logger.warning("Coupon %s has unrecognized discount type %r", coupon.code, dtype)
        discount = ZERO

    discount = max(ZERO, discount)
    return discount.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_discount(
    coupon: CouponDefinition,
    cart: Cart,
    total_amount: Optional[Decimal],
    catalog=None,
    today: Optional[date] = None,
    enforcer: Optional[ValidityEnforcer] = None,
) -> Decimal:
    """Compute the discount for a cart and consume one-time coupons.

    A one-time coupon is deactivated only when the discount is strictly
    positive. When another checkout consumed it first, the result is zero.
    """
    discount = quote_discount(coupon, cart, total_amount, catalog, today)
    if discount > 0 and coupon.oneTime:
        enforcer = enforcer or default_enforcer
        if not enforcer.deactivate(coupon):
            logger.warning("One-time coupon %s already consumed, no discount applied", coupon.code)
            return ZERO
    logger.debug("Coupon %s discount %s", coupon.code, discount)
    return discount


def pick_best_coupon(quotes: List[DiscountQuote]) -> Optional[DiscountQuote]:
    """
    quotes: side-effect-free discount quotes
    Rule:
     1. Highest discount
     2. If tie, earliest expiresOn (no expiry last)
     3. If still tie, lexicographically smaller code
    """
    candidates = [quote for quote in quotes if quote.discountAmount > 0]
    if not candidates:
        return None

    candidates.sort(
        key=lambda q: (
            -q.discountAmount,                # highest discount first
            q.coupon.expiresOn is None,       # coupons that expire before open-ended ones
            q.coupon.expiresOn or date.max,   # earliest expiresOn
            q.coupon.code,                    # lexicographically smaller code
        )
    )
    return candidates[0]


def best_coupon(
    coupons: Iterable[CouponDefinition],
    cart: Cart,
    total_amount: Optional[Decimal],
    catalog=None,
    today: Optional[date] = None,
) -> Optional[DiscountQuote]:
    quotes = [
        DiscountQuote(
            coupon=coupon,
            discountAmount=quote_discount(coupon, cart, total_amount, catalog, today),
        )
        for coupon in coupons
    ]
    return pick_best_coupon(quotes)
