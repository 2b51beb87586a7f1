from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from .errors import DuplicateCodeError
from .models import CouponDefinition, Identifier, Product, normalize_id


class InMemoryCatalog:
    """Resolves coupon scope to stock units: category -> products -> SKUs."""

    def __init__(self, products: Iterable[Product] = ()):
        # product id -> Product
        self._products: Dict[Identifier, Product] = {}
        # category id -> product ids
        self._by_category: Dict[Identifier, Set[Identifier]] = defaultdict(set)
        for product in products:
            self.add_product(product)

    def add_product(self, product: Product) -> None:
        self._products[product.id] = product
        for category_id in product.categoryIds:
            self._by_category[category_id].add(product.id)

    def skus_for_products(self, product_ids: Iterable[Identifier]) -> Set[Identifier]:
        skus: Set[Identifier] = set()
        for product_id in product_ids:
            product = self._products.get(normalize_id(product_id))
            if product is not None:
                skus |= product.skuIds
        return skus

    def skus_for_categories(self, category_ids: Iterable[Identifier]) -> Set[Identifier]:
        product_ids: Set[Identifier] = set()
        for category_id in category_ids:
            product_ids |= self._by_category.get(normalize_id(category_id), set())
        return self.skus_for_products(product_ids)


def normalize_code(code: str) -> str:
    return code.strip().upper()


class InMemoryCouponStore:
    def __init__(self):
        # code -> CouponDefinition
        self._coupons: Dict[str, CouponDefinition] = {}

    def active_code(self, code: str) -> bool:
        return normalize_code(code) in self._coupons

    def add(self, coupon: CouponDefinition) -> CouponDefinition:
        code = normalize_code(coupon.code)
        if code in self._coupons:
            raise DuplicateCodeError(code)
        coupon.code = code
        self._coupons[code] = coupon
        return coupon

    def get(self, code: str) -> Optional[CouponDefinition]:
        return self._coupons.get(normalize_code(code))

    def all(self) -> List[CouponDefinition]:
        return list(self._coupons.values())
