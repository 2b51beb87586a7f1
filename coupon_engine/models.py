from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional, Set, Union

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator


def normalize_id(value):
    """Product, category, SKU and user ids compare as strings, whatever type the caller used."""
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return str(value).strip()
    return value


Identifier = Annotated[str, BeforeValidator(normalize_id)]


class DiscountType(str, Enum):
    PercentOffProduct = "Percent of a product"
    DollarOffProduct = "Dollar off a product"
    PercentOffOrder = "Percent of an order"
    DollarOffOrder = "Dollar off an order"


class ItemType(str, Enum):
    SKU = "sku"  # the only discountable kind
    SERVICE = "service"
    SHIPPING = "shipping"
    GIFT_CARD = "gift_card"


class CouponDefinition(BaseModel):
    code: str = ""
    # unrecognized strings are kept and never discount
    discountType: Union[DiscountType, str] = Field(union_mode="left_to_right")
    discountValue: Decimal = Field(default=Decimal("0"))

    beginDate: Optional[date] = None
    expiresOn: Optional[date] = None

    minOrderPrice: Optional[Decimal] = None
    maxOrderPrice: Optional[Decimal] = None
    minQty: Optional[int] = None
    maxQty: Optional[int] = None

    span: bool = False
    oneTime: bool = False
    isValid: bool = True

    productIds: Set[Identifier] = Field(default_factory=set)
    categoryIds: Set[Identifier] = Field(default_factory=set)

    createdAt: Optional[datetime] = None
    redeemedAt: Optional[datetime] = None
    redeemedById: Optional[Identifier] = None
    recipientId: Optional[Identifier] = None

    @field_validator("discountType", mode="before")
    @classmethod
    def discount_type_by_name(cls, value):
        if isinstance(value, str) and value in DiscountType.__members__:
            return DiscountType[value]
        return value

    @field_validator("discountValue")
    @classmethod
    def non_negative_value(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("discountValue must not be negative")
        return value

    @model_validator(mode="after")
    def ordered_windows(self) -> "CouponDefinition":
        if self.minQty is not None and self.maxQty is not None and self.minQty > self.maxQty:
            raise ValueError("minQty must not exceed maxQty")
        if (
            self.minOrderPrice is not None
            and self.maxOrderPrice is not None
            and self.minOrderPrice > self.maxOrderPrice
        ):
            raise ValueError("minOrderPrice must not exceed maxOrderPrice")
        return self

    def __setattr__(self, name, value):
        if name == "isValid" and value and not self.isValid:
            raise ValueError(f"Coupon {self.code} was invalidated and cannot be made valid again")
        super().__setattr__(name, value)


class CartItem(BaseModel):
    itemId: Identifier
    itemType: ItemType = ItemType.SKU
    unitPrice: Decimal = Field(ge=0)
    count: int = Field(ge=1)

    @property
    def is_discountable(self) -> bool:
        return self.itemType == ItemType.SKU


class Cart(BaseModel):
    items: List[CartItem] = Field(default_factory=list)


class Product(BaseModel):
    id: Identifier
    categoryIds: Set[Identifier] = Field(default_factory=set)
    skuIds: Set[Identifier] = Field(default_factory=set)


class DiscountQuote(BaseModel):
    coupon: CouponDefinition
    discountAmount: Decimal
