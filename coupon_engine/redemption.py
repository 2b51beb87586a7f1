"""Redeeming and expiring coupons.

A coupon is Active until it is redeemed or its expiresOn date has passed.
Expiry is derived from the date, never stored. Both Redeemed and Expired are
terminal for redemption; deactivation by the validity enforcer is independent.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .locks import CouponLocks, coupon_locks
from .models import CouponDefinition, Identifier, normalize_id

logger = logging.getLogger(__name__)


class RedemptionState(str, Enum):
    ACTIVE = "active"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class RedemptionHook:
    """Business logic to run after a coupon has been redeemed.

    Subclass and override `after_redeem`, then hand an instance to
    `RedemptionLifecycle`.
    """

    def after_redeem(self, coupon: CouponDefinition) -> None:
        pass


class NoOpRedemptionHook(RedemptionHook):
    pass


def is_redeemed(coupon: CouponDefinition) -> bool:
    return coupon.redeemedAt is not None


def is_expired(coupon: CouponDefinition, now: Optional[date] = None) -> bool:
    if coupon.expiresOn is None:
        return False
    if now is None:
        today = date.today()
    elif isinstance(now, datetime):
        today = now.date()
    else:
        today = now
    return coupon.expiresOn < today


def redemption_state(coupon: CouponDefinition, now: Optional[date] = None) -> RedemptionState:
    if is_redeemed(coupon):
        return RedemptionState.REDEEMED
    if is_expired(coupon, now):
        return RedemptionState.EXPIRED
    return RedemptionState.ACTIVE


class RedemptionLifecycle:
    def __init__(self, hook: Optional[RedemptionHook] = None, locks: Optional[CouponLocks] = None):
        self.hook = hook or NoOpRedemptionHook()
        self.locks = locks or coupon_locks

    def redeem(
        self,
        coupon: CouponDefinition,
        redeemer_id: Identifier,
        now: Optional[datetime] = None,
    ) -> bool:
        """Mark the coupon redeemed by `redeemer_id`.

        Returns False without touching the coupon when it is already redeemed
        or expired. Concurrent callers race on the coupon's lock; only the
        winner records the redemption and runs the hook.
        """
        now = now or datetime.now()
        redeemer_id = normalize_id(redeemer_id)
        with self.locks.for_coupon(coupon):
            if is_redeemed(coupon) or is_expired(coupon, now):
                return False
            coupon.redeemedAt = now
            coupon.redeemedById = redeemer_id
            coupon.recipientId = redeemer_id

        logger.info("Coupon %s redeemed by %s", coupon.code, redeemer_id)
        self.hook.after_redeem(coupon)
        return True


lifecycle = RedemptionLifecycle()


def redeem(coupon: CouponDefinition, redeemer_id: Identifier, now: Optional[datetime] = None) -> bool:
    return lifecycle.redeem(coupon, redeemer_id, now)
