import logging
from typing import Optional

from .locks import CouponLocks, coupon_locks
from .models import CouponDefinition

logger = logging.getLogger(__name__)


class ValidityEnforcer:
    """Consumes one-time coupons.

    isValid only ever moves from True to False. The transition is a
    compare-and-set under the coupon's lock, so among any number of racing
    callers exactly one sees it succeed.
    """

    def __init__(self, locks: Optional[CouponLocks] = None):
        self.locks = locks or coupon_locks

    def deactivate(self, coupon: CouponDefinition) -> bool:
        with self.locks.for_coupon(coupon):
            if not coupon.isValid:
                return False
            coupon.isValid = False
        logger.info("Coupon %s deactivated", coupon.code)
        return True


enforcer = ValidityEnforcer()


def deactivate(coupon: CouponDefinition) -> bool:
    return enforcer.deactivate(coupon)
