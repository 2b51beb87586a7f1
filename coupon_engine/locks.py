import threading
from typing import Dict

from .models import CouponDefinition
from .storage import normalize_code


class CouponLocks:
    """One lock per coupon code, shared by everything that mutates a coupon.

    Coupons themselves must stay copyable and picklable, so they hold no lock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # normalized code -> lock
        self._locks: Dict[str, threading.Lock] = {}

    def for_coupon(self, coupon: CouponDefinition) -> threading.Lock:
        key = normalize_code(coupon.code)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


coupon_locks = CouponLocks()
