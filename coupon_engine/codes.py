import hashlib
import logging
import random
import string
from datetime import datetime
from typing import Optional

from .config import Settings
from .config import settings as default_settings
from .errors import CodeGenerationError
from .models import CouponDefinition
from .storage import InMemoryCouponStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_lowercase + "123456789"


def generate_code(code_length: int = 6) -> str:
    """Alphanumeric code: a random draw, hashed with MD5, truncated and upper-cased."""
    draw = "".join(random.choice(CODE_ALPHABET) for _ in range(code_length))
    return hashlib.md5(draw.encode()).hexdigest()[:code_length].upper()


def generate_unique_code(store: InMemoryCouponStore, code_length: int = 6, max_attempts: int = 100) -> str:
    for _ in range(max_attempts):
        code = generate_code(code_length)
        if not store.active_code(code):
            return code
    raise CodeGenerationError(max_attempts)


def create_coupon(
    store: InMemoryCouponStore,
    settings: Optional[Settings] = None,
    created_at: Optional[datetime] = None,
    **fields,
) -> CouponDefinition:
    """Build a fully initialized coupon and register it in `store`.

    A unique code is assigned unless `code` is given. When the settings carry
    a validity period and no `expiresOn` is given, the coupon expires that long
    after `created_at`.
    """
    settings = settings or default_settings
    created_at = created_at or datetime.now()

    if not fields.get("code"):
        fields["code"] = generate_unique_code(store, settings.code_length, settings.code_max_attempts)
    if fields.get("expiresOn") is None and settings.valid_for is not None:
        fields["expiresOn"] = (created_at + settings.valid_for).date()

    coupon = CouponDefinition(createdAt=created_at, **fields)
    store.add(coupon)
    logger.info("Created coupon %s (%s)", coupon.code, coupon.discountType)
    return coupon
