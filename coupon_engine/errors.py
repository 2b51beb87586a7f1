class CouponError(Exception):
    """Base class for coupon engine errors."""


class DuplicateCodeError(CouponError):
    def __init__(self, code: str):
        super().__init__(f"Coupon code '{code}' already exists")
        self.code = code


class CodeGenerationError(CouponError):
    def __init__(self, attempts: int):
        super().__init__(f"No unique coupon code found after {attempts} attempts")
        self.attempts = attempts
