"""Domain models for Orders feature"""

from enum import Enum

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class OrderStatus(str, Enum):
    """Order status enum"""
    PAID = "paid"


class StockFailurePolicy(str, Enum):
    """What happens to already-applied decrements when a later stock write fails"""
    LEAVE = "leave"
    COMPENSATE = "compensate"


def to_major_units(amount: int | None) -> float:
    """Convert a minor-unit amount (pence, cents) to major units; None -> 0"""
    if not amount:
        return 0
    return round(amount / 100, 2)


def is_valid_stock(value) -> bool:
    """Stock must be a non-negative integer; bools and floats don't count"""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
