"""
Type system for the marketplace settlement engine.
Rust-inspired Result pattern plus the settlement error taxonomy shared by every app.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Generic, TypeVar

# Type variables for generic Result
T = TypeVar('T')  # Success type
E = TypeVar('E')  # Error type

# ===============================================================================
# RESULT TYPES
# ===============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Success result containing a value"""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the success value"""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the success value (ignores default)"""
        return self.value

    def map(self, func: Callable[[T], Any]) -> Result[Any, Any]:
        """Transform the success value"""
        return Ok(func(self.value))


@dataclass(frozen=True)
class Err(Generic[E]):
    """Error result containing an error value"""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raises the wrapped business error, or ValueError for plain values"""
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Get the default value since this is an error"""
        return default

    def map(self, func: Callable[[Any], Any]) -> Result[Any, E]:
        """No-op for error results"""
        return self


# Result type alias
Result = Ok[T] | Err[E]

# ===============================================================================
# BUSINESS TYPES
# ===============================================================================

OrderNumber = str  # Order reference: "MKT-20260115-3F9A2C1B"
GiftCardCode = str  # Redemption code: "ABCD-EFGH-2345-JKLM"
StatementNumber = str  # Vendor statement: "STMT-000012-202601"
PaymentReference = str  # Payment provider reference for confirmations
WebhookSignature = str  # HMAC signature for payment confirmation webhooks

# ===============================================================================
# COMMON EXCEPTIONS
# ===============================================================================

class BusinessError(Exception):
    """Base exception for business logic errors"""

    code: ClassVar[str] = 'business_error'

    def to_dict(self) -> dict[str, Any]:
        """Machine-readable error payload for API responses"""
        return {'code': self.code, 'message': str(self)}


class ValidationError(BusinessError):
    """Validation error with field information"""

    code: ClassVar[str] = 'validation_error'

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), 'field': self.field}


class NotFoundError(BusinessError):
    """Referenced record does not exist"""

    code: ClassVar[str] = 'not_found'


class ProductNotFound(NotFoundError):
    code: ClassVar[str] = 'product_not_found'

    def __init__(self, product_ids: list[Any]):
        self.product_ids = list(product_ids)
        super().__init__(f"Products not found: {', '.join(str(pid) for pid in self.product_ids)}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), 'product_ids': [str(pid) for pid in self.product_ids]}


class OrderNotFound(NotFoundError):
    code: ClassVar[str] = 'order_not_found'

    def __init__(self, order_id: Any):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class InsufficientStock(BusinessError):
    """Requested quantity exceeds available stock"""

    code: ClassVar[str] = 'insufficient_stock'

    def __init__(self, product_id: Any, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}: {available} available, {requested} requested"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            'product_id': str(self.product_id),
            'product_name': self.product_name,
            'available': self.available,
            'requested': self.requested,
        }


class ConcurrentStockConflict(InsufficientStock):
    """Conditional stock decrement matched no rows: another checkout took the stock first"""

    code: ClassVar[str] = 'concurrent_stock_conflict'


class InsufficientPoints(BusinessError):
    code: ClassVar[str] = 'insufficient_points'

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient loyalty points: {available} available, {requested} requested")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), 'available': self.available, 'requested': self.requested}


class GiftCardError(BusinessError):
    """Base class for gift card redemption failures"""

    code: ClassVar[str] = 'gift_card_error'


class InvalidGiftCard(GiftCardError, NotFoundError):
    code: ClassVar[str] = 'invalid_gift_card'

    def __init__(self, code_value: str):
        self.gift_card_code = code_value
        super().__init__("Invalid gift card code")


class GiftCardInactive(GiftCardError):
    code: ClassVar[str] = 'gift_card_inactive'

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Gift card is {status}")


class GiftCardExpired(GiftCardError):
    code: ClassVar[str] = 'gift_card_expired'

    def __init__(self) -> None:
        super().__init__("Gift card has expired")


class GiftCardUnauthorized(GiftCardError):
    code: ClassVar[str] = 'gift_card_unauthorized'

    def __init__(self) -> None:
        super().__init__("This gift card is not assigned to you")


class InsufficientGiftCardBalance(GiftCardError):
    code: ClassVar[str] = 'insufficient_gift_card_balance'

    def __init__(self, balance_cents: int, requested_cents: int):
        self.balance_cents = balance_cents
        self.requested_cents = requested_cents
        super().__init__(
            f"Insufficient gift card balance: {Decimal(balance_cents) / 100:.2f} available, "
            f"{Decimal(requested_cents) / 100:.2f} requested"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            'balance_cents': self.balance_cents,
            'requested_cents': self.requested_cents,
        }


class InvalidStatusTransition(BusinessError):
    code: ClassVar[str] = 'invalid_status_transition'

    def __init__(self, old_status: str, new_status: str):
        self.old_status = old_status
        self.new_status = new_status
        super().__init__(f"Invalid status transition from {old_status} to {new_status}")


class TransactionFailure(BusinessError):
    """Opaque persistence failure; the surrounding transaction was rolled back"""

    code: ClassVar[str] = 'transaction_failure'
