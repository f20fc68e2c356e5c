"""
Shared type system for the optical marketplace engine
Rust-inspired Result pattern plus the domain error taxonomy returned by services.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

# Type variables for generic Result
T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type

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

    def and_then(self, func: Callable[[T], Result[Any, Any]]) -> Result[Any, Any]:
        """Chain operations that can fail"""
        return func(self.value)

    def unwrap_err(self) -> Any:
        """Raises an exception since this is success, not error - provides consistent API"""
        raise ValueError(f"Called unwrap_err on Ok: {self.value}")


@dataclass(frozen=True)
class Err(Generic[E]):
    """Error result containing an error value"""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raises an exception - use unwrap_or() for safe access"""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Get the default value since this is an error"""
        return default

    def map(self, func: Callable[[Any], Any]) -> Result[Any, E]:
        """No-op for error results"""
        return self

    def and_then(self, func: Callable[[Any], Result[Any, Any]]) -> Result[Any, E]:
        """No-op for error results - return self"""
        return self

    def unwrap_err(self) -> E:
        """Get the error value"""
        return self.error


# Result type alias
Result = Ok[T] | Err[E]

# ===============================================================================
# DOMAIN ERROR TAXONOMY
# ===============================================================================


class ErrorCode:
    """Machine-readable error codes shared by services and the API layer"""

    INSUFFICIENT_STOCK: ClassVar[str] = 'INSUFFICIENT_STOCK'
    INSUFFICIENT_POINTS: ClassVar[str] = 'INSUFFICIENT_POINTS'
    ALREADY_RESOLVED: ClassVar[str] = 'ALREADY_RESOLVED'
    NOT_FOUND: ClassVar[str] = 'NOT_FOUND'
    VALIDATION_ERROR: ClassVar[str] = 'VALIDATION_ERROR'
    UNAUTHORIZED: ClassVar[str] = 'UNAUTHORIZED'
    CONFLICT: ClassVar[str] = 'CONFLICT'
    RETRY_EXHAUSTED: ClassVar[str] = 'RETRY_EXHAUSTED'


@dataclass(frozen=True)
class DomainError:
    """
    Typed business outcome carried by Err.

    Ledger guard failures are expected results, not exceptions. ``details``
    holds the server-computed facts the caller needs (e.g. the exact shortfall).
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def insufficient_stock(
        cls, requested: int, available: int, **context: Any
    ) -> DomainError:
        return cls(
            ErrorCode.INSUFFICIENT_STOCK,
            f"Insufficient stock: requested {requested}, available {available}",
            {
                'requested': requested,
                'available': available,
                'shortfall': max(requested - available, 0),
                **context,
            },
        )

    @classmethod
    def insufficient_points(
        cls, required: int, balance: int, **context: Any
    ) -> DomainError:
        return cls(
            ErrorCode.INSUFFICIENT_POINTS,
            f"Insufficient points: {required} required, balance is {balance}",
            {
                'required': required,
                'balance': balance,
                'points_needed': max(required - balance, 0),
                **context,
            },
        )

    @classmethod
    def already_resolved(cls, entity: str, entity_id: Any, status: str) -> DomainError:
        return cls(
            ErrorCode.ALREADY_RESOLVED,
            f"{entity} {entity_id} is already {status}",
            {'entity': entity, 'id': str(entity_id), 'status': status},
        )

    @classmethod
    def not_found(cls, entity: str, entity_id: Any) -> DomainError:
        return cls(
            ErrorCode.NOT_FOUND,
            f"{entity} {entity_id} not found",
            {'entity': entity, 'id': str(entity_id)},
        )

    @classmethod
    def validation(cls, message: str, **fields: Any) -> DomainError:
        return cls(ErrorCode.VALIDATION_ERROR, message, dict(fields))

    @classmethod
    def unauthorized(cls, message: str = "Not allowed to perform this action") -> DomainError:
        return cls(ErrorCode.UNAUTHORIZED, message)

    @classmethod
    def retry_exhausted(cls, operation: str, attempts: int) -> DomainError:
        return cls(
            ErrorCode.RETRY_EXHAUSTED,
            f"{operation} could not acquire its locks after {attempts} attempts",
            {'operation': operation, 'attempts': attempts, 'retryable': True},
        )


# Service signatures
ServiceResult = Result[T, DomainError]

# ===============================================================================
# COMMON EXCEPTIONS
# ===============================================================================


class BusinessError(Exception):
    """Base exception for business logic errors"""


class ConflictError(BusinessError):
    """Transient lock contention inside a ledger transaction; safe to retry"""
