"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for ledger errors."""

    retryable = False

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when mutation input is malformed. Nothing has been written."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a referenced movement or invoice does not exist."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ConsistencyError(AppError):
    """
    Raised when the movement chain cannot be replayed.

    Covers a broken predecessor link and the oversell guard. Always fatal for
    the enclosing transaction.
    """

    def __init__(self, message: str, product_id: Optional[int] = None):
        self.product_id = product_id
        super().__init__(message, code="CONSISTENCY_ERROR")


class ConcurrencyError(AppError):
    """Raised when a product lock cannot be acquired within the bounded wait."""

    retryable = True

    def __init__(self, product_id: Optional[int], timeout_seconds: float):
        self.product_id = product_id
        self.timeout_seconds = timeout_seconds
        target = f"product {product_id}" if product_id is not None else "the ledger"
        super().__init__(
            f"Could not lock {target} within {timeout_seconds}s; retry the mutation",
            code="CONCURRENCY_ERROR",
        )
