"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "APP_ERROR", field: Optional[str] = None):
        self.message = message
        self.code = code
        self.field = field
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="VALIDATION_ERROR", field=field)


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ConflictError(AppError):
    """Raised when a write conflicts with existing state."""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="CONFLICT", field=field)


class SellExceedsHoldingsError(ConflictError):
    """Raised when a ledger change would drive quantity held below zero."""

    def __init__(self, holding_id: str, txn_date: Optional[str] = None, shortfall: Optional[str] = None):
        message = "Sell quantity exceeds holdings"
        if txn_date:
            message = f"{message} on {txn_date}"
        if shortfall:
            message = f"{message} (short by {shortfall})"
        self.holding_id = holding_id
        super().__init__(message, field="quantity")


class DuplicateSnapshotError(ConflictError):
    """Raised when a holding already has a snapshot for the given date."""

    def __init__(self, holding_id: str, snapshot_date: str):
        super().__init__(
            f"Snapshot already exists for holding {holding_id} on {snapshot_date}",
            field="date",
        )


class UpstreamUnavailableError(AppError):
    """Raised when a price or rate source fails and nothing is cached."""

    status_code = 503

    def __init__(self, source: str, detail: str):
        self.source = source
        super().__init__(f"{source} unavailable: {detail}", code="UPSTREAM_UNAVAILABLE")


class UnsupportedCurrencyPairError(ValidationError):
    """Raised when a conversion is requested outside the supported currencies."""

    def __init__(self, from_currency: str, to_currency: str):
        super().__init__(
            f"Unsupported currency pair: {from_currency}/{to_currency}",
            field="currency",
        )
