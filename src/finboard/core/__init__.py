"""Core utilities and shared functionality."""

from finboard.core.timezone import (
    local_tz,
    now_local,
    today_local,
    to_local,
    parse_date,
    month_start,
    month_end,
    add_months,
    utc_now,
)
from finboard.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    ConflictError,
    SellExceedsHoldingsError,
    DuplicateSnapshotError,
    UpstreamUnavailableError,
    UnsupportedCurrencyPairError,
)

__all__ = [
    "local_tz",
    "now_local",
    "today_local",
    "to_local",
    "parse_date",
    "month_start",
    "month_end",
    "add_months",
    "utc_now",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "SellExceedsHoldingsError",
    "DuplicateSnapshotError",
    "UpstreamUnavailableError",
    "UnsupportedCurrencyPairError",
]
