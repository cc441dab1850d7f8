"""View models for CSV import results."""

from dataclasses import dataclass, field


@dataclass
class ImportRowError:
    """A rejected CSV row (row numbers count the header as row 1)."""

    row: int
    message: str


@dataclass
class ImportSummary:
    """Summary of CSV import operation."""

    total: int = 0
    imported: int = 0
    skipped: int = 0
    errors: list[ImportRowError] = field(default_factory=list)
    created_holdings: list[str] = field(default_factory=list)
