"""Pydantic schemas for CSV import endpoints."""

from finboard.api.schemas.base import ApiModel


class ImportRowErrorResponse(ApiModel):
    row: int
    message: str


class ImportSummaryResponse(ApiModel):
    """Response schema for CSV import results."""

    total: int
    imported: int
    skipped: int
    errors: list[ImportRowErrorResponse]
    created_holdings: list[str] = []
