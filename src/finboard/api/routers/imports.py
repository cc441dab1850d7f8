"""CSV import, export and template endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse, Response

from finboard.api.deps import get_csv_exporter, get_csv_importer, get_csv_template_generator
from finboard.api.schemas import ImportRowErrorResponse, ImportSummaryResponse
from finboard.core.exceptions import ValidationError
from finboard.core.timezone import today_local
from finboard.csv import CsvExporter, CsvImporter, CsvTemplateGenerator
from finboard.domain.views import ImportSummary

router = APIRouter(tags=["csv"])


def _read_upload(file: UploadFile) -> str:
    raw = file.file.read()
    if not raw:
        raise ValidationError("Uploaded file is empty", field="file")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Uploaded file is not UTF-8 text", field="file")


def _summary_to_response(summary: ImportSummary) -> ImportSummaryResponse:
    return ImportSummaryResponse(
        total=summary.total,
        imported=summary.imported,
        skipped=summary.skipped,
        errors=[ImportRowErrorResponse(row=e.row, message=e.message) for e in summary.errors],
        created_holdings=summary.created_holdings,
    )


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import/transactions", response_model=ImportSummaryResponse)
def import_transactions(
    file: UploadFile = File(...),
    importer: CsvImporter = Depends(get_csv_importer),
) -> ImportSummaryResponse:
    """Import ledger transactions from CSV.

    Rows already present are skipped, so uploading the same file twice is a
    no-op. Bad rows are reported in ``errors`` without stopping the batch.
    """
    return _summary_to_response(importer.import_transactions(_read_upload(file)))


@router.post("/import/snapshots", response_model=ImportSummaryResponse)
def import_snapshots(
    file: UploadFile = File(...),
    importer: CsvImporter = Depends(get_csv_importer),
) -> ImportSummaryResponse:
    """Import balance snapshots (and super contributions) from CSV."""
    return _summary_to_response(importer.import_snapshots(_read_upload(file)))


@router.get("/import/template/{import_type}")
def download_template(
    import_type: str,
    generator: CsvTemplateGenerator = Depends(get_csv_template_generator),
) -> Response:
    """Download a template CSV with header and example rows."""
    content = generator.generate_template(import_type)
    return _csv_response(content, f"{import_type.strip().lower()}_template.csv")


@router.get("/export/transactions")
def export_transactions(
    holding_id: Optional[list[str]] = Query(None, alias="holdingId"),
    exporter: CsvExporter = Depends(get_csv_exporter),
) -> Response:
    return _csv_response(exporter.export_transactions(holding_ids=holding_id or None), "transactions.csv")


@router.get("/export/snapshots")
def export_snapshots(exporter: CsvExporter = Depends(get_csv_exporter)) -> Response:
    return _csv_response(exporter.export_snapshots(), "snapshots.csv")


@router.get("/export/holdings")
def export_holdings(
    export_format: str = Query("csv", alias="format"),
    exporter: CsvExporter = Depends(get_csv_exporter),
) -> Response:
    """Backup listing of holdings (dormant included) as CSV or JSON."""
    export_format = export_format.strip().lower()
    filename = f"holdings-{today_local().isoformat()}.{export_format}"
    if export_format == "csv":
        return _csv_response(exporter.export_holdings(), filename)
    if export_format == "json":
        return JSONResponse(
            content=exporter.holding_records(),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    raise ValidationError("format must be csv or json", field="format")
