"""CSV import/export utilities."""

from finboard.csv.importer import CsvImporter
from finboard.csv.exporter import CsvExporter
from finboard.csv.template import CsvTemplateGenerator

__all__ = [
    "CsvImporter",
    "CsvExporter",
    "CsvTemplateGenerator",
]
