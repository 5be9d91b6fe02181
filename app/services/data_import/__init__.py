"""CSV data import pipeline: parse, map, validate, execute, roll back, bulk invite."""

from app.services.data_import.column_mapper import FIELD_ALIASES, suggest_column_mapping
from app.services.data_import.csv_parser import generate_csv_template, parse_csv, render_csv
from app.services.data_import.executor import ImportExecutor
from app.services.data_import.existing_data import ExistingData, fetch_existing_data
from app.services.data_import.field_registry import IMPORT_FIELD_REGISTRY, get_fields
from app.services.data_import.mass_invite import MassInviter
from app.services.data_import.strategies import STRATEGIES, InsertOutcome, get_strategy
from app.services.data_import.validator import build_summary, validate_import

__all__ = [
    "FIELD_ALIASES",
    "IMPORT_FIELD_REGISTRY",
    "STRATEGIES",
    "ExistingData",
    "ImportExecutor",
    "InsertOutcome",
    "MassInviter",
    "build_summary",
    "fetch_existing_data",
    "generate_csv_template",
    "get_fields",
    "get_strategy",
    "parse_csv",
    "render_csv",
    "suggest_column_mapping",
    "validate_import",
]
