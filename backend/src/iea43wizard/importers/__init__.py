"""Importers package for logger data files."""

from .column_header import parse_column_header
from .csv_structure import validate_csv_structure
