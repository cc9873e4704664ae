"""Base import result and file decoding helpers."""

from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, TextIO, Tuple

from ..schema import CSVIssue, CSVStructure, ColumnInfo, MeasurementPoint


ENCODINGS = ['utf-8', 'utf-8-sig', 'latin1']


@dataclass
class ImportResult:
    """Result of a logger CSV import."""

    points: Optional[List[MeasurementPoint]]
    issues: List[CSVIssue]
    structure: Optional[CSVStructure] = None
    columns: List[ColumnInfo] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.points is not None

    @property
    def warnings(self) -> List[CSVIssue]:
        return [issue for issue in self.issues if issue.type == "warning"]

    @property
    def errors(self) -> List[CSVIssue]:
        return [issue for issue in self.issues if issue.type == "error"]

    @classmethod
    def success(
        cls,
        points: List[MeasurementPoint],
        issues: Optional[List[CSVIssue]] = None,
        structure: Optional[CSVStructure] = None,
        columns: Optional[List[ColumnInfo]] = None,
    ) -> "ImportResult":
        """Create a successful import result."""
        return cls(points=points, issues=issues or [], structure=structure, columns=columns or [])

    @classmethod
    def failure(cls, issues: List[CSVIssue]) -> "ImportResult":
        """Create a failed import result."""
        return cls(points=None, issues=issues)

    @classmethod
    def failure_message(cls, message: str) -> "ImportResult":
        """Create a failed import result from a single error message."""
        return cls.failure([CSVIssue(type="error", message=message)])


def read_with_encoding_fallback(file: BinaryIO | TextIO | bytes | str) -> Tuple[Optional[str], Optional[str]]:
    """
    Read file content with encoding fallback: utf-8 -> utf-8-sig -> latin1.

    Returns:
        tuple: (content, encoding_used) or (None, None) if all fail
    """
    content = file.read() if hasattr(file, 'read') else file
    if isinstance(content, bytes):
        for encoding in ENCODINGS:
            try:
                decoded = content.decode(encoding)
            except UnicodeDecodeError:
                continue
            # Remove BOM if present
            if decoded.startswith('\ufeff'):
                decoded = decoded[1:]
            return decoded, encoding
        return None, None

    text = str(content)
    if text.startswith('\ufeff'):
        text = text[1:]
    return text, 'utf-8'


def detect_delimiter(content: str) -> str:
    """
    Auto-detect CSV delimiter based on first line.

    Returns:
        ';' or '\\t' when they outnumber commas on the first line, otherwise ','
    """
    first_line = content.split('\n')[0] if '\n' in content else content
    counts = {
        ',': first_line.count(','),
        ';': first_line.count(';'),
        '\t': first_line.count('\t'),
    }
    best = max(counts, key=lambda d: counts[d])
    return best if counts[best] > counts[','] else ','
