"""Configuration module for the IEA Task 43 wizard core."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

# --- minimal .env loader (stdlib only) ---
def _load_dotenv():
    p = Path(".env")
    if not p.exists():
        return
    try:
        for line in p.read_text(encoding="utf-8").splitlines():
            s = line.strip()
            if not s or s.startswith("#") or "=" not in s:
                continue
            k, v = s.split("=", 1)
            k = k.strip()
            v = v.strip()
            # keep existing OS env if already set
            if k and (k not in os.environ):
                os.environ[k] = v
    except (OSError, UnicodeDecodeError):
        # fail open: env loading is best-effort
        pass

_load_dotenv()


BUNDLED_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "iea43_wra_data_model.schema.json"

GroupBy = Literal["column", "height_type"]


class Settings(BaseModel):
    """Application settings."""

    schema_path: Path = Field(
        default=BUNDLED_SCHEMA_PATH,
        description="IEA Task 43 JSON Schema used by the compliance validator"
    )
    export_filename: str = Field(
        default="iea-task43-data.json",
        description="Default file name of exported documents"
    )
    group_by: GroupBy = Field(
        default="column",
        description="Default measurement point grouping for CSV imports"
    )
    height_reference_id: str = Field(
        default="ground_level",
        description="height_reference_id given to imported measurement points"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Upload guard for CSV import endpoints"
    )
    cors_origins: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        schema_path: Optional[str] = os.getenv("IEA43_SCHEMA_PATH")
        group_by = os.getenv("IEA43_GROUP_BY", "column").strip().lower()
        if group_by not in ("column", "height_type"):
            group_by = "column"
        return cls(
            schema_path=Path(schema_path) if schema_path else BUNDLED_SCHEMA_PATH,
            export_filename=os.getenv("IEA43_EXPORT_FILENAME", "iea-task43-data.json"),
            group_by=group_by,
            height_reference_id=os.getenv("IEA43_HEIGHT_REFERENCE", "ground_level"),
            max_upload_bytes=int(os.getenv("IEA43_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
            cors_origins=os.getenv("IEA43_CORS_ORIGINS", ""),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


# CSV structure heuristics
HEADER_SCAN_ROWS = 5
TIMESTAMP_SCAN_COLUMNS = 6
HEADER_KEYWORDS = ["time", "date", "wind", "speed", "dir", "temp", "humidity", "pressure", "wave"]
TIMESTAMP_KEYWORDS = ["timestamp", "date", "time", "iso", "utc"]
# Words allowed in a timestamp column label besides digits and separators
TIMESTAMP_LABEL_WORDS = [
    "timestamp", "datetime", "date", "time", "stamp", "iso", "utc", "gmt", "local",
    "start", "end", "of", "period", "zone", "yyyy", "mm", "dd", "hh", "ss",
]
MAX_TIMESTAMP_WARNINGS = 3
MIN_HEADER_CELLS = 2
MIN_HEADER_FILL_RATIO = 0.2

# Export
FORM_ONLY_ROOT_FIELDS = ["startDate", "endDate", "campaignStatus"]
FORM_ONLY_POINT_FIELDS = ["unit", "statistic_type_id"]
FORM_ONLY_ANY_LEVEL_FIELDS = [
    "update_at", "temp_id", "form_helper_fields", "ui_state", "validation_state", "is_dirty", "last_modified_by",
]
