"""Inference of measurement metadata from free-form logger column headers."""

import logging
import re
from typing import Optional

from ..schema import ColumnInfo

logger = logging.getLogger(__name__)


# First substring hit wins, order matters.
UNIT_MAP = [
    ("m/s", "m/s"),
    ("deg", "deg"),
    ("%", "%"),
    ("hpa", "hPa"),
    ("mbar", "mbar"),
]

HEIGHT_PATTERNS = [
    # "40m", "040m"
    re.compile(r'(?:^|[^0-9])(\d+)m\b', re.IGNORECASE),
    # "_40m"
    re.compile(r'_(\d+)m', re.IGNORECASE),
    # "40 m"
    re.compile(r'(\d+)\s+m\b', re.IGNORECASE),
    # "height40"
    re.compile(r'height(\d+)', re.IGNORECASE),
]

HEIGHT_RANGE_PATTERN = re.compile(r'(\d+)m-(\d+)m', re.IGNORECASE)
ANY_NUMBER_PATTERN = re.compile(r'(\d+)')

# (name, pattern, measurement type, statistic override, height from range)
# Ordered: the first matching rule classifies the header. Vertical speed,
# shear and veer precede the generic wind-speed rule since their headers also
# match "wind s..." / "w.s".
CLASSIFICATION_RULES = [
    ("vertical_wind_speed",
     r'verticalwindspeed|vertical_wind_speed|vert[._]?w[._]?s|vertical[._]?speed',
     "wind_speed", None, False),
    ("wind_shear", r'wind[._]?shear|shear', "wind_speed", None, True),
    ("wind_veer", r'wind[._]?veer|veer', "wind_direction", None, True),
    ("wind_speed",
     r'windspeed|wind_speed|wind[._]?s|w[._]?s|hor[._]?speed|horiz[._]?speed',
     "wind_speed", None, False),
    ("wind_velocity", r'wind[._]?vel|windvelocity', "wind_speed", None, False),
    ("wave_direction", r'wavedirection|wave[._]?direction|mwd\b', "wave_direction", None, False),
    ("wind_direction",
     r'winddir|wind_dir|wind[._]?d|w[._]?d|wind[._]?direction|direction',
     "wind_direction", None, False),
    ("bearing", r'azimuth|heading|bearing', "wind_direction", None, False),
    ("gust", r'windgust|wind_gust|gust|max[._]?gust', "wind_speed", "gust", False),
    ("wind_max", r'windmax|wind_max|max[._]?hor|max[._]?wind', "wind_speed", "max", False),
    ("wind_min", r'windmin|wind_min|min[._]?hor|min[._]?wind', "wind_speed", "min", False),
    ("std_dev", r'standarddeviation|std|std[._]?dev|sigma|wind[._]?std', "wind_speed", "sd", False),
    ("turbulence", r'turbulence|ti\d+m|ti[._]?\d+|intensity|ti\b', "wind_speed", "ti", False),
    ("temperature", r'temp|temperature', "temperature", None, False),
    ("pressure", r'press|pressure|baro', "pressure", None, False),
    ("humidity", r'humid|humidity|rh\b', "humidity", None, False),
    ("significant_wave_height", r'significantwaveheight|significant[._]?wave|hsig|hs\b',
     "wave_height", None, False),
    ("maximum_wave_height", r'maximumwaveheight|maximum[._]?wave|hmax', "wave_height", "max", False),
    ("peak_period", r'peakperiod|peak[._]?period|tp\b', "wave_period", None, False),
    ("mean_period", r'meanspectralperiod|mean[._]?period|t[0-9]\b', "wave_period", None, False),
    ("position", r'gps|lat|lon|position|coordinate', "position", None, False),
]

_COMPILED_RULES = [
    (name, re.compile(pattern, re.IGNORECASE), mtype, stat, use_range)
    for name, pattern, mtype, stat, use_range in CLASSIFICATION_RULES
]


def extract_unit(lower_header: str) -> Optional[str]:
    """Unit token found in a lower-cased header, or None."""
    for token, unit in UNIT_MAP:
        if token in lower_header:
            return unit
    return None


def extract_height(lower_header: str) -> Optional[int]:
    """Height from the first matching height pattern, or None."""
    for pattern in HEIGHT_PATTERNS:
        match = pattern.search(lower_header)
        if match:
            return int(match.group(1))
    return None


def range_midpoint(header: str) -> Optional[float]:
    """Mean of an "NNm-NNm" height range, or None when the header has no range."""
    match = HEIGHT_RANGE_PATTERN.search(header)
    if not match:
        return None
    first, second = int(match.group(1)), int(match.group(2))
    return (first + second) / 2


def classify(lower_header: str) -> Optional[tuple]:
    """First classification rule matching the header, or None."""
    for rule in _COMPILED_RULES:
        if rule[1].search(lower_header):
            return rule
    return None


def parse_column_header(header: str) -> ColumnInfo:
    """
    Map a raw logger column header to measurement metadata.

    The returned ``name`` is always the header exactly as given; it is later
    matched against the logger's data-file columns.

    Args:
        header: Column header as read from the CSV file

    Returns:
        ColumnInfo with measurement type, height, unit and statistic type.
        Anything that cannot be inferred keeps its default
        (other / None / None / avg).
    """
    if not isinstance(header, str):
        header = "" if header is None else str(header)

    lower_header = header.lower()
    unit = extract_unit(lower_header)
    height: Optional[float] = extract_height(lower_header)
    measurement_type = "other"
    statistic_type = "avg"

    rule = classify(lower_header)
    if rule is not None:
        rule_name, _, measurement_type, stat_override, use_range = rule
        if stat_override:
            statistic_type = stat_override
        if use_range:
            midpoint = range_midpoint(header)
            if midpoint is not None:
                height = midpoint
        logger.debug("column %r matched rule %s", header, rule_name)

    if height is None:
        match = ANY_NUMBER_PATTERN.search(header)
        if match:
            height = int(match.group(1))

    return ColumnInfo(
        name=header,
        measurement_type=measurement_type,
        height=height,
        unit=unit,
        statistic_type=statistic_type,
    )
