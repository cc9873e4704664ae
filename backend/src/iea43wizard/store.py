"""In-memory document store with replace-per-logger point merging."""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .points import merge_logger_points, point_logger_id
from .utils_time import campaign_end_datetime, campaign_start_datetime

logger = logging.getLogger(__name__)


class DocumentStore:
    """In-memory store for IEA Task 43 documents being authored."""

    def __init__(self):
        """Initialize the document store."""
        self.documents: Dict[str, Dict[str, Any]] = {}

    def put(self, doc_id: str, doc: Dict[str, Any]) -> bool:
        """
        Store a document, replacing any previous version.

        Returns:
            bool: True if the document was created, False if replaced

        Raises:
            ValueError: If the document is not a JSON object
        """
        if not isinstance(doc, dict):
            raise ValueError("Document must be a JSON object")
        created = doc_id not in self.documents
        self.documents[doc_id] = copy.deepcopy(doc)
        return created

    def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Deep copy of a stored document, or None."""
        doc = self.documents.get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def delete(self, doc_id: str) -> bool:
        return self.documents.pop(doc_id, None) is not None

    def ids(self) -> List[str]:
        return sorted(self.documents)

    def clear(self) -> None:
        self.documents.clear()

    def _location(self, doc_id: str, location_index: int) -> Dict[str, Any]:
        doc = self.documents[doc_id]
        locations = doc.get("measurement_location")
        if not isinstance(locations, list) or not 0 <= location_index < len(locations) \
                or not isinstance(locations[location_index], dict):
            raise ValueError(f"Measurement location index {location_index} out of range")
        return locations[location_index]

    def _points(self, doc_id: str, location_index: int) -> List[Dict[str, Any]]:
        points = self._location(doc_id, location_index).get("measurement_point") or []
        if not isinstance(points, list):
            raise ValueError(f"measurement_point of location {location_index} must be a list")
        for k, point in enumerate(points):
            if not isinstance(point, dict):
                raise ValueError(f"Measurement point {k} of location {location_index} is not an object")
        return points

    def location_points(self, doc_id: str, location_index: int) -> List[Dict[str, Any]]:
        """
        Deep copy of a location's measurement points.

        Raises:
            ValueError: If the location index is out of range or a point is not an object
        """
        return copy.deepcopy(self._points(doc_id, location_index))

    def set_location_points(self, doc_id: str, location_index: int, points: List[Dict[str, Any]]) -> None:
        self._location(doc_id, location_index)["measurement_point"] = copy.deepcopy(points)

    def campaign_dates(self, doc_id: str) -> Tuple[str, Optional[str]]:
        """
        Default date_from/date_to for imported measurement configs.

        Raises:
            KeyError: If the document does not exist
        """
        doc = self.documents[doc_id]
        return campaign_start_datetime(doc), campaign_end_datetime(doc)

    def import_logger_points(
        self,
        doc_id: str,
        location_index: int,
        logger_id: str,
        points: Iterable[Any],
    ) -> Tuple[Dict[str, int], List[str]]:
        """
        Merge freshly imported points into a location.

        Points previously imported for the same logger are replaced; points of
        other loggers stay where they are.

        Args:
            doc_id: Document to merge into
            location_index: Index into measurement_location
            logger_id: Logger the points were imported for
            points: MeasurementPoint models or point dicts

        Returns:
            tuple: (counts, warnings)
            counts contains points_removed / points_added / points_total

        Raises:
            KeyError: If the document does not exist
            ValueError: If the location index is out of range or a stored point is not an object
        """
        location = self._location(doc_id, location_index)
        warnings = []

        configured = {
            str(value)
            for config in location.get("logger_main_config") or []
            if isinstance(config, dict)
            for value in (config.get("logger_id"), config.get("logger_serial_number"))
            if value
        }
        if logger_id not in configured:
            warnings.append(
                f"Logger {logger_id} is not configured at location {location.get('name') or location_index + 1}"
            )

        existing = self._points(doc_id, location_index)
        removed = sum(1 for point in existing if point_logger_id(point) == logger_id)
        merged = merge_logger_points(existing, points, logger_id)
        location["measurement_point"] = merged

        counts = {
            "points_removed": removed,
            "points_added": len(merged) - (len(existing) - removed),
            "points_total": len(merged),
        }
        logger.info(
            "document %s location %d logger %s: replaced %d points with %d",
            doc_id, location_index, logger_id, removed, counts["points_added"],
        )
        return counts, warnings


# Global store instance
store = DocumentStore()
