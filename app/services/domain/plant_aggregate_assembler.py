"""
Domain service: composes plant aggregates from raw database rows.

Rows come either from the GetPlantsWithStagesAndLocations procedure, whose
JSON columns may arrive encoded or decoded, or from ad-hoc joins that hand
over already-structured values. Each sub-document is decoded on its own so
one corrupt column only costs that column.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping

from pydantic import ValidationError as ModelValidationError

from app.domain.exceptions import PartialAssemblyError
from app.domain.models import PhotoRecord, PlantAggregate, StageWarning
from app.utils.json_fields import (
    decode_json_field,
    strip_public_url,
    to_calendar_date,
    to_plain_number,
    to_timestamp_string,
)

logger = logging.getLogger(__name__)


# field name -> (expected type, default factory)
SUB_DOCUMENTS = {
    "variety": (dict, dict),
    "stage": (dict, dict),
    "location": (dict, dict),
    "photos": (list, list),
    "notes": (list, list),
    "warning": (dict, dict),
    "projections": (list, list),
}

# Alternative column names seen across procedure versions
_PHOTO_ID_KEYS = ("id", "photo_id")
_PHOTO_FILENAME_KEYS = ("filename", "storage_photo_id", "key", "image_url", "url")
_PHOTO_STAGE_KEYS = ("stage", "stage_id")


def _first_present(document: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if document.get(key) is not None:
            return document[key]
    return None


class PlantAggregateAssembler:
    """
    Builds PlantAggregate instances from raw rows.

    Assembly never raises for malformed sub-documents: each one falls back to
    its empty default and the rest of the row is still used.
    """

    def assemble(self, row: Mapping[str, Any]) -> PlantAggregate:
        """
        Assemble one row into a PlantAggregate.

        Args:
            row: Raw row mapping

        Returns:
            Fully structured aggregate with every sub-document defaulted
        """
        plant_id = row.get("plant_obj_id")
        documents: Dict[str, Any] = {}

        for field, (expected_type, default_factory) in SUB_DOCUMENTS.items():
            try:
                documents[field] = decode_json_field(
                    field, row.get(field), expected_type, default_factory
                )
            except PartialAssemblyError as e:
                logger.warning(
                    f"Malformed '{e.field}' for plant {plant_id}, using default: {e.reason}"
                )
                documents[field] = default_factory()

        return PlantAggregate(
            plant_obj_id=self._to_int(plant_id),
            user_id=row.get("user_id"),
            plant_name=self._to_str(row.get("plant_name")),
            variety=documents["variety"],
            stage=documents["stage"],
            location=documents["location"],
            photos=self._normalize_photos(plant_id, documents["photos"]),
            notes=[note for note in documents["notes"] if isinstance(note, dict)],
            warning=self._normalize_warning(plant_id, documents["warning"]),
            projections=[
                projection for projection in documents["projections"]
                if isinstance(projection, dict)
            ],
            sensitivities=self._normalize_sensitivities(row.get("sensitivities")),
            date_updated=to_calendar_date(row.get("date_updated")),
            date_planted=to_calendar_date(row.get("date_planted")),
            is_transplant=self._to_bool(row.get("is_transplant")),
            status=self._to_str(row.get("status")),
            current_temp=self._to_float(row.get("current_temp")),
        )

    def assemble_many(self, rows: Iterable[Mapping[str, Any]]) -> List[PlantAggregate]:
        """
        Assemble rows in order.

        A row that cannot be assembled at all still yields an aggregate,
        with every sub-document defaulted, at the same position.
        """
        aggregates = []
        for row in rows:
            try:
                aggregates.append(self.assemble(row))
            except (ModelValidationError, AttributeError, TypeError, ValueError) as e:
                plant_id = row.get("plant_obj_id") if isinstance(row, Mapping) else None
                logger.error(f"Could not assemble plant {plant_id}, returning defaults: {e}")
                aggregates.append(self._fallback(row))
        return aggregates

    def _fallback(self, row: Any) -> PlantAggregate:
        if not isinstance(row, Mapping):
            return PlantAggregate()
        return PlantAggregate(
            plant_obj_id=self._to_int(row.get("plant_obj_id")),
            plant_name=self._to_str(row.get("plant_name")),
            user_id=row.get("user_id"),
            date_updated=to_calendar_date(row.get("date_updated")),
            date_planted=to_calendar_date(row.get("date_planted")),
        )

    def _normalize_photos(self, plant_id: Any, photos: List[Any]) -> List[PhotoRecord]:
        normalized = []
        for photo in photos:
            if not isinstance(photo, dict):
                logger.warning(f"Skipping non-object photo entry for plant {plant_id}")
                continue
            # Aggregated JSON often yields a single all-null object for "no photos"
            if all(value is None for value in photo.values()):
                continue
            try:
                normalized.append(PhotoRecord(
                    id=self._to_int(_first_present(photo, _PHOTO_ID_KEYS)),
                    filename=strip_public_url(_first_present(photo, _PHOTO_FILENAME_KEYS)),
                    date_taken=to_timestamp_string(photo.get("date_taken")),
                    date_uploaded=to_timestamp_string(photo.get("date_uploaded")),
                    stage=to_plain_number(_first_present(photo, _PHOTO_STAGE_KEYS)),
                    plant_stage_id=self._to_int(photo.get("plant_stage_id")),
                ))
            except (ModelValidationError, AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed photo for plant {plant_id}: {e}")
        return normalized

    def _normalize_warning(self, plant_id: Any, warning: Dict[str, Any]) -> StageWarning:
        try:
            return StageWarning(
                cold_tolerance=to_plain_number(warning.get("cold_tolerance")),
                heat_tolerance=to_plain_number(warning.get("heat_tolerance")),
            )
        except ModelValidationError as e:
            logger.warning(f"Malformed 'warning' for plant {plant_id}, using default: {e}")
            return StageWarning()

    def _normalize_sensitivities(self, value: Any) -> List[str]:
        if isinstance(value, str) and value.strip() and not value.strip().startswith("["):
            return [item.strip() for item in value.split(",") if item.strip()]
        try:
            decoded = decode_json_field("sensitivities", value, list, list)
        except PartialAssemblyError:
            return []
        return [str(item) for item in decoded if item is not None]

    @staticmethod
    def _to_bool(value: Any):
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            # MySQL BIT(1)
            return any(value)
        return bool(value)

    @staticmethod
    def _to_str(value: Any):
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @staticmethod
    def _to_int(value: Any):
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _to_float(value: Any):
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None
