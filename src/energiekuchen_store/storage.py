"""
EnergyStorage - maps an EnergyDataset to and from one storage slot.

Two error policies apply here:
- load() is fail-safe: corrupted or invalid stored data is cleared and
  None is returned, so callers start from an empty dataset.
- import_() / import_data() are fail-loud: the first violation raises a
  ValidationError with a specific, user-actionable message.

Stored bytes are never trusted. Every load goes through the same
migration and validation as an import.
"""

import json
import logging
import sqlite3
from typing import Any, Callable, Dict, List, Optional, Set

from .calculations import generate_unique_id
from .models import (
    Activity,
    Chart,
    ChartType,
    EnergyDataset,
    StorageError,
    ValidationError,
)
from .repository import SlotRepository
from .schema import (
    DEFAULT_VERSION,
    IMPORT_MAX_LEVEL,
    IMPORT_MIN_LEVEL,
    LEGACY_ACTIVITY_FIELDS,
    LEGACY_CHART_FIELDS,
    LEGACY_ROOT_FIELDS,
    MAX_ACTIVITIES,
    STORAGE_KEY,
)
from .validation import (
    is_number,
    validate_activity_name,
    validate_activity_value,
    validate_chart_activities,
)

logger = logging.getLogger(__name__)

MALFORMED_MESSAGE = "Invalid file or data format"


def serialize_dataset(dataset: EnergyDataset) -> str:
    """Compact JSON used for the storage slot."""
    return json.dumps(dataset.to_dict(), separators=(",", ":"), ensure_ascii=False)


def export_data(dataset: EnergyDataset) -> str:
    """Pretty-printed JSON used for export files."""
    return json.dumps(dataset.to_dict(), indent=2, ensure_ascii=False)


def migrate_payload(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Strip fields that older releases stored but this one no longer uses.

    Works on a copy; the input is left untouched. Shapes that are not
    dicts/lists are passed through for the validator to reject.
    """
    stripped = 0
    migrated = {k: v for k, v in raw.items() if k not in LEGACY_ROOT_FIELDS}
    stripped += len(raw) - len(migrated)

    for chart in ChartType:
        chart_data = migrated.get(chart.value)
        if not isinstance(chart_data, dict):
            continue
        new_chart = {k: v for k, v in chart_data.items() if k not in LEGACY_CHART_FIELDS}
        stripped += len(chart_data) - len(new_chart)

        activities = new_chart.get("activities")
        if isinstance(activities, list):
            new_activities = []
            for activity in activities:
                if isinstance(activity, dict):
                    clean = {
                        k: v for k, v in activity.items()
                        if k not in LEGACY_ACTIVITY_FIELDS
                    }
                    stripped += len(activity) - len(clean)
                    activity = clean
                new_activities.append(activity)
            new_chart["activities"] = new_activities

        migrated[chart.value] = new_chart

    if stripped:
        logger.debug("Migration stripped %d legacy field(s)", stripped)
    return migrated


def _malformed(message: str = MALFORMED_MESSAGE) -> ValidationError:
    return ValidationError(message, code="MALFORMED")


def _parse_activity(
    raw: Any,
    used_ids: Set[str],
    min_level: int,
    max_level: int,
    id_factory: Callable[[], str],
) -> Activity:
    if not isinstance(raw, dict):
        raise _malformed("Activity entry must be an object")

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Activity must have a name", code="MISSING_NAME")

    value = raw.get("value")
    if not is_number(value):
        raise ValidationError("Activity must have an energy level", code="MISSING_VALUE")

    validate_activity_name(name).raise_if_invalid()
    validate_activity_value(value, min_level, max_level).raise_if_invalid()

    activity_id = raw.get("id")
    if isinstance(activity_id, int) and not isinstance(activity_id, bool):
        activity_id = str(activity_id)
    if not isinstance(activity_id, str) or not activity_id or activity_id in used_ids:
        activity_id = id_factory()
        while activity_id in used_ids:
            activity_id = id_factory()
    used_ids.add(activity_id)

    return Activity(id=activity_id, name=name, value=int(value))


def import_data(
    json_string: str,
    min_level: int = IMPORT_MIN_LEVEL,
    max_level: int = IMPORT_MAX_LEVEL,
    max_activities: int = MAX_ACTIVITIES,
    default_version: str = DEFAULT_VERSION,
    id_factory: Callable[[], str] = generate_unique_id,
) -> EnergyDataset:
    """
    Parse, migrate and validate a JSON document into a fresh dataset.

    Args:
        json_string: The document, e.g. the contents of an export file
        min_level: Lowest accepted energy level
        max_level: Highest accepted energy level
        max_activities: Per-chart activity cap
        default_version: Version used when the document has none
        id_factory: Id generator for activities that lack a usable id

    Returns:
        The validated dataset

    Raises:
        ValidationError: For the first violation found. code is one of
            MALFORMED, MISSING_NAME, MISSING_VALUE, TOO_LONG, INVALID_CHARS,
            OUT_OF_RANGE, NOT_INTEGER, TOO_MANY, DUPLICATE_NAME.
    """
    try:
        raw = json.loads(json_string)
    except (TypeError, ValueError, RecursionError) as e:
        raise _malformed() from e

    if not isinstance(raw, dict):
        raise _malformed()

    data = migrate_payload(raw)

    if data.get("positive") is None and data.get("negative") is None:
        raise _malformed("Invalid data format - no activity data found")

    used_ids: Set[str] = set()
    charts: Dict[str, Chart] = {}
    for chart in ChartType:
        chart_data = data.get(chart.value)
        if chart_data is None:
            charts[chart.value] = Chart()
            continue
        if not isinstance(chart_data, dict):
            raise _malformed()
        raw_activities = chart_data.get("activities", [])
        if not isinstance(raw_activities, list):
            raise _malformed()

        activities: List[Activity] = [
            _parse_activity(a, used_ids, min_level, max_level, id_factory)
            for a in raw_activities
        ]
        validate_chart_activities(activities, max_activities).raise_if_invalid()
        charts[chart.value] = Chart(tuple(activities))

    version = data.get("version")
    if not isinstance(version, str) or not version:
        version = default_version

    return EnergyDataset(
        version=version,
        positive=charts["positive"],
        negative=charts["negative"],
    )


class EnergyStorage:
    """
    Persistence store for the single dataset slot.

    Usage:
        storage = EnergyStorage(SQLiteSlotRepository(db_path))
        storage.save(dataset)
        dataset = storage.load()  # None when empty or corrupted
    """

    def __init__(
        self,
        repository: SlotRepository,
        key: str = STORAGE_KEY,
        min_level: int = IMPORT_MIN_LEVEL,
        max_level: int = IMPORT_MAX_LEVEL,
        max_activities: int = MAX_ACTIVITIES,
        default_version: str = DEFAULT_VERSION,
    ):
        """
        Initialize storage.

        Args:
            repository: Slot backend
            key: Slot key the dataset lives under
            min_level: Lowest energy level accepted on load/import
            max_level: Highest energy level accepted on load/import
            max_activities: Per-chart activity cap
            default_version: Version assumed for unversioned data
        """
        self.repository = repository
        self.key = key
        self.min_level = min_level
        self.max_level = max_level
        self.max_activities = max_activities
        self.default_version = default_version

    def save(self, dataset: EnergyDataset) -> None:
        """
        Overwrite the slot with the dataset.

        Raises:
            StorageError: code STORAGE_WRITE_FAILED when the backend refuses
                the write (quota exceeded, storage unavailable)
        """
        serialized = serialize_dataset(dataset)
        try:
            self.repository.set(self.key, serialized)
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to save data to slot '%s': %s", self.key, e)
            raise StorageError("Data could not be saved", code="STORAGE_WRITE_FAILED") from e
        logger.debug("Saved %d bytes to slot '%s'", len(serialized), self.key)

    def load(self) -> Optional[EnergyDataset]:
        """
        Read, migrate and validate the stored dataset.

        Returns:
            The dataset, or None when the slot is empty, unreadable or
            holds invalid data. Invalid data is cleared from the slot.
        """
        try:
            serialized = self.repository.get(self.key)
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to read slot '%s': %s", self.key, e)
            return None

        if not serialized:
            return None

        try:
            return self.import_(serialized)
        except ValidationError as e:
            logger.warning(
                "Stored data in slot '%s' is invalid (%s: %s); clearing it",
                self.key, e.code, e.message,
            )
            self.clear()
            return None

    def clear(self) -> None:
        """Empty the slot. Failures are logged, never raised."""
        try:
            self.repository.remove(self.key)
        except Exception as e:
            logger.error("Failed to clear slot '%s': %s", self.key, e)

    def has_data(self) -> bool:
        """True when the slot holds something (valid or not)."""
        try:
            return bool(self.repository.get(self.key))
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to read slot '%s': %s", self.key, e)
            return False

    def export(self) -> str:
        """
        Pretty-printed JSON of the stored dataset.

        Read-only: unlike load(), invalid stored data is reported, never
        cleared.

        Raises:
            StorageError: code NO_DATA when nothing is stored; the
                validation code when the stored data is invalid
        """
        if not self.has_data():
            raise StorageError("No data to export", code="NO_DATA")
        try:
            dataset = self.import_(self.repository.get(self.key))
        except ValidationError as e:
            raise StorageError(f"Stored data cannot be exported: {e.message}", code=e.code) from e
        return export_data(dataset)

    def import_(self, json_string: str) -> EnergyDataset:
        """
        Parse and validate a JSON document with this store's rules.

        Does not write anything; the caller decides what to do with the
        returned dataset.

        Raises:
            ValidationError: For the first violation found
        """
        return import_data(
            json_string,
            min_level=self.min_level,
            max_level=self.max_level,
            max_activities=self.max_activities,
            default_version=self.default_version,
        )
