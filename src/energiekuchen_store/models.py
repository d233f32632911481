"""
Data model - activities, charts and the dataset aggregate.

An Activity is a named, valued record. Activities live in one of two
Charts: energy sources ("positive") and energy drains ("negative").
The EnergyDataset bundles both charts with a version tag.

All model objects are frozen. Mutation means building a new object,
so snapshots handed to storage or sharing can never alias live state.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from .schema import DEFAULT_VERSION


class EnergyError(Exception):
    """Base error carrying a stable code and a user-facing message."""

    code = "ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(EnergyError):
    """Raised when an activity, chart or import payload is invalid."""
    code = "INVALID"


class InvalidChartType(ValidationError):
    """Raised when a chart name is neither 'positive' nor 'negative'."""
    code = "INVALID_CHART"


class StorageError(EnergyError):
    """Raised when the persistence slot cannot be written or exported."""
    code = "STORAGE_WRITE_FAILED"


class ShareError(EnergyError):
    """Raised when share data cannot be generated or decoded."""
    code = "INVALID_SHARE_DATA"


class ClipboardError(EnergyError):
    """Raised when neither clipboard mechanism could copy the text."""
    code = "CLIPBOARD_FAILED"


class ConfigError(EnergyError):
    """Raised when configuration cannot be loaded or is inconsistent."""
    code = "INVALID_CONFIG"


class ChartType(Enum):
    """The two chart categories."""
    POSITIVE = "positive"
    NEGATIVE = "negative"

    @classmethod
    def parse(cls, value: Any) -> Optional["ChartType"]:
        """Return the matching ChartType, or None for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def require(cls, value: Any) -> "ChartType":
        """Like parse(), but raise InvalidChartType on unknown input."""
        chart = cls.parse(value)
        if chart is None:
            raise InvalidChartType(
                f"Unknown chart '{value}'. "
                f"Valid charts: {[c.value for c in cls]}"
            )
        return chart


@dataclass(frozen=True)
class ActivityDraft:
    """An activity that has not been assigned an id yet."""
    name: str
    value: int


@dataclass(frozen=True)
class Activity:
    """
    A single energy source or drain.

    - id: Opaque identifier, unique within the dataset
    - name: 1-50 characters from the allowed character class
    - value: Integer energy level
    """
    id: str
    name: str
    value: int

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Activity ID is required", code="MISSING_ID")

    def copy(self, **changes) -> "Activity":
        """Create a copy with optional field changes."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Activity":
        return cls(id=d["id"], name=d["name"], value=d["value"])


@dataclass(frozen=True)
class Chart:
    """Ordered sequence of activities. Order is meaningful."""
    activities: Tuple[Activity, ...] = ()

    def __post_init__(self):
        # Accept any iterable (lists from callers) but always store a tuple
        if not isinstance(self.activities, tuple):
            object.__setattr__(self, "activities", tuple(self.activities))

    def __len__(self) -> int:
        return len(self.activities)

    def __iter__(self) -> Iterator[Activity]:
        return iter(self.activities)

    def ids(self) -> set:
        return {a.id for a in self.activities}

    def get(self, activity_id: str) -> Optional[Activity]:
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"activities": [a.to_dict() for a in self.activities]}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Chart":
        return cls(tuple(Activity.from_dict(a) for a in d.get("activities", [])))


@dataclass(frozen=True)
class EnergyDataset:
    """
    The root aggregate: a version tag plus both charts.

    Usage:
        dataset = EnergyDataset.empty()
        positive = dataset.chart(ChartType.POSITIVE)
        dataset = dataset.with_chart(ChartType.POSITIVE, Chart((activity,)))
    """
    version: str = DEFAULT_VERSION
    positive: Chart = field(default_factory=Chart)
    negative: Chart = field(default_factory=Chart)

    @classmethod
    def empty(cls, version: str = DEFAULT_VERSION) -> "EnergyDataset":
        return cls(version=version, positive=Chart(), negative=Chart())

    def chart(self, chart: ChartType) -> Chart:
        return self.positive if chart is ChartType.POSITIVE else self.negative

    def with_chart(self, chart: ChartType, new_chart: Chart) -> "EnergyDataset":
        return replace(self, **{chart.value: new_chart})

    def all_ids(self) -> set:
        return self.positive.ids() | self.negative.ids()

    def is_empty(self) -> bool:
        return not self.positive.activities and not self.negative.activities

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "positive": self.positive.to_dict(),
            "negative": self.negative.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EnergyDataset":
        """Create from an already validated dictionary."""
        return cls(
            version=d.get("version") or DEFAULT_VERSION,
            positive=Chart.from_dict(d.get("positive") or {}),
            negative=Chart.from_dict(d.get("negative") or {}),
        )


@dataclass(frozen=True)
class EnergyState:
    """
    The dataset plus the bookkeeping that lives beside it.

    is_loading tracks the async load; last_saved is the ISO timestamp of
    the last persisting change (None when nothing needs saving).
    """
    data: EnergyDataset = field(default_factory=EnergyDataset.empty)
    is_loading: bool = False
    last_saved: Optional[str] = None
