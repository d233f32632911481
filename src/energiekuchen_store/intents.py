"""
Mutation intents consumed by the reducer.

The intents form a closed set. Intent is the union of all of them; the
reducer keeps one handler per member and refuses anything else.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Union

from .models import ActivityDraft, EnergyDataset


@dataclass(frozen=True)
class SetData:
    """Replace the dataset. should_save=False marks a load from storage."""
    data: EnergyDataset
    should_save: bool = True


@dataclass(frozen=True)
class SetLoading:
    is_loading: bool


@dataclass(frozen=True)
class AddActivity:
    # ChartType or its string value; unknown charts make the intent a no-op
    chart: Any
    draft: ActivityDraft


@dataclass(frozen=True)
class UpdateActivity:
    chart: Any
    activity_id: str
    updates: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteActivity:
    chart: Any
    activity_id: str


@dataclass(frozen=True)
class ReorderActivities:
    chart: Any
    from_index: int
    to_index: int


@dataclass(frozen=True)
class ImportData:
    """Replace the dataset, or append activities whose id is new to the dataset."""
    data: EnergyDataset
    replace_existing: bool = True


@dataclass(frozen=True)
class ResetData:
    """Back to an empty dataset; nothing left to save."""
    pass


@dataclass(frozen=True)
class ClearAllData:
    """Back to an empty dataset, and persist the empty state."""
    pass


Intent = Union[
    SetData,
    SetLoading,
    AddActivity,
    UpdateActivity,
    DeleteActivity,
    ReorderActivities,
    ImportData,
    ResetData,
    ClearAllData,
]

# Intents that change the dataset and therefore need an auto-save
PERSISTING_INTENTS = (
    AddActivity,
    UpdateActivity,
    DeleteActivity,
    ReorderActivities,
    ImportData,
    ClearAllData,
)


def intent_name(intent: Intent) -> str:
    """SCREAMING_SNAKE name of an intent, e.g. ADD_ACTIVITY."""
    name = type(intent).__name__
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0:
            out.append("_")
        out.append(ch.upper())
    return "".join(out)
