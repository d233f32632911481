"""
The reducer - the activity state machine.

reduce(state, intent) computes the next EnergyState from the current one.
It never mutates its input; unchanged states are returned as the same
object so callers can detect no-ops with `is`.

The reducer does not validate names or values. That happens at the
boundary (EnergyManager, import) before an intent is dispatched.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Type

from .calculations import generate_unique_id
from .intents import (
    AddActivity,
    ClearAllData,
    DeleteActivity,
    ImportData,
    Intent,
    ReorderActivities,
    ResetData,
    SetData,
    SetLoading,
    UpdateActivity,
)
from .models import Activity, Chart, ChartType, EnergyDataset, EnergyState

IdFactory = Callable[[], str]

# Fields an update may change; id is fixed for the life of an activity
UPDATABLE_FIELDS = ("name", "value")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fresh_id(dataset: EnergyDataset, id_factory: IdFactory) -> str:
    used = dataset.all_ids()
    activity_id = id_factory()
    while activity_id in used:
        activity_id = id_factory()
    return activity_id


def _with_activities(
    state: EnergyState,
    chart: ChartType,
    activities: List[Activity],
) -> EnergyState:
    data = state.data.with_chart(chart, Chart(tuple(activities)))
    return replace(state, data=data, last_saved=_now())


def _set_data(state: EnergyState, intent: SetData, id_factory: IdFactory) -> EnergyState:
    if intent.should_save:
        return replace(state, data=intent.data, last_saved=_now())
    # Loaded from storage: nothing to save, and loading is over
    return replace(state, data=intent.data, is_loading=False)


def _set_loading(state: EnergyState, intent: SetLoading, id_factory: IdFactory) -> EnergyState:
    return replace(state, is_loading=intent.is_loading)


def _add_activity(state: EnergyState, intent: AddActivity, id_factory: IdFactory) -> EnergyState:
    chart = ChartType.parse(intent.chart)
    if chart is None:
        return state

    activity = Activity(
        id=_fresh_id(state.data, id_factory),
        name=intent.draft.name,
        value=intent.draft.value,
    )
    activities = list(state.data.chart(chart).activities)
    activities.append(activity)
    return _with_activities(state, chart, activities)


def _update_activity(state: EnergyState, intent: UpdateActivity, id_factory: IdFactory) -> EnergyState:
    chart = ChartType.parse(intent.chart)
    if chart is None:
        return state

    current = state.data.chart(chart)
    if current.get(intent.activity_id) is None:
        return state

    changes = {k: v for k, v in intent.updates.items() if k in UPDATABLE_FIELDS}
    activities = [
        a.copy(**changes) if a.id == intent.activity_id else a
        for a in current.activities
    ]
    return _with_activities(state, chart, activities)


def _delete_activity(state: EnergyState, intent: DeleteActivity, id_factory: IdFactory) -> EnergyState:
    chart = ChartType.parse(intent.chart)
    if chart is None:
        return state

    current = state.data.chart(chart)
    if current.get(intent.activity_id) is None:
        return state

    activities = [a for a in current.activities if a.id != intent.activity_id]
    return _with_activities(state, chart, activities)


def _reorder_activities(state: EnergyState, intent: ReorderActivities, id_factory: IdFactory) -> EnergyState:
    """
    Move one activity.

    An out-of-range from_index is a no-op; to_index is clamped into the
    sequence, so nothing is ever dropped or duplicated.
    """
    chart = ChartType.parse(intent.chart)
    if chart is None:
        return state

    activities = list(state.data.chart(chart).activities)
    if not 0 <= intent.from_index < len(activities):
        return state

    to_index = max(0, min(intent.to_index, len(activities) - 1))
    if to_index == intent.from_index:
        return state

    moved = activities.pop(intent.from_index)
    activities.insert(to_index, moved)
    return _with_activities(state, chart, activities)


def _import_data(state: EnergyState, intent: ImportData, id_factory: IdFactory) -> EnergyState:
    if intent.replace_existing:
        return replace(state, data=intent.data, last_saved=_now())

    # Merge: keep existing activities, append incoming ones whose id is new
    # to the whole dataset
    existing_ids = state.data.all_ids()
    data = replace(state.data, version=intent.data.version)
    for chart in ChartType:
        existing = state.data.chart(chart)
        incoming = [
            a for a in intent.data.chart(chart).activities
            if a.id not in existing_ids
        ]
        data = data.with_chart(chart, Chart(existing.activities + tuple(incoming)))
    return replace(state, data=data, last_saved=_now())


def _reset_data(state: EnergyState, intent: ResetData, id_factory: IdFactory) -> EnergyState:
    return replace(state, data=EnergyDataset.empty(state.data.version), last_saved=None)


def _clear_all_data(state: EnergyState, intent: ClearAllData, id_factory: IdFactory) -> EnergyState:
    return replace(state, data=EnergyDataset.empty(state.data.version), last_saved=_now())


_HANDLERS: Dict[Type, Callable] = {
    SetData: _set_data,
    SetLoading: _set_loading,
    AddActivity: _add_activity,
    UpdateActivity: _update_activity,
    DeleteActivity: _delete_activity,
    ReorderActivities: _reorder_activities,
    ImportData: _import_data,
    ResetData: _reset_data,
    ClearAllData: _clear_all_data,
}


def handled_intents() -> tuple:
    """Intent types the reducer knows how to apply."""
    return tuple(_HANDLERS)


def reduce(
    state: EnergyState,
    intent: Intent,
    id_factory: Optional[IdFactory] = None,
) -> EnergyState:
    """
    Apply one intent.

    Args:
        state: Current state (not modified)
        intent: One of the Intent members
        id_factory: Id generator for new activities (defaults to
            generate_unique_id); ids already in the dataset are retried

    Returns:
        The next state, or `state` itself when the intent is a no-op

    Raises:
        TypeError: If intent is not an Intent member
    """
    handler = _HANDLERS.get(type(intent))
    if handler is None:
        raise TypeError(f"Unknown intent: {intent!r}")
    return handler(state, intent, id_factory or generate_unique_id)
