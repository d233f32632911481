"""
EnergyManager - the collaborator-facing entry point.

The manager owns the only live EnergyState. Every change goes through
the same path:
1. Validate the request (entry rules, chart rules)
2. Compute the next state with the reducer
3. Commit it and notify observers
4. Auto-save to storage

A failed save does not roll back the committed state; the StorageError
is raised to the caller, who must tell the user.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from .backup import write_export_file
from .calculations import EnergyBalance, get_energy_balance
from .chart_data import ChartData, build_chart_data
from .config import EnergyConfig
from .intents import (
    PERSISTING_INTENTS,
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
    intent_name,
)
from .models import (
    Activity,
    ActivityDraft,
    ChartType,
    EnergyDataset,
    EnergyState,
    StorageError,
)
from .observer import StateObserver
from .reducer import reduce
from .repository import SQLiteSlotRepository
from .schema import DEFAULT_LEVEL
from .sharing import Clipboard, ShareCodec, ShareData
from .storage import EnergyStorage, export_data
from .validation import (
    ValidationResult,
    validate_activity,
    validate_activity_name,
    validate_activity_value,
    validate_chart_activities,
)

logger = logging.getLogger(__name__)


class EnergyManager:
    """
    Owns the dataset and applies every change to it.

    Usage:
        manager = EnergyManager.from_config(load_config())
        manager.load_data()
        activity = manager.add_activity("positive", "Sport", 5)
        manager.reorder_activities("positive", 0, 2)
        link = manager.share().url
    """

    def __init__(
        self,
        storage: EnergyStorage,
        codec: Optional[ShareCodec] = None,
        observer: Optional[StateObserver] = None,
        config: Optional[EnergyConfig] = None,
        clipboard: Optional[Clipboard] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize manager with an empty dataset.

        Args:
            storage: Persistence store for auto-save and load
            codec: Share codec (built from config if None)
            observer: StateObserver for change events (new one if None)
            config: Settings (defaults if None)
            clipboard: Clipboard used by copy_share_link (default if None)
            id_factory: Id generator for new activities
        """
        self.config = config or EnergyConfig()
        self.storage = storage
        self.codec = codec or ShareCodec(
            base_url=self.config.share_base_url,
            max_url_length=self.config.max_url_length,
        )
        self.observer = observer or StateObserver()
        self.clipboard = clipboard or Clipboard()
        self._id_factory = id_factory
        self._state = EnergyState(data=EnergyDataset.empty(self.config.data_version))

    @classmethod
    def from_config(cls, config: EnergyConfig, **kwargs) -> "EnergyManager":
        """Build a manager backed by the SQLite slot named in config."""
        storage = EnergyStorage(
            SQLiteSlotRepository(config.storage_path),
            key=config.storage_key,
            min_level=config.import_min_level,
            max_level=config.import_max_level,
            max_activities=config.max_activities,
            default_version=config.data_version,
        )
        return cls(storage, config=config, **kwargs)

    # -- read access -------------------------------------------------------

    @property
    def state(self) -> EnergyState:
        return self._state

    @property
    def data(self) -> EnergyDataset:
        return self._state.data

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def last_saved(self) -> Optional[str]:
        return self._state.last_saved

    def get_balance(self) -> EnergyBalance:
        return get_energy_balance(self.data.positive, self.data.negative)

    # -- dispatch ----------------------------------------------------------

    def dispatch(self, intent: Intent) -> EnergyState:
        """
        Apply an intent without boundary validation.

        Returns:
            The new state (unchanged when the intent was a no-op)

        Raises:
            StorageError: If the auto-save fails; the state stays committed
        """
        return self._commit(intent, reduce(self._state, intent, self._id_factory))

    def _commit(self, intent: Intent, next_state: EnergyState) -> EnergyState:
        if next_state is self._state:
            return next_state

        previous = self._state
        self._state = next_state
        logger.debug("Committed %s", intent_name(intent))
        self.observer.emit(
            intent_name(intent),
            next_state,
            previous=previous,
            chart=ChartType.parse(getattr(intent, "chart", None)),
        )

        if isinstance(intent, ResetData):
            self.storage.clear()
        elif isinstance(intent, PERSISTING_INTENTS) or (
            isinstance(intent, SetData) and intent.should_save
        ):
            self.storage.save(next_state.data)

        return next_state

    def _check_charts(self, state: EnergyState) -> None:
        for chart in ChartType:
            validate_chart_activities(
                state.data.chart(chart).activities,
                self.config.max_activities,
            ).raise_if_invalid()

    def _apply_checked(self, intent: Intent) -> EnergyState:
        """Reduce, check chart invariants on the result, then commit."""
        next_state = reduce(self._state, intent, self._id_factory)
        self._check_charts(next_state)
        return self._commit(intent, next_state)

    # -- activity operations -----------------------------------------------

    def add_activity(self, chart: Any, name: str, value: int = DEFAULT_LEVEL) -> Activity:
        """
        Append a new activity to a chart.

        Raises:
            InvalidChartType: Unknown chart
            ValidationError: Invalid name or value, chart full, or name taken
        """
        chart = ChartType.require(chart)
        validate_activity(
            {"name": name, "value": value},
            self.config.entry_min_level,
            self.config.entry_max_level,
        ).raise_if_invalid()

        self._apply_checked(AddActivity(chart, ActivityDraft(name=name, value=int(value))))
        return self.data.chart(chart).activities[-1]

    def update_activity(self, chart: Any, activity_id: str, **updates) -> Optional[Activity]:
        """
        Change name and/or value of an activity.

        Returns:
            The updated activity, or None if no activity has that id

        Raises:
            ValidationError: Invalid name or value, or name taken
        """
        chart = ChartType.require(chart)
        result = ValidationResult()
        if "name" in updates:
            result.extend(validate_activity_name(updates["name"]))
        if "value" in updates:
            result.extend(validate_activity_value(
                updates["value"],
                self.config.entry_min_level,
                self.config.entry_max_level,
            ))
            if result.is_valid:
                updates["value"] = int(updates["value"])
        result.raise_if_invalid()

        self._apply_checked(UpdateActivity(chart, activity_id, dict(updates)))
        return self.data.chart(chart).get(activity_id)

    def delete_activity(self, chart: Any, activity_id: str) -> bool:
        """Remove an activity. Returns False if it did not exist."""
        chart = ChartType.require(chart)
        before = self._state
        self.dispatch(DeleteActivity(chart, activity_id))
        return self._state is not before

    def reorder_activities(self, chart: Any, from_index: int, to_index: int) -> None:
        """Move one activity; see the reducer for the index policy."""
        chart = ChartType.require(chart)
        self.dispatch(ReorderActivities(chart, from_index, to_index))

    def reset_data(self) -> None:
        """Empty the dataset and the storage slot."""
        self.dispatch(ResetData())

    def clear_all_data(self) -> None:
        """Empty the dataset and save the empty dataset."""
        self.dispatch(ClearAllData())

    # -- persistence -------------------------------------------------------

    def load_data(self) -> Optional[EnergyDataset]:
        """
        Load the stored dataset into memory.

        Corrupted data is discarded by the storage layer; the manager then
        keeps its current (empty) dataset.
        """
        self.dispatch(SetLoading(True))
        dataset = self.storage.load()
        if dataset is not None:
            self.dispatch(SetData(dataset, should_save=False))
        else:
            self.dispatch(SetLoading(False))
        return dataset

    def save_data(self) -> None:
        self.storage.save(self.data)

    def import_data(self, json_string: str, replace_existing: bool = True) -> EnergyDataset:
        """
        Import a JSON document.

        Nothing changes unless the whole document is valid.

        Raises:
            ValidationError: First violation in the document, or a merge
                that would break the chart rules
        """
        dataset = self.storage.import_(json_string)
        self._apply_checked(ImportData(dataset, replace_existing))
        return dataset

    def export_data(self) -> str:
        """
        Pretty-printed JSON of the current dataset.

        The live dataset is exported, so activities entered above the
        import range are kept. The slot is never modified.

        Raises:
            StorageError: code NO_DATA when nothing is stored
        """
        if not self.storage.has_data():
            raise StorageError("No data to export", code="NO_DATA")
        return export_data(self.data)

    # -- sharing -----------------------------------------------------------

    def share(self) -> ShareData:
        """Encode the current dataset into a share link."""
        return self.codec.generate_share_data(self.data)

    def copy_share_link(self) -> ShareData:
        """Encode the dataset and copy the link to the clipboard."""
        share = self.share()
        self.clipboard.copy(share.url)
        return share

    def import_shared(self, encoded: str, replace_existing: bool = True) -> EnergyDataset:
        """
        Take over the data of a share link.

        Raises:
            ShareError: The payload could not be decoded
            ValidationError: A shared activity breaks the entry rules
        """
        dataset = self.codec.decode_share_data(encoded)
        for chart in ChartType:
            for activity in dataset.chart(chart).activities:
                validate_activity(
                    activity,
                    self.config.entry_min_level,
                    self.config.entry_max_level,
                ).raise_if_invalid()
        self._apply_checked(ImportData(dataset, replace_existing))
        return dataset

    # -- presentation helpers ---------------------------------------------

    def chart_data(self, chart: Any, editing_id: Optional[str] = None) -> ChartData:
        """Pie data for one chart of the current dataset."""
        chart = ChartType.require(chart)
        return build_chart_data(self.data.chart(chart).activities, chart, editing_id)

    def export_to_file(self, directory: Path) -> Path:
        """Write the current dataset to <app>-<date>.json in directory."""
        return write_export_file(self.export_data(), directory, app_name=self.config.app_name)
