"""
energiekuchen-store: data engine for energy source/drain charts.

Activities are recorded in two charts (positive and negative), kept in a
local storage slot, and can be shared as a self-contained link.

- EnergyManager: owns the dataset and applies every change
- EnergyStorage: load/save/import/export of the storage slot
- ShareCodec: share links in both directions
"""

from .models import (
    Activity,
    ActivityDraft,
    Chart,
    ChartType,
    EnergyDataset,
    EnergyState,
    EnergyError,
    ValidationError,
    InvalidChartType,
    StorageError,
    ShareError,
    ClipboardError,
    ConfigError,
)
from .validation import (
    ValidationResult,
    validate_activity,
    validate_activity_name,
    validate_activity_value,
    validate_chart_activities,
)
from .calculations import (
    EnergyBalance,
    calculate_percentage,
    calculate_total_energy,
    generate_unique_id,
    get_energy_balance,
    sort_activities_by_value,
)
from .repository import SlotRepository, SQLiteSlotRepository, MemorySlotRepository
from .storage import EnergyStorage, export_data, import_data
from .sharing import Clipboard, ShareCodec, ShareData, copy_to_clipboard
from .intents import (
    Intent,
    SetData,
    SetLoading,
    AddActivity,
    UpdateActivity,
    DeleteActivity,
    ReorderActivities,
    ImportData,
    ResetData,
    ClearAllData,
)
from .reducer import reduce
from .observer import StateObserver, StateEvent
from .config import EnergyConfig, load_config
from .manager import EnergyManager
from . import backup

__version__ = "0.1.0"
__all__ = [
    # Model
    "Activity",
    "ActivityDraft",
    "Chart",
    "ChartType",
    "EnergyDataset",
    "EnergyState",
    # Errors
    "EnergyError",
    "ValidationError",
    "InvalidChartType",
    "StorageError",
    "ShareError",
    "ClipboardError",
    "ConfigError",
    # Validation
    "ValidationResult",
    "validate_activity",
    "validate_activity_name",
    "validate_activity_value",
    "validate_chart_activities",
    # Calculations
    "EnergyBalance",
    "calculate_percentage",
    "calculate_total_energy",
    "generate_unique_id",
    "get_energy_balance",
    "sort_activities_by_value",
    # Persistence
    "SlotRepository",
    "SQLiteSlotRepository",
    "MemorySlotRepository",
    "EnergyStorage",
    "export_data",
    "import_data",
    "backup",
    # Sharing
    "Clipboard",
    "ShareCodec",
    "ShareData",
    "copy_to_clipboard",
    # State machine
    "Intent",
    "SetData",
    "SetLoading",
    "AddActivity",
    "UpdateActivity",
    "DeleteActivity",
    "ReorderActivities",
    "ImportData",
    "ResetData",
    "ClearAllData",
    "reduce",
    "StateObserver",
    "StateEvent",
    "EnergyManager",
    # Config
    "EnergyConfig",
    "load_config",
]
