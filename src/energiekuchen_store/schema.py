"""
Shared constants and the SQLite slot schema.

Validation limits, storage key, sharing limits and the level palette.
"""

import re

# Dataset version written by this package; also the default for
# payloads that carry no version.
DEFAULT_VERSION = "1.0"

STORAGE_KEY = "energiekuchen-data"
MAX_URL_LENGTH = 2000
APP_NAME = "energiekuchen"
SHARE_BASE_URL = "https://energiekuchen.de"

NAME_MAX_LENGTH = 50

# Letters (accented included), digits, whitespace and - _ . , ! ?
NAME_PATTERN = re.compile(r"^[\w\s\-.,!?]+$")

# Hex colour, #RGB or #RRGGBB
COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

MAX_ACTIVITIES = 20

# Level range of the activity entry flow (matches the nine-step palette)
ENTRY_MIN_LEVEL = 1
ENTRY_MAX_LEVEL = 9
DEFAULT_LEVEL = 5

# Level range enforced when importing or loading stored data
IMPORT_MIN_LEVEL = 1
IMPORT_MAX_LEVEL = 5

# Per-activity fields from older releases, dropped on load and import
LEGACY_ACTIVITY_FIELDS = (
    "color",
    "createdAt",
    "updatedAt",
    "created_at",
    "updated_at",
    "timestamp",
    "details",
)

# Chart and root level fields from older releases
LEGACY_CHART_FIELDS = ("id", "type", "size")
LEGACY_ROOT_FIELDS = ("lastModified",)

# Level 1 (lightest) to level 9 (darkest)
ENERGY_LEVEL_COLORS = {
    "positive": [
        "oklch(0.962 0.044 156.743)",  # green-100
        "oklch(0.925 0.084 155.995)",  # green-200
        "oklch(0.871 0.15 154.449)",   # green-300
        "oklch(0.792 0.209 151.711)",  # green-400
        "oklch(0.723 0.219 149.579)",  # green-500
        "oklch(0.627 0.194 149.214)",  # green-600
        "oklch(0.527 0.154 150.069)",  # green-700
        "oklch(0.448 0.119 151.328)",  # green-800
        "oklch(0.393 0.095 152.535)",  # green-900
    ],
    "negative": [
        "oklch(0.936 0.032 17.717)",   # red-100
        "oklch(0.885 0.062 18.334)",   # red-200
        "oklch(0.808 0.114 19.571)",   # red-300
        "oklch(0.704 0.191 22.216)",   # red-400
        "oklch(0.637 0.237 25.331)",   # red-500
        "oklch(0.577 0.245 27.325)",   # red-600
        "oklch(0.505 0.213 27.518)",   # red-700
        "oklch(0.444 0.177 26.899)",   # red-800
        "oklch(0.396 0.141 25.723)",   # red-900
    ],
}

EMPTY_CHART_COLOR = "oklch(0.967 0.003 264.542)"  # gray-100
EMPTY_CHART_HOVER_COLOR = "oklch(0.985 0.002 247.839)"  # gray-50
SLICE_BORDER_COLOR = "#fff"

# One row per storage key; every write replaces the whole value
CREATE_SLOTS_TABLE = """
CREATE TABLE IF NOT EXISTS slots (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def get_all_schema_sql() -> str:
    """Get all SQL statements to create the schema."""
    return "\n".join([
        CREATE_SLOTS_TABLE,
    ])
