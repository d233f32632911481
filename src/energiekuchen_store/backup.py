"""
Export and import files.

Export files are pretty-printed JSON named <app>-<YYYY-MM-DD>.json.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from .models import EnergyDataset
from .schema import APP_NAME
from .storage import EnergyStorage, export_data


def get_export_filename(app_name: str = APP_NAME, when: Optional[date] = None) -> str:
    """
    File name for an export made on the given day (today by default).

    Example: energiekuchen-2025-03-14.json
    """
    when = when or datetime.now().date()
    if isinstance(when, datetime):
        when = when.date()
    return f"{app_name}-{when.isoformat()}.json"


def write_export_file(
    source: Union[EnergyStorage, EnergyDataset, str],
    directory: Path,
    app_name: str = APP_NAME,
    when: Optional[date] = None,
) -> Path:
    """
    Write an export file.

    Args:
        source: A storage (its stored dataset is exported), a dataset, or
            already exported JSON text
        directory: Where to write the file
        app_name: File name prefix
        when: Date used in the file name (today by default)

    Returns:
        Path to the written file

    Raises:
        StorageError: code NO_DATA when source is a storage with nothing stored
    """
    if isinstance(source, EnergyStorage):
        content = source.export()
    elif isinstance(source, EnergyDataset):
        content = export_data(source)
    else:
        content = source

    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / get_export_filename(app_name, when)

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
        f.write("\n")

    return path


def read_import_file(path: Path) -> str:
    """Read an export file back as text, ready for import."""
    with open(Path(path).expanduser(), "r", encoding="utf-8") as f:
        return f.read()
