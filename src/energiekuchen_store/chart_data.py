"""
Chart data for pie renderers.

Turns a chart's activities into labels, slice weights and colours.
Slice weight doubles with every level, so level 5 is sixteen times the
size of level 1.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .models import Activity, ChartType
from .schema import (
    EMPTY_CHART_COLOR,
    EMPTY_CHART_HOVER_COLOR,
    ENERGY_LEVEL_COLORS,
    SLICE_BORDER_COLOR,
)

EMPTY_LABEL = "No activities"


@dataclass
class ChartData:
    """Everything a renderer needs to draw one pie."""
    labels: List[str] = field(default_factory=list)
    data: List[int] = field(default_factory=list)
    background_colors: List[str] = field(default_factory=list)
    border_colors: List[str] = field(default_factory=list)
    hover_background_colors: List[str] = field(default_factory=list)
    border_width: int = 2


def get_color_for_level(level: int, chart: Any) -> str:
    """Palette colour for a level, clamped to 1-9."""
    chart = ChartType.require(chart)
    clamped = max(1, min(9, abs(int(level))))
    return ENERGY_LEVEL_COLORS[chart.value][clamped - 1]


def slice_weight(value: int) -> int:
    return 2 ** (abs(value) - 1) if value else 0


def _shade(color: str, delta: float) -> str:
    sign = "+" if delta >= 0 else "-"
    return f"oklch(from {color} calc(l {sign} {abs(delta)}) c h)"


def build_chart_data(
    activities: Sequence[Activity],
    chart: Any,
    editing_id: Optional[str] = None,
) -> ChartData:
    """
    Build pie data for a chart.

    An empty chart yields a single grey placeholder slice. The slice of
    the activity being edited (editing_id) gets a darker border.
    """
    if not activities:
        return ChartData(
            labels=[EMPTY_LABEL],
            data=[1],
            background_colors=[EMPTY_CHART_COLOR],
            border_colors=[SLICE_BORDER_COLOR],
            hover_background_colors=[EMPTY_CHART_HOVER_COLOR],
        )

    result = ChartData()
    for activity in activities:
        color = get_color_for_level(activity.value, chart)
        result.labels.append(activity.name)
        result.data.append(slice_weight(activity.value))
        result.background_colors.append(color)
        result.hover_background_colors.append(_shade(color, 0.1))
        if editing_id is not None and activity.id == editing_id:
            result.border_colors.append(_shade(color, -0.1))
        else:
            result.border_colors.append(SLICE_BORDER_COLOR)
    return result
