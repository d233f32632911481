"""
Validation rules for activities and charts.

Every function here is pure: it inspects plain values and returns a
ValidationResult listing every violation, in the order the checks run.
Nothing is deduplicated or reordered, so callers (and tests) can rely on
the first error being the most basic one.

Two level ranges exist side by side: the entry flow accepts 1-9, the
import/storage flow accepts 1-5. The range is always a parameter here;
callers pick the one that applies to them.
"""

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional

from .models import ValidationError
from .schema import (
    COLOR_PATTERN,
    ENTRY_MAX_LEVEL,
    ENTRY_MIN_LEVEL,
    MAX_ACTIVITIES,
    NAME_MAX_LENGTH,
    NAME_PATTERN,
)


@dataclass
class ValidationResult:
    """Outcome of a validation: messages and their codes, in check order."""
    errors: List[str] = field(default_factory=list)
    codes: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add(self, code: str, message: str) -> None:
        self.codes.append(code)
        self.errors.append(message)

    def extend(self, other: "ValidationResult") -> None:
        self.codes.extend(other.codes)
        self.errors.extend(other.errors)

    def raise_if_invalid(self) -> None:
        """Raise ValidationError for the first violation, if any."""
        if not self.is_valid:
            raise ValidationError(self.errors[0], code=self.codes[0])


def is_number(value: Any) -> bool:
    """True for ints and floats, False for bools and everything else."""
    return isinstance(value, Real) and not isinstance(value, bool)


def is_integral(value: Any) -> bool:
    """True for ints and for floats with no fractional part."""
    if not is_number(value):
        return False
    if isinstance(value, int):
        return True
    return float(value).is_integer()


def level_range_message(min_level: int, max_level: int) -> str:
    return f"Energy level must be an integer between {min_level} and {max_level}"


def validate_activity_name(name: Any) -> ValidationResult:
    """
    Check an activity name.

    Codes:
        EMPTY: name is missing or blank
        TOO_LONG: more than 50 characters
        INVALID_CHARS: characters outside letters, digits, whitespace, - _ . , ! ?
    """
    result = ValidationResult()

    if not isinstance(name, str) or not name.strip():
        result.add("EMPTY", "Activity name must not be empty")
        return result

    if len(name) > NAME_MAX_LENGTH:
        result.add(
            "TOO_LONG",
            f"Activity name must be at most {NAME_MAX_LENGTH} characters",
        )

    if not NAME_PATTERN.match(name):
        result.add("INVALID_CHARS", "Activity name contains invalid characters")

    return result


def validate_activity_value(
    value: Any,
    min_level: int = ENTRY_MIN_LEVEL,
    max_level: int = ENTRY_MAX_LEVEL,
) -> ValidationResult:
    """
    Check an energy level against [min_level, max_level].

    Codes:
        OUT_OF_RANGE: outside the bounds
        NOT_INTEGER: fractional, or not a number at all
    """
    result = ValidationResult()

    if not is_number(value):
        result.add("NOT_INTEGER", "Energy level must be a whole number")
        return result

    if value < min_level or value > max_level:
        result.add("OUT_OF_RANGE", level_range_message(min_level, max_level))

    if not is_integral(value):
        result.add("NOT_INTEGER", "Energy level must be a whole number")

    return result


def _get(activity: Any, key: str) -> Any:
    if isinstance(activity, Mapping):
        return activity.get(key)
    return getattr(activity, key, None)


def validate_activity(
    activity: Any,
    min_level: int = ENTRY_MIN_LEVEL,
    max_level: int = ENTRY_MAX_LEVEL,
) -> ValidationResult:
    """
    Validate a whole (possibly partial) activity.

    Accepts a mapping or any object with name/value attributes. A colour
    is only checked when the activity carries one. All violations are
    collected; nothing short-circuits.
    """
    result = ValidationResult()
    result.extend(validate_activity_name(_get(activity, "name")))

    value = _get(activity, "value")
    if value is None:
        result.add("MISSING_VALUE", "Activity must have an energy level")
    else:
        result.extend(validate_activity_value(value, min_level, max_level))

    color = _get(activity, "color")
    if color is not None and not (isinstance(color, str) and COLOR_PATTERN.match(color)):
        result.add("INVALID_COLOR", "Invalid color")

    return result


def validate_chart_activities(
    activities: Iterable[Any],
    max_activities: int = MAX_ACTIVITIES,
) -> ValidationResult:
    """
    Chart-level constraints.

    Codes:
        TOO_MANY: more than max_activities entries
        DUPLICATE_NAME: two names equal ignoring case
    """
    activities = list(activities)
    result = ValidationResult()

    if len(activities) > max_activities:
        result.add("TOO_MANY", f"At most {max_activities} activities allowed")

    if find_duplicate_name(activities) is not None:
        result.add("DUPLICATE_NAME", "Activity names must be unique")

    return result


def find_duplicate_name(activities: Iterable[Any]) -> Optional[str]:
    """Return the first name that repeats (ignoring case), or None."""
    seen = set()
    for activity in activities:
        name = _get(activity, "name")
        if not isinstance(name, str):
            continue
        if name.casefold() in seen:
            return name
        seen.add(name.casefold())
    return None
