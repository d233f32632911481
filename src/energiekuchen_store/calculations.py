"""
Aggregate calculations over activities.
"""

import math
import time
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .models import Activity, Chart

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class EnergyBalance:
    """Totals of both charts and their difference."""
    positive_total: int
    negative_total: int
    balance: int
    balance_percentage: int

    def to_dict(self) -> dict:
        return {
            "positiveTotal": self.positive_total,
            "negativeTotal": self.negative_total,
            "balance": self.balance,
            "balancePercentage": self.balance_percentage,
        }


def calculate_total_energy(activities: Iterable[Activity]) -> int:
    return sum(activity.value for activity in activities)


def calculate_percentage(value: float, total: float) -> int:
    """value/total as a whole percentage, half rounded up; 0 when total is 0."""
    if total == 0:
        return 0
    return int(math.floor(value / total * 100 + 0.5))


def get_energy_balance(positive: Chart, negative: Chart) -> EnergyBalance:
    """
    Compare energy sources against drains.

    balance_percentage is the balance relative to all energy in play.
    """
    positive_total = calculate_total_energy(positive.activities)
    negative_total = calculate_total_energy(negative.activities)
    balance = positive_total - negative_total
    return EnergyBalance(
        positive_total=positive_total,
        negative_total=negative_total,
        balance=balance,
        balance_percentage=calculate_percentage(balance, positive_total + negative_total),
    )


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_unique_id() -> str:
    """
    Time-based prefix plus a random suffix, URL-safe.

    Collisions are unlikely but possible; callers that need uniqueness
    must check against existing ids.
    """
    return _to_base36(int(time.time() * 1000)) + uuid.uuid4().hex[:11]


def sort_activities_by_value(
    activities: Sequence[Activity],
    descending: bool = True,
) -> List[Activity]:
    """Return a new list ordered by value; equal values keep their order."""
    # sorted() is stable, reverse=True included
    return sorted(activities, key=lambda a: a.value, reverse=descending)
