"""Frequency normalisation: annualising targets and per-pay contributions.

All money stays at full float precision here. Rounding happens only when
values are formatted or exported.
"""

import math
from datetime import date, timedelta
from typing import Any

from budget_mate.models.schemas import Frequency

OCCURRENCES_PER_YEAR: dict[Frequency, int] = {
    Frequency.WEEKLY: 52,
    Frequency.FORTNIGHTLY: 26,
    Frequency.MONTHLY: 12,
    Frequency.QUARTERLY: 4,
    Frequency.ANNUALLY: 1,
    Frequency.NONE: 0,
}

# Older rows and the scenario planner used these spellings
_ALIASES = {
    "annual": Frequency.ANNUALLY,
    "yearly": Frequency.ANNUALLY,
    "once": Frequency.NONE,
}

_LABELS = {
    Frequency.WEEKLY: "Weekly",
    Frequency.FORTNIGHTLY: "Fortnightly",
    Frequency.MONTHLY: "Monthly",
    Frequency.QUARTERLY: "Quarterly",
    Frequency.ANNUALLY: "Annually",
    Frequency.NONE: "None",
}

# Average days per period, used to count pay cycles between dates
_DAYS_PER_PERIOD = {
    Frequency.WEEKLY: 7.0,
    Frequency.FORTNIGHTLY: 14.0,
    Frequency.MONTHLY: 30.44,
    Frequency.QUARTERLY: 91.31,
    Frequency.ANNUALLY: 365.25,
}


class InvalidFrequency(ValueError):
    """Raised when a frequency value is not one of the supported cycles."""

    def __init__(self, value: Any):
        self.value = value
        allowed = ", ".join(f.value for f in Frequency)
        super().__init__(f"Unknown frequency {value!r}. Expected one of: {allowed}")


def parse_frequency(value: Any) -> Frequency:
    """Coerce *value* to a :class:`Frequency`.

    Accepts enum members, their string values in any case, and a few
    legacy aliases. Raises :class:`InvalidFrequency` for anything else
    rather than defaulting, since a silent zero would corrupt every
    contribution derived from it.
    """
    if isinstance(value, Frequency):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return Frequency(key)
        except ValueError:
            pass
    raise InvalidFrequency(value)


def occurrences_per_year(frequency: Frequency | str) -> int:
    return OCCURRENCES_PER_YEAR[parse_frequency(frequency)]


def frequency_label(frequency: Frequency | str) -> str:
    """Display label, e.g. ``"Fortnightly"``."""
    return _LABELS[parse_frequency(frequency)]


def annualize(amount: float, frequency: Frequency | str) -> float:
    """Convert an amount due every *frequency* into a yearly total.

    ``none`` yields 0. Negative amounts are passed through; call sites
    validate input.
    """
    return amount * occurrences_per_year(frequency)


def required_contribution(annual_amount: float, pay_frequency: Frequency | str) -> float:
    """Per-pay amount needed to cover *annual_amount*.

    A ``none`` pay frequency yields 0 instead of dividing by zero.
    """
    cycles = occurrences_per_year(pay_frequency)
    if cycles == 0:
        return 0.0
    return annual_amount / cycles


def pays_between(start: date, end: date, pay_cycle: Frequency | str) -> int:
    """Number of pay cycles between two dates, rounded up.

    Returns 0 for a ``none`` cycle or when *end* is not after *start*.
    """
    cycle = parse_frequency(pay_cycle)
    days = (end - start).days
    if cycle == Frequency.NONE or days <= 0:
        return 0
    return math.ceil(days / _DAYS_PER_PERIOD[cycle])


def _shift_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp to the last day of the target month
    if month == 12:
        last_day = 31
    else:
        last_day = (date(year, month + 1, 1) - timedelta(days=1)).day
    return date(year, month, min(d.day, last_day))


def last_due_date(next_due: date, frequency: Frequency | str) -> date:
    """The previous due date, i.e. the start of the current saving period.

    One-off (``none``) envelopes are treated as saved for over a year.
    """
    freq = parse_frequency(frequency)
    if freq == Frequency.WEEKLY:
        return next_due - timedelta(days=7)
    if freq == Frequency.FORTNIGHTLY:
        return next_due - timedelta(days=14)
    if freq == Frequency.MONTHLY:
        return _shift_months(next_due, -1)
    if freq == Frequency.QUARTERLY:
        return _shift_months(next_due, -3)
    return _shift_months(next_due, -12)


def pay_cycles_per_month(pay_cycle: Frequency | str) -> float:
    return occurrences_per_year(pay_cycle) / 12


def pay_cycles_in_months(months: int, pay_cycle: Frequency | str) -> int:
    """Whole pay cycles that fit in *months*, e.g. 3 months fortnightly -> 6."""
    return math.floor(months * occurrences_per_year(pay_cycle) / 12)
