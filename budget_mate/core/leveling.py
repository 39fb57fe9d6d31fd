"""Leveled (seasonal) bill calculations.

Leveling saves the same amount every pay for a bill that swings with the
seasons, such as power or gas, so the winter bills are covered by money
put aside over summer. Seasons are southern hemisphere: winter is June to
August and summer is December to February.

Months are numbered 1-12 and ``monthly_amounts`` starts at January.
"""

from datetime import date
from typing import Optional

from budget_mate.core.frequency import required_contribution
from budget_mate.models.results import LeveledBill, LevelingBenefit, LevelingBufferStatus
from budget_mate.models.schemas import (
    DEFAULT_BUFFER_PERCENT,
    Envelope,
    Frequency,
    LevelingData,
    parse_amount,
)

WINTER_MONTHS = (6, 7, 8)
SUMMER_MONTHS = (12, 1, 2)
SEASONAL_PATTERNS = ("winter-peak", "summer-peak")

# Percent of the expected balance at which each buffer status starts
AHEAD_PERCENT = 110.0
ON_TRACK_PERCENT = 90.0
BEHIND_PERCENT = 50.0


def _check_month(month: int) -> int:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return month


def _peak_and_low_months(pattern: str) -> tuple[tuple[int, ...], tuple[int, ...]]:
    if pattern == "winter-peak":
        return WINTER_MONTHS, SUMMER_MONTHS
    if pattern == "summer-peak":
        return SUMMER_MONTHS, WINTER_MONTHS
    raise ValueError(
        f"Unknown seasonal pattern {pattern!r}. Expected one of: {', '.join(SEASONAL_PATTERNS)}"
    )


def leveling_from_monthly_amounts(
    monthly_amounts: list[float],
    buffer_percent: float = DEFAULT_BUFFER_PERCENT,
    today: Optional[date] = None,
) -> LevelingData:
    """Leveling data from a year of actual bills."""
    if len(monthly_amounts) != 12:
        raise ValueError("Must provide exactly 12 monthly amounts")
    amounts = [
        parse_amount(a, "monthly_amounts", allow_negative=False, default=None)
        for a in monthly_amounts
    ]
    return LevelingData(
        monthly_amounts=amounts,
        yearly_average=sum(amounts) / 12,
        buffer_percent=buffer_percent,
        estimation_type="12-month",
        last_updated=(today or date.today()).isoformat(),
    )


def leveling_from_quick_estimate(
    high_season_amount: float,
    low_season_amount: float,
    pattern: str,
    buffer_percent: float = DEFAULT_BUFFER_PERCENT,
    today: Optional[date] = None,
) -> LevelingData:
    """Leveling data from a typical peak-season and low-season bill.

    Peak months get the high estimate, low months the low estimate, and
    the shoulder months in between get the midpoint.
    """
    high = parse_amount(high_season_amount, "high_season_amount", allow_negative=False, default=None)
    low = parse_amount(low_season_amount, "low_season_amount", allow_negative=False, default=None)
    peak_months, low_months = _peak_and_low_months(pattern)
    shoulder = (high + low) / 2

    amounts = []
    for month in range(1, 13):
        if month in peak_months:
            amounts.append(high)
        elif month in low_months:
            amounts.append(low)
        else:
            amounts.append(shoulder)

    return LevelingData(
        monthly_amounts=amounts,
        yearly_average=sum(amounts) / 12,
        buffer_percent=buffer_percent,
        estimation_type="quick-estimate",
        high_season_estimate=high,
        low_season_estimate=low,
        last_updated=(today or date.today()).isoformat(),
    )


def leveled_pay_cycle_amount(leveling: LevelingData, pay_frequency: Frequency) -> float:
    """Amount to save every pay: the monthly average plus buffer, spread over the year."""
    monthly_with_buffer = leveling.yearly_average * (1 + leveling.buffer_percent / 100)
    return required_contribution(monthly_with_buffer * 12, pay_frequency)


def buffer_status_for(percentage_of_expected: float) -> str:
    if percentage_of_expected >= AHEAD_PERCENT:
        return "ahead"
    if percentage_of_expected >= ON_TRACK_PERCENT:
        return "on-track"
    if percentage_of_expected >= BEHIND_PERCENT:
        return "behind"
    return "critical"


def calculate_buffer_status(
    leveling: LevelingData,
    current_balance: float,
    start_month: int = 1,
    current_month: Optional[int] = None,
) -> LevelingBufferStatus:
    """Compare a leveled envelope's balance with what should be left by now.

    Since *start_month* the envelope should have received the buffered
    average each month and paid out that month's bill, both counting the
    current month. A non-positive expected balance counts as 100%.
    """
    start_month = _check_month(start_month)
    current_month = _check_month(current_month or date.today().month)

    months_elapsed = (current_month - start_month) % 12 + 1
    spent = sum(
        leveling.monthly_amounts[(start_month - 1 + i) % 12] for i in range(months_elapsed)
    )
    saved = leveling.yearly_average * months_elapsed * (1 + leveling.buffer_percent / 100)
    expected = saved - spent

    percentage = current_balance / expected * 100 if expected > 0 else 100.0
    return LevelingBufferStatus(
        expected_balance=expected,
        actual_balance=current_balance,
        buffer_amount=current_balance - expected,
        status=buffer_status_for(percentage),
        percentage_of_expected=percentage,
    )


def estimated_monthly_bill(leveling: LevelingData, month: int) -> float:
    return leveling.monthly_amounts[_check_month(month) - 1]


def is_high_season(pattern: Optional[str], month: int) -> bool:
    """Whether *month* is peak season. Custom or unknown patterns never are."""
    _check_month(month)
    if pattern not in SEASONAL_PATTERNS:
        return False
    peak_months, _ = _peak_and_low_months(pattern)
    return month in peak_months


def analyze_leveling_benefit(leveling: LevelingData) -> LevelingBenefit:
    """How far the bill swings around its average over the year."""
    amounts = leveling.monthly_amounts
    average = leveling.yearly_average
    peak = max(amounts)
    low = min(amounts)
    return LevelingBenefit(
        yearly_total=sum(amounts),
        monthly_average=average,
        peak_month_amount=peak,
        low_month_amount=low,
        peak_to_average_ratio=peak / average if average else 0.0,
        variation_percent=(peak - low) / average * 100 if average else 0.0,
    )


def leveled_bills(
    envelopes: list[Envelope],
    pay_frequency: Frequency,
    start_month: int = 1,
    today: Optional[date] = None,
) -> list[LeveledBill]:
    """Per-pay amount, this month's estimate and buffer status of every leveled envelope."""
    month = (today or date.today()).month
    bills = []
    for env in envelopes:
        if env.leveling_data is None:
            continue
        bills.append(LeveledBill(
            envelope_id=env.id,
            name=env.name,
            seasonal_pattern=env.seasonal_pattern,
            per_pay=leveled_pay_cycle_amount(env.leveling_data, pay_frequency),
            estimated_this_month=estimated_monthly_bill(env.leveling_data, month),
            in_high_season=is_high_season(env.seasonal_pattern, month),
            buffer=calculate_buffer_status(
                env.leveling_data, env.current_amount, start_month, month
            ),
        ))
    return bills
