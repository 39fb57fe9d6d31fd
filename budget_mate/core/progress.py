"""Progress and status evaluation for envelopes.

Pure functions: due-date copy, over/under status against an expected
balance, and the "where should I be by now" health check.
"""

import math
from datetime import date
from typing import Optional

from budget_mate.core.frequency import last_due_date, pays_between
from budget_mate.models.results import DueProgress, EnvelopeHealth
from budget_mate.models.schemas import Envelope, Frequency

# Balances within a cent of the expected value count as on track
STATUS_TOLERANCE = 0.01

# Gaps smaller than half a cent are float noise, not a real shortfall
_GAP_EPSILON = 0.005

# Envelopes without a due date sort after everything else
_NO_DUE_DATE_SCORE = 9999.0


def parse_due_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO date or timestamp string. Returns ``None`` if unusable."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def due_progress(due_date_iso: Optional[str], today: Optional[date] = None) -> DueProgress:
    """Relative copy for a due date, counted in calendar days from *today*.

    A missing or unparseable date gives an empty label rather than an error.
    """
    due = parse_due_date(due_date_iso)
    if due is None:
        return DueProgress(label="")

    today = today or date.today()
    days = (due - today).days
    formatted = due.strftime("%d/%m/%Y")

    if days < 0:
        label = "Overdue"
    elif days == 0:
        label = "Today!"
    elif days == 1:
        label = "Tomorrow"
    elif days <= 7:
        label = f"In {days} days"
    elif days <= 14:
        label = "Next week"
    elif days <= 30:
        label = f"In {math.ceil(days / 7)} weeks"
    else:
        label = f"In {math.ceil(days / 30)} months"

    return DueProgress(label=label, formatted=formatted, days_until=days)


def expected_balance(opening_balance: float, contribution: float) -> float:
    """Balance expected after one pay cycle's contribution."""
    return opening_balance + contribution


def determine_status(current_balance: float, expected: float) -> str:
    """Classify a balance against its expected value.

    Returns ``"under"`` or ``"over"`` when the difference exceeds
    :data:`STATUS_TOLERANCE`, otherwise ``"on-track"``.
    """
    if current_balance < expected - STATUS_TOLERANCE:
        return "under"
    if current_balance > expected + STATUS_TOLERANCE:
        return "over"
    return "on-track"


def gap_status(gap: float) -> str:
    """``ahead`` for a negative gap (saved more than needed), ``behind`` for positive.

    Gaps within half a cent of zero (:data:`_GAP_EPSILON`) are ``on-track``
    on both sides, so a gap of ``-0.004`` is ``on-track``, not ``ahead``.
    """
    if gap < -_GAP_EPSILON:
        return "ahead"
    if gap > _GAP_EPSILON:
        return "behind"
    return "on-track"


def envelope_health(
    envelope: Envelope,
    pay_cycle: Frequency,
    today: Optional[date] = None,
) -> EnvelopeHealth:
    """Compare an envelope's balance to what should be saved by *today*.

    The saving period runs from the previous due date to the next one.
    The per-pay amount spreads the target evenly across the pays in that
    period, and the amount that should have been saved is capped at the
    target.
    """
    today = today or date.today()
    due = parse_due_date(envelope.due)
    total_due = envelope.target_amount
    current = envelope.current_amount

    if due is None:
        return EnvelopeHealth(
            envelope_id=envelope.id,
            name=envelope.name,
            priority=envelope.priority,
            due_date=None,
            total_due_amount=total_due,
            current_balance=current,
            should_have_saved=0.0,
            gap=0.0,
            gap_status="on-track",
            percent_complete=100.0,
            regular_per_pay=envelope.pay_cycle_amount,
            days_until_due=None,
            pays_until_due=None,
            priority_score=_NO_DUE_DATE_SCORE,
            priority_reason="No due date set",
        )

    period_start = last_due_date(due, envelope.frequency)
    pays_since_start = pays_between(period_start, today, pay_cycle)
    pays_in_period = pays_between(period_start, due, pay_cycle)

    regular_per_pay = total_due / pays_in_period if pays_in_period > 0 else 0.0
    should_have_saved = min(regular_per_pay * pays_since_start, total_due)

    gap = should_have_saved - current
    status = gap_status(gap)
    percent = (current / should_have_saved * 100) if should_have_saved > 0 else 100.0

    days_until_due = (due - today).days
    pays_until_due = pays_between(today, due, pay_cycle)

    urgency = max(1, 100 - days_until_due)
    gap_weight = (gap / total_due * 100) if gap > 0 and total_due > 0 else 0.0

    if status == "ahead":
        reason = f"On track with ${abs(gap):,.2f} buffer"
    elif status == "on-track":
        reason = "On track for due date"
    else:
        reason = f"{days_until_due} days until due, ${gap:,.2f} behind schedule"

    return EnvelopeHealth(
        envelope_id=envelope.id,
        name=envelope.name,
        priority=envelope.priority,
        due_date=due.isoformat(),
        total_due_amount=total_due,
        current_balance=current,
        should_have_saved=should_have_saved,
        gap=gap,
        gap_status=status,
        percent_complete=percent,
        regular_per_pay=regular_per_pay,
        days_until_due=days_until_due,
        pays_until_due=pays_until_due,
        priority_score=urgency + gap_weight,
        priority_reason=reason,
    )


def all_envelope_health(
    envelopes: list[Envelope],
    pay_cycle: Frequency,
    today: Optional[date] = None,
) -> list[EnvelopeHealth]:
    """Health checks for every expense envelope (income and holding envelopes skipped)."""
    today = today or date.today()
    return [
        envelope_health(env, pay_cycle, today)
        for env in envelopes
        if env.envelope_type == "expense" and not env.is_cc_holding
    ]
