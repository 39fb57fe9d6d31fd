"""What-if scenario projection.

A scenario cuts the per-pay contribution of lower-priority envelopes by a
percentage and redirects the savings at envelopes that are behind.
Essential envelopes are never reduced, whatever the scenario asks for.
"""

import math
from datetime import date
from typing import Optional

from budget_mate.core.frequency import pay_cycles_in_months, pay_cycles_per_month
from budget_mate.core.progress import all_envelope_health, gap_status
from budget_mate.models.results import (
    EnvelopeHealth,
    ImpactedEnvelope,
    Scenario,
    ScenarioProjection,
    ScenarioResult,
)
from budget_mate.models.schemas import Envelope, Frequency, Priority


def common_scenarios(pay_cycle: Frequency) -> list[Scenario]:
    """The built-in scenario catalog, with horizons expressed in pays of *pay_cycle*."""
    three_months = pay_cycles_in_months(3, pay_cycle)
    six_months = pay_cycles_in_months(6, pay_cycle)

    return [
        Scenario(
            id="pause-discretionary",
            name="Pause All Discretionary",
            description="Cut all non-essential spending for 3 months",
            duration=three_months,
            affected_priorities=(Priority.DISCRETIONARY,),
            reduction=1.0,
        ),
        Scenario(
            id="reduce-discretionary-half",
            name="Reduce Discretionary by Half",
            description="Keep some treats, but dial back significantly",
            duration=three_months,
            affected_priorities=(Priority.DISCRETIONARY,),
            reduction=0.5,
        ),
        Scenario(
            id="pause-subscriptions",
            name="Subscription Audit",
            description="Pause streaming services and subscriptions for 6 months",
            duration=six_months,
            affected_priorities=(Priority.DISCRETIONARY,),
            reduction=1.0,
            specific_envelopes=("Netflix", "Spotify", "Disney", "Gym", "Subscription"),
        ),
        Scenario(
            id="no-eating-out",
            name="No Takeaways & Eating Out",
            description="Cook at home for 3 months",
            duration=three_months,
            affected_priorities=(Priority.DISCRETIONARY,),
            reduction=1.0,
            specific_envelopes=("Eating Out", "Takeaway", "Restaurant", "Hospitality"),
        ),
        Scenario(
            id="intense-sprint",
            name="Intense 3-Month Sprint",
            description="Essentials only - aggressive buffer building",
            duration=three_months,
            affected_priorities=(Priority.DISCRETIONARY, Priority.IMPORTANT),
            reduction=1.0,
        ),
    ]


def select_affected_envelopes(envelopes: list[Envelope], scenario: Scenario) -> list[Envelope]:
    """Envelopes a scenario reduces. Essential envelopes are always excluded."""
    affected = [
        env for env in envelopes
        if env.priority != Priority.ESSENTIAL
        and env.priority in scenario.affected_priorities
        and not env.is_cc_holding
    ]
    if scenario.specific_envelopes:
        fragments = [s.lower() for s in scenario.specific_envelopes]
        affected = [
            env for env in affected
            if any(f in env.name.lower() for f in fragments)
        ]
    return affected


def reduce_contribution(current_per_pay: float, reduction: float) -> tuple[float, float]:
    """Return ``(new_per_pay, saved_per_pay)``; neither ever goes below zero."""
    current = max(0.0, current_per_pay)
    new = max(0.0, current * (1 - reduction))
    return new, current - new


def time_to_close_gap(current_gap: float, savings_per_pay: float) -> Optional[int]:
    """Smallest whole number of pays *n* with ``n * savings_per_pay >= current_gap``.

    0 when there is no gap; ``None`` when nothing is being saved.
    """
    if current_gap <= 0:
        return 0
    if savings_per_pay <= 0:
        return None
    pays = math.ceil(current_gap / savings_per_pay)
    if pays > 1 and (pays - 1) * savings_per_pay >= current_gap:
        pays -= 1
    return pays


def _apply_surplus(health: list[EnvelopeHealth], surplus: float) -> list[EnvelopeHealth]:
    """Pour *surplus* into behind envelopes, most urgent first."""
    remaining = surplus
    topped_up: dict[str, float] = {}
    for h in sorted(
        (h for h in health if h.gap > 0), key=lambda h: h.priority_score
    ):
        if remaining <= 0:
            break
        allocated = min(remaining, h.gap)
        topped_up[h.envelope_id] = allocated
        remaining -= allocated

    projected = []
    for h in health:
        allocated = topped_up.get(h.envelope_id)
        if allocated is None:
            projected.append(h)
            continue
        new_balance = h.current_balance + allocated
        new_gap = h.should_have_saved - new_balance
        projected.append(EnvelopeHealth(
            envelope_id=h.envelope_id,
            name=h.name,
            priority=h.priority,
            due_date=h.due_date,
            total_due_amount=h.total_due_amount,
            current_balance=new_balance,
            should_have_saved=h.should_have_saved,
            gap=new_gap,
            gap_status=gap_status(new_gap),
            percent_complete=(
                new_balance / h.should_have_saved * 100 if h.should_have_saved > 0 else 100.0
            ),
            regular_per_pay=h.regular_per_pay,
            days_until_due=h.days_until_due,
            pays_until_due=h.pays_until_due,
            priority_score=h.priority_score,
            priority_reason=h.priority_reason,
        ))
    return projected


def calculate_scenario(
    envelopes: list[Envelope],
    pay_cycle: Frequency,
    scenario: Scenario,
    today: Optional[date] = None,
) -> ScenarioResult:
    """Project the effect of *scenario* on the user's envelopes.

    Only positive gaps count toward the current gap; envelopes that are
    ahead don't offset the ones that are behind.
    """
    today = today or date.today()
    health = all_envelope_health(envelopes, pay_cycle, today)

    impacted: list[ImpactedEnvelope] = []
    for env in select_affected_envelopes(envelopes, scenario):
        new, saved = reduce_contribution(env.pay_cycle_amount, scenario.reduction)
        impacted.append(ImpactedEnvelope(
            envelope_id=env.id,
            name=env.name,
            priority=env.priority,
            current_per_pay=env.pay_cycle_amount,
            new_per_pay=new,
            saved_per_pay=saved,
        ))

    savings_per_pay = sum(e.saved_per_pay for e in impacted)
    total_savings = savings_per_pay * scenario.duration
    current_gap = sum(max(0.0, h.gap) for h in health)

    closing = time_to_close_gap(current_gap, savings_per_pay)
    projection = ScenarioProjection(
        current_gap=current_gap,
        gap_after_scenario=max(0.0, current_gap - total_savings),
        time_to_close_gap=closing,
        buffer_after_gap=max(0.0, total_savings - current_gap),
        on_track_after_pays=min(scenario.duration, closing) if closing is not None else None,
    )

    projected = _apply_surplus(health, total_savings)
    by_priority: dict[Priority, list[EnvelopeHealth]] = {p: [] for p in Priority}
    for h in projected:
        by_priority[h.priority].append(h)

    return ScenarioResult(
        scenario=scenario,
        savings_per_pay=savings_per_pay,
        savings_per_month=savings_per_pay * pay_cycles_per_month(pay_cycle),
        total_savings_over_period=total_savings,
        impacted_envelopes=impacted,
        projection=projection,
        health_after_scenario=by_priority,
    )


def calculate_all_scenarios(
    envelopes: list[Envelope],
    pay_cycle: Frequency,
    scenarios: Optional[list[Scenario]] = None,
    today: Optional[date] = None,
) -> list[ScenarioResult]:
    """Run every scenario in *scenarios* (defaults to the built-in catalog)."""
    today = today or date.today()
    catalog = scenarios if scenarios is not None else common_scenarios(pay_cycle)
    return [calculate_scenario(envelopes, pay_cycle, s, today) for s in catalog]
