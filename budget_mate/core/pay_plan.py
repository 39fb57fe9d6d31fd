"""Pay plan aggregation and payday allocation.

The pay plan rolls every recurring income's envelope allocations up to a
yearly figure and re-expresses them per pay of the user's primary income.
The payday allocator splits one pay into the regular envelope amounts and
suggests what to do with anything left over.
"""

from datetime import date
from typing import Optional

from budget_mate.core.frequency import (
    annualize,
    occurrences_per_year,
    required_contribution,
)
from budget_mate.core.progress import all_envelope_health
from budget_mate.models.results import (
    AppliedSurplus,
    ContributionUpdate,
    DistributionAllocation,
    EnvelopeHealth,
    InitialDistribution,
    PayPlan,
    PayPlanAllocation,
    PayPlanEnvelope,
    PayPlanStream,
    PayPlanTotals,
    PaydayAllocation,
    RegularAllocation,
    SurplusAllocation,
    SurplusSuggestion,
)
from budget_mate.models.schemas import Envelope, Frequency, IncomeStream, InvalidAmount, Priority

_DEFAULT_PRIMARY = Frequency.FORTNIGHTLY


# --- Contribution recompute ---


def recompute_contribution(envelope: Envelope, pay_frequency: Frequency) -> ContributionUpdate:
    """Recompute an envelope's annual amount and per-pay contribution.

    Raises :class:`InvalidAmount` for a negative target so a bad value is
    never written back.
    """
    if envelope.target_amount < 0:
        raise InvalidAmount("target_amount", envelope.target_amount)
    annual = annualize(envelope.target_amount, envelope.frequency)
    return ContributionUpdate(
        envelope_id=envelope.id,
        name=envelope.name,
        annual_amount=annual,
        current_pay_cycle_amount=envelope.pay_cycle_amount,
        new_pay_cycle_amount=required_contribution(annual, pay_frequency),
    )


def recompute_contributions(
    envelopes: list[Envelope],
    pay_frequency: Frequency,
) -> list[ContributionUpdate]:
    """Recompute every expense envelope, skipping credit card holding envelopes."""
    return [
        recompute_contribution(env, pay_frequency)
        for env in envelopes
        if env.envelope_type == "expense" and not env.is_cc_holding
    ]


# --- Pay plan ---


def detect_primary_frequency(streams: list[PayPlanStream]) -> Frequency:
    """Frequency of the income stream with the largest yearly amount."""
    winner = _DEFAULT_PRIMARY
    best = 0.0
    for stream in streams:
        if stream.annual_amount > best:
            best = stream.annual_amount
            winner = stream.frequency
    return winner


def _match_envelope_id(
    allocation_id: Optional[str],
    allocation_name: Optional[str],
    names_by_id: dict[str, str],
) -> Optional[str]:
    if allocation_id:
        return allocation_id
    name = (allocation_name or "").strip().lower()
    if not name:
        return None
    for env_id, env_name in names_by_id.items():
        if env_name.lower() == name:
            return env_id
    return None


def build_pay_plan(
    incomes: list[IncomeStream],
    envelopes: list[Envelope],
) -> Optional[PayPlan]:
    """Aggregate recurring income allocations into a pay plan.

    Returns ``None`` when there is no recurring income to plan against.
    Allocations that name an envelope instead of referencing its id are
    matched by exact, case-insensitive name.
    """
    if not incomes:
        return None

    names_by_id = {env.id: env.name for env in envelopes}
    envelope_totals: dict[str, PayPlanEnvelope] = {}
    streams: list[PayPlanStream] = []

    for income in incomes:
        allocations: list[PayPlanAllocation] = []
        for raw in income.allocations:
            env_id = _match_envelope_id(raw.envelope_id, raw.envelope, names_by_id)
            annual = annualize(raw.amount, income.frequency)
            name = names_by_id.get(env_id or "", raw.envelope or "Envelope")
            allocations.append(PayPlanAllocation(
                envelope_id=env_id,
                envelope_name=name,
                amount=raw.amount,
                annual_amount=annual,
            ))
            if env_id:
                existing = envelope_totals.get(env_id)
                envelope_totals[env_id] = PayPlanEnvelope(
                    envelope_id=env_id,
                    envelope_name=name,
                    annual_amount=(existing.annual_amount if existing else 0.0) + annual,
                )

        annual_income = annualize(income.amount, income.frequency)
        allocations_total = sum(a.amount for a in allocations)
        allocations_annual = sum(a.annual_amount for a in allocations)
        streams.append(PayPlanStream(
            id=income.id,
            name=income.name,
            frequency=income.frequency,
            amount=income.amount,
            annual_amount=annual_income,
            allocations=allocations,
            allocations_total=allocations_total,
            allocations_annual=allocations_annual,
            surplus=income.amount - allocations_total,
            surplus_annual=annual_income - allocations_annual,
        ))

    primary = detect_primary_frequency(streams)
    # A "none" primary would divide by zero; treat it as one pay a year
    primary_cycles = max(occurrences_per_year(primary), 1)

    totals = PayPlanTotals(
        annual_income=sum(s.annual_amount for s in streams),
        annual_allocated=sum(s.allocations_annual for s in streams),
    )
    totals.annual_surplus = totals.annual_income - totals.annual_allocated
    totals.per_pay_income = totals.annual_income / primary_cycles
    totals.per_pay_allocated = totals.annual_allocated / primary_cycles
    totals.per_pay_surplus = totals.per_pay_income - totals.per_pay_allocated

    for entry in envelope_totals.values():
        entry.per_pay_amount = entry.annual_amount / primary_cycles
    for stream in streams:
        for allocation in stream.allocations:
            allocation.per_pay_amount = allocation.annual_amount / primary_cycles

    return PayPlan(
        primary_frequency=primary,
        streams=streams,
        envelopes=list(envelope_totals.values()),
        totals=totals,
    )


# --- Payday allocation ---


def _behind_envelopes(health: list[EnvelopeHealth]) -> list[EnvelopeHealth]:
    return [h for h in health if h.gap > 0 and h.gap_status == "behind"]


def split_by_gap(behind: list[EnvelopeHealth], amount: float) -> list[SurplusAllocation]:
    """Share *amount* across behind envelopes in proportion to their gaps, to the cent."""
    total_gap = sum(h.gap for h in behind)
    if total_gap <= 0:
        return []
    return [
        SurplusAllocation(
            envelope_id=h.envelope_id,
            name=h.name,
            amount=round(amount * h.gap / total_gap, 2),
        )
        for h in behind
    ]


def _surplus_suggestions(health: list[EnvelopeHealth], surplus: float) -> list[SurplusSuggestion]:
    if surplus <= 0:
        return []

    suggestions: list[SurplusSuggestion] = []
    behind = sorted(
        _behind_envelopes(health),
        key=lambda h: h.priority_score,
    )
    total_gap = sum(h.gap for h in behind)

    if behind:
        most_urgent = behind[0]
        amount = min(surplus, most_urgent.gap)
        suggestions.append(SurplusSuggestion(
            type="top-up",
            envelope_id=most_urgent.envelope_id,
            envelope_name=most_urgent.name,
            suggested_amount=amount,
            reason=most_urgent.priority_reason,
            impact=f"This will reduce the gap to ${max(0.0, most_urgent.gap - amount):,.2f}",
            urgency_score=most_urgent.priority_score,
        ))

    if len(behind) > 1 and surplus < total_gap:
        suggestions.append(SurplusSuggestion(
            type="top-up",
            suggested_amount=surplus,
            reason=f"Split ${surplus:,.2f} across {len(behind)} behind envelopes",
            impact="Each envelope gets a proportional boost based on its gap",
            allocations=split_by_gap(behind, surplus),
        ))

    if not behind or surplus > total_gap:
        remaining = surplus - total_gap
        suggestions.append(SurplusSuggestion(
            type="new-goal",
            suggested_amount=remaining,
            reason="All envelopes on track - start a savings goal",
            impact="Build emergency fund, holiday savings, or future purchase",
        ))
        suggestions.append(SurplusSuggestion(
            type="buffer",
            suggested_amount=remaining,
            reason="Keep as buffer in main account",
            impact="Financial breathing room for unexpected expenses",
        ))

    return suggestions


def payday_allocation(
    pay_amount: float,
    envelopes: list[Envelope],
    pay_cycle: Frequency,
    today: Optional[date] = None,
) -> PaydayAllocation:
    """Split one pay into regular envelope allocations plus surplus suggestions."""
    today = today or date.today()
    health = all_envelope_health(envelopes, pay_cycle, today)

    regular = [
        RegularAllocation(
            envelope_id=env.id,
            name=env.name,
            priority=env.priority,
            amount=env.pay_cycle_amount,
        )
        for env in envelopes
        if env.envelope_type == "expense" and not env.is_cc_holding
    ]
    total_regular = sum(a.amount for a in regular)
    surplus = pay_amount - total_regular

    if abs(surplus) < 0.005:
        surplus_status = "exact"
    elif surplus > 0:
        surplus_status = "available"
    else:
        surplus_status = "shortfall"

    totals_by_priority = {p: 0.0 for p in Priority}
    for a in regular:
        totals_by_priority[a.priority] += a.amount

    behind = [h for h in health if h.gap_status == "behind"]

    return PaydayAllocation(
        pay_amount=pay_amount,
        pay_cycle=pay_cycle,
        regular_allocations=regular,
        total_regular=total_regular,
        surplus=surplus,
        surplus_status=surplus_status,
        envelope_health=health,
        suggestions=_surplus_suggestions(health, surplus),
        totals_by_priority=totals_by_priority,
        behind_count=len(behind),
        total_gap=sum(h.gap for h in behind),
    )


def apply_surplus_suggestion(allocation: PaydayAllocation, index: int) -> AppliedSurplus:
    """Envelope amounts for the suggestion at *index* (0-based).

    A targeted top-up goes to its envelope and a split goes across every
    behind envelope by gap, using up the whole surplus. New-goal and
    buffer suggestions, or an index with no suggestion, leave the surplus
    unassigned.
    """
    unassigned = AppliedSurplus(
        regular_allocations=allocation.regular_allocations,
        surplus_allocations=[],
        remaining_surplus=allocation.surplus,
    )
    if not 0 <= index < len(allocation.suggestions):
        return unassigned

    suggestion = allocation.suggestions[index]
    if suggestion.type != "top-up":
        return unassigned

    if suggestion.envelope_id:
        return AppliedSurplus(
            regular_allocations=allocation.regular_allocations,
            surplus_allocations=[SurplusAllocation(
                envelope_id=suggestion.envelope_id,
                name=suggestion.envelope_name or "",
                amount=suggestion.suggested_amount,
            )],
            remaining_surplus=allocation.surplus - suggestion.suggested_amount,
        )

    return AppliedSurplus(
        regular_allocations=allocation.regular_allocations,
        surplus_allocations=suggestion.allocations
        or split_by_gap(_behind_envelopes(allocation.envelope_health), allocation.surplus),
        remaining_surplus=0.0,
    )


def initial_distribution(
    current_balance: float,
    envelopes: list[Envelope],
    pay_cycle: Frequency,
    today: Optional[date] = None,
) -> InitialDistribution:
    """Spread money already on hand so each envelope catches up to where it should be.

    When the balance covers every gap each envelope gets its full gap and
    the rest is left over. Otherwise the balance is shared in proportion
    to the gaps and nothing is left.
    """
    health = all_envelope_health(envelopes, pay_cycle, today)
    needed = [(h, max(0.0, h.gap)) for h in health]
    total_needed = sum(n for _, n in needed)

    if current_balance >= total_needed:
        return InitialDistribution(
            envelope_health=health,
            total_needed=total_needed,
            can_fully_fund=True,
            allocations=[
                DistributionAllocation(
                    envelope_id=h.envelope_id, name=h.name, amount=n, percent_of_needed=100.0
                )
                for h, n in needed
            ],
            remaining_balance=current_balance - total_needed,
        )

    allocations = []
    for h, n in needed:
        amount = current_balance * n / total_needed
        allocations.append(DistributionAllocation(
            envelope_id=h.envelope_id,
            name=h.name,
            amount=round(amount, 2),
            percent_of_needed=amount / n * 100 if n > 0 else 100.0,
        ))
    return InitialDistribution(
        envelope_health=health,
        total_needed=total_needed,
        can_fully_fund=False,
        allocations=allocations,
        remaining_balance=0.0,
    )
