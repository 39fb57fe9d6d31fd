"""Markdown formatters for MCP tool responses.

Pure functions that take result objects and return human-readable Markdown strings.
All rounding to cents happens here.
"""

from __future__ import annotations

from pathlib import Path

from budget_mate.core.frequency import frequency_label
from budget_mate.models.results import (
    AppliedSurplus,
    BalanceSummary,
    ContributionUpdate,
    EnvelopeHealth,
    InitialDistribution,
    LeveledBill,
    MultiAccountReconciliation,
    PayPlan,
    PaydayAllocation,
    PlannerRow,
    ReconciliationResult,
    ScenarioResult,
)
from budget_mate.models.schemas import Envelope, Frequency, Priority

# Shown when the scenario saves nothing towards an open gap
_NOT_REACHABLE = "not reachable"

_STATUS_MARKS = {
    "under": "!!",
    "on-track": "OK",
    "over": "++",
    "behind": "!!",
    "ahead": "++",
    "critical": "!!",
}


def _money(value: float) -> str:
    sign = "-" if value < -0.005 else ""
    return f"{sign}${abs(value):,.2f}"


def format_planner(rows: list[PlannerRow], pay_frequency: Frequency) -> str:
    if not rows:
        return "No envelopes found."

    label = frequency_label(pay_frequency)
    lines = [
        f"## Envelope Planner ({label} pay)\n",
        f"| Envelope | Target | Annual | Required {label} | Expected | Current | Status | Due |",
        "|---|---|---|---|---|---|---|---|",
    ]
    for r in rows:
        due = f"{r.due.label} ({r.due.formatted})" if r.due.formatted else "-"
        lines.append(
            f"| {r.name} "
            f"| {_money(r.target_amount)} {r.frequency.value} "
            f"| {_money(r.annual_amount)} "
            f"| {_money(r.per_pay)} "
            f"| {_money(r.expected_balance)} "
            f"| {_money(r.current_balance)} "
            f"| [{_STATUS_MARKS[r.status]}] {r.status} "
            f"| {due} |"
        )

    total_per_pay = sum(r.per_pay for r in rows)
    lines.append(f"\n**Required per pay:** {_money(total_per_pay)}")

    planned = [r for r in rows if r.plan_variance is not None]
    if planned:
        net_variance = sum(r.plan_variance for r in planned)
        lines.append(f"**Net variance vs pay plan:** {_money(net_variance)}")

    counts = {s: sum(1 for r in rows if r.status == s) for s in ("under", "on-track", "over")}
    lines.append(
        f"**Status:** {counts['under']} under | {counts['on-track']} on track | "
        f"{counts['over']} over"
    )
    return "\n".join(lines)


def format_envelope_health(health: list[EnvelopeHealth]) -> str:
    """Health checks grouped by status, most urgent first."""
    if not health:
        return "No expense envelopes to check."

    lines = ["## Envelope Health\n"]
    ordered = sorted(health, key=lambda h: h.priority_score)
    for h in ordered:
        mark = _STATUS_MARKS.get(h.gap_status, "OK")
        lines.append(f"- [{mark}] **{h.name}** ({h.priority.value}): {h.priority_reason}")
        if h.due_date:
            lines.append(
                f"  Saved {_money(h.current_balance)} of {_money(h.should_have_saved)} "
                f"expected ({h.percent_complete:.0f}%), due {h.due_date}"
            )

    behind = [h for h in health if h.gap_status == "behind"]
    total_gap = sum(h.gap for h in behind)
    lines.append("\n---")
    lines.append(f"**Behind:** {len(behind)} envelope(s), {_money(total_gap)} total gap")
    return "\n".join(lines)


def format_scenarios_overview(results: list[ScenarioResult]) -> str:
    if not results:
        return "No scenarios available."

    lines = [
        "## What-if Scenarios\n",
        "| Scenario | Saves / pay | Over period | Pays to close gap | Buffer after |",
        "|---|---|---|---|---|",
    ]
    for r in results:
        closing = r.projection.time_to_close_gap
        closing_text = _NOT_REACHABLE if closing is None else str(closing)
        lines.append(
            f"| {r.scenario.name} (`{r.scenario.id}`) "
            f"| {_money(r.savings_per_pay)} "
            f"| {_money(r.total_savings_over_period)} "
            f"| {closing_text} "
            f"| {_money(r.projection.buffer_after_gap)} |"
        )

    gap = results[0].projection.current_gap
    lines.append(f"\n**Current gap:** {_money(gap)}")
    return "\n".join(lines)


def format_scenario_detail(result: ScenarioResult) -> str:
    s = result.scenario
    p = result.projection
    lines = [
        f"## {s.name}",
        f"_{s.description}_\n",
        f"- **Duration:** {s.duration} pays",
        f"- **Reduction:** {s.reduction * 100:.0f}%",
        f"- **Saves per pay:** {_money(result.savings_per_pay)}",
        f"- **Saves per month:** {_money(result.savings_per_month)}",
        f"- **Total over period:** {_money(result.total_savings_over_period)}",
    ]

    if result.impacted_envelopes:
        lines.append("\n### Envelopes reduced")
        for e in result.impacted_envelopes:
            lines.append(
                f"- {e.name}: {_money(e.current_per_pay)} -> {_money(e.new_per_pay)} "
                f"(saves {_money(e.saved_per_pay)})"
            )
    else:
        lines.append("\nNo envelopes match this scenario.")

    lines.append("\n### Projection")
    lines.append(f"- **Current gap:** {_money(p.current_gap)}")
    lines.append(f"- **Gap after scenario:** {_money(p.gap_after_scenario)}")
    if p.time_to_close_gap is None:
        lines.append(f"- **Time to close gap:** {_NOT_REACHABLE}")
    else:
        lines.append(f"- **Time to close gap:** {p.time_to_close_gap} pays")
    lines.append(f"- **Buffer after gap:** {_money(p.buffer_after_gap)}")

    still_behind = [
        h for group in result.health_after_scenario.values() for h in group
        if h.gap_status == "behind"
    ]
    if still_behind:
        lines.append("\n### Still behind after scenario")
        for h in still_behind:
            lines.append(f"- {h.name}: {_money(h.gap)} short")
    return "\n".join(lines)


def format_reconciliation(
    result: ReconciliationResult,
    summary: BalanceSummary | None = None,
) -> str:
    marks = {"balanced": "OK", "minor difference": "~", "out of balance": "!!"}
    b = result.breakdown
    lines = [
        f"## [{marks[result.status]}] Reconciliation: {result.status}\n",
        f"- **Bank balance:** {_money(b.bank_balance)}",
        f"- **Less CC holding:** {_money(b.cc_holding_balance)}",
        f"- **Available cash:** {_money(b.available_cash)}",
        f"- **Envelope total:** {_money(b.envelope_total)}",
        f"- **Discrepancy:** {_money(result.discrepancy)}",
        f"\n{result.explanation}",
    ]
    if summary is not None:
        lines.append("\n### Balances")
        lines.append(f"- **Credit card debt:** {_money(summary.credit_card_debt)}")
        lines.append(f"- **Unallocated:** {_money(summary.unallocated)}")
        lines.append(f"- **Net worth:** {_money(summary.net_worth)}")
    return "\n".join(lines)


def format_pay_plan(plan: PayPlan | None) -> str:
    if plan is None:
        return "No recurring income set up yet, so there is no pay plan."

    label = frequency_label(plan.primary_frequency).lower()
    t = plan.totals
    lines = [
        f"## Pay Plan (per {label} pay)\n",
        f"- **Income per pay:** {_money(t.per_pay_income)}",
        f"- **Allocated per pay:** {_money(t.per_pay_allocated)}",
        f"- **Surplus per pay:** {_money(t.per_pay_surplus)}",
        f"- **Annual income:** {_money(t.annual_income)}",
    ]
    if plan.streams:
        lines.append("\n### Income streams")
        for s in plan.streams:
            lines.append(
                f"- **{s.name}**: {_money(s.amount)} {s.frequency.value}, "
                f"{_money(s.allocations_total)} allocated, {_money(s.surplus)} left"
            )
    if plan.envelopes:
        lines.append("\n### Envelope allocations")
        for e in sorted(plan.envelopes, key=lambda e: e.envelope_name.lower()):
            lines.append(f"- {e.envelope_name}: {_money(e.per_pay_amount)} per pay")
    return "\n".join(lines)


def format_payday_allocation(result: PaydayAllocation) -> str:
    lines = [
        f"## Payday: {_money(result.pay_amount)}\n",
        f"- **Regular allocations:** {_money(result.total_regular)}",
    ]
    for p in Priority:
        lines.append(f"  - {p.value.capitalize()}: {_money(result.totals_by_priority.get(p, 0.0))}")

    if result.surplus_status == "shortfall":
        lines.append(f"- **Shortfall:** {_money(abs(result.surplus))}")
    elif result.surplus_status == "exact":
        lines.append("- **Surplus:** none, this pay is fully allocated")
    else:
        lines.append(f"- **Surplus:** {_money(result.surplus)}")

    if result.behind_count:
        lines.append(
            f"- **Behind:** {result.behind_count} envelope(s), {_money(result.total_gap)} total gap"
        )

    if result.suggestions:
        lines.append("\n### Suggestions")
        for i, s in enumerate(result.suggestions, 1):
            target = f" -> {s.envelope_name}" if s.envelope_name else ""
            lines.append(f"{i}. **{s.type}**{target}: {_money(s.suggested_amount)}")
            lines.append(f"   {s.reason}. {s.impact}.")
            for a in s.allocations:
                lines.append(f"   - {a.name}: {_money(a.amount)}")
    return "\n".join(lines)


def format_contribution_preview(updates: list[ContributionUpdate], pay_frequency: Frequency) -> str:
    changed = [u for u in updates if u.changed]
    if not changed:
        return "All per-pay contributions are up to date."

    label = frequency_label(pay_frequency)
    lines = [
        f"## Contribution Recompute Preview ({label} pay)\n",
        "| Envelope | Annual | Stored / pay | Required / pay |",
        "|---|---|---|---|",
    ]
    for u in changed:
        lines.append(
            f"| {u.name} | {_money(u.annual_amount)} "
            f"| {_money(u.current_pay_cycle_amount)} | {_money(u.new_pay_cycle_amount)} |"
        )
    lines.append("\nSet `apply: true` to save these amounts.")
    return "\n".join(lines)


def format_contributions_applied(updates: list[ContributionUpdate]) -> str:
    changed = [u for u in updates if u.changed]
    if not changed:
        return "All per-pay contributions are up to date."
    lines = [f"## Updated {len(changed)} envelope(s)\n"]
    for u in changed:
        lines.append(f"- {u.name}: {_money(u.new_pay_cycle_amount)} per pay")
    return "\n".join(lines)


def format_envelope_target_updated(envelope: Envelope, pay_frequency: Frequency) -> str:
    return (
        f"Updated **{envelope.name}**\n\n"
        f"- **Target:** {_money(envelope.target_amount)} {envelope.frequency.value}\n"
        f"- **Annual:** {_money(envelope.annual_amount or 0.0)}\n"
        f"- **Per {frequency_label(pay_frequency).lower()} pay:** "
        f"{_money(envelope.pay_cycle_amount)}"
    )


def format_export_written(path: Path, row_count: int) -> str:
    return f"Exported {row_count} envelope(s) to `{path}`."


def format_multi_account_reconciliation(result: MultiAccountReconciliation) -> str:
    if result.is_balanced:
        mark, verdict = "OK", "Balanced"
    elif result.discrepancy > 0:
        mark, verdict = "!!", f"Over by {_money(result.discrepancy)}"
    else:
        mark, verdict = "!!", f"Under by {_money(abs(result.discrepancy))}"

    lines = [f"## [{mark}] Account Reconciliation: {verdict}\n", "### Bank accounts"]
    if not result.accounts:
        lines.append("- No bank accounts")
    for a in result.accounts:
        lines.append(f"- {a.display_name} ({a.account_type}): {_money(a.current_balance)}")
    lines.append(f"- **Total bank balance:** {_money(result.total_bank_balance)}")

    lines.append("\n### Expected")
    lines.append(f"- Envelope allocations: {_money(result.total_envelope_balance)}")
    if result.cc_holding_balance > 0:
        lines.append(f"- Less CC holding: {_money(result.cc_holding_balance)}")
    if abs(result.surplus) > 0.01:
        label = "Plus surplus" if result.surplus >= 0 else "Less deficit"
        lines.append(f"- {label}: {_money(abs(result.surplus))}")
    lines.append(f"- **Expected bank balance:** {_money(result.expected_bank_balance)}")

    lines.append(f"\n{result.explanation}")
    return "\n".join(lines)


def format_applied_surplus(applied: AppliedSurplus, suggestion_number: int) -> str:
    lines = [f"### Applying suggestion {suggestion_number}"]
    if not applied.surplus_allocations:
        lines.append("No envelope top-ups for this suggestion.")
    for a in applied.surplus_allocations:
        lines.append(f"- {a.name}: +{_money(a.amount)}")
    lines.append(f"**Surplus left:** {_money(applied.remaining_surplus)}")
    return "\n".join(lines)


def format_initial_distribution(result: InitialDistribution, current_balance: float) -> str:
    if not result.allocations:
        return "No expense envelopes to fund."

    lines = [
        f"## Distributing {_money(current_balance)}\n",
        f"- **Needed to catch up:** {_money(result.total_needed)}",
    ]
    if result.can_fully_fund:
        lines.append(f"- Every envelope can be fully funded, {_money(result.remaining_balance)} left over")
    else:
        lines.append("- Not enough to catch up fully; shared in proportion to each gap")

    funded = [a for a in result.allocations if a.amount > 0]
    if funded:
        lines.append("\n| Envelope | Amount | % of needed |")
        lines.append("|---|---|---|")
        for a in funded:
            lines.append(f"| {a.name} | {_money(a.amount)} | {a.percent_of_needed:.0f}% |")
    return "\n".join(lines)


def format_leveled_bills(bills: list[LeveledBill], pay_frequency: Frequency) -> str:
    if not bills:
        return "No leveled bills set up."

    label = frequency_label(pay_frequency).lower()
    lines = ["## Leveled Bills\n"]
    for b in bills:
        buf = b.buffer
        season = " (high season)" if b.in_high_season else ""
        lines.append(f"- [{_STATUS_MARKS[buf.status]}] **{b.name}**: {buf.status}{season}")
        lines.append(
            f"  Save {_money(b.per_pay)} per {label} pay, about {_money(b.estimated_this_month)} "
            "due this month"
        )
        lines.append(
            f"  Balance {_money(buf.actual_balance)} vs {_money(buf.expected_balance)} expected "
            f"({buf.percentage_of_expected:.0f}%)"
        )
    return "\n".join(lines)
