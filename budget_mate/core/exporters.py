"""Envelope planner rows and CSV export."""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Optional

from budget_mate.core.frequency import (
    annualize,
    frequency_label,
    required_contribution,
)
from budget_mate.core.progress import determine_status, due_progress, expected_balance
from budget_mate.models.results import PayPlan, PlannerRow
from budget_mate.models.schemas import Envelope, Frequency


def planner_row(
    envelope: Envelope,
    pay_frequency: Frequency,
    plan_per_pay: Optional[float] = None,
    today: Optional[date] = None,
) -> PlannerRow:
    """Derive the planner view of one envelope.

    A stored ``annual_amount`` wins over one recomputed from the target,
    matching what the user last saved.
    """
    annual = (
        envelope.annual_amount
        if envelope.annual_amount is not None
        else annualize(envelope.target_amount, envelope.frequency)
    )
    per_pay = required_contribution(annual, pay_frequency)
    expected = expected_balance(envelope.opening_balance, per_pay)

    return PlannerRow(
        envelope_id=envelope.id,
        name=envelope.name,
        category_name=envelope.category_name,
        frequency=envelope.frequency,
        target_amount=envelope.target_amount,
        annual_amount=annual,
        per_pay=per_pay,
        expected_balance=expected,
        current_balance=envelope.current_amount,
        status=determine_status(envelope.current_amount, expected),
        due=due_progress(envelope.due, today),
        plan_per_pay=plan_per_pay,
        plan_variance=per_pay - plan_per_pay if plan_per_pay is not None else None,
        notes=envelope.notes,
    )


def planner_rows(
    envelopes: list[Envelope],
    pay_frequency: Frequency,
    pay_plan: Optional[PayPlan] = None,
    today: Optional[date] = None,
) -> list[PlannerRow]:
    """Planner rows for every envelope, with pay plan figures where available."""
    today = today or date.today()
    plan_by_envelope = {
        e.envelope_id: e.per_pay_amount for e in (pay_plan.envelopes if pay_plan else [])
    }
    return [
        planner_row(env, pay_frequency, plan_by_envelope.get(env.id), today)
        for env in envelopes
        if not env.is_cc_holding
    ]


def _money(value: Optional[float]) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def csv_headers(pay_frequency: Frequency) -> list[str]:
    return [
        "Envelope",
        "Category",
        "Target Amount",
        "Annual Amount",
        f"Required {frequency_label(pay_frequency)} Amount",
        "Plan Per Pay",
        "Plan Variance",
        "Current Balance",
        "Status",
        "Next Due",
        "Due Status",
        "Frequency",
        "Notes",
    ]


def csv_row(row: PlannerRow) -> list[str]:
    return [
        row.name,
        row.category_name or "",
        _money(row.target_amount),
        _money(row.annual_amount),
        _money(row.per_pay),
        _money(row.plan_per_pay),
        _money(row.plan_variance),
        _money(row.current_balance),
        row.status.replace("-", " "),
        row.due.formatted or "",
        row.due.label,
        frequency_label(row.frequency).lower() if row.frequency != Frequency.NONE else "",
        row.notes or "",
    ]


def export_planner_csv(rows: list[PlannerRow], pay_frequency: Frequency) -> str:
    """Serialize planner rows as CSV with every field quoted."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(csv_headers(pay_frequency))
    for row in rows:
        writer.writerow(csv_row(row))
    return buf.getvalue().rstrip("\n")


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"envelope-planning-{today.isoformat()}.csv"


def write_planner_csv(
    rows: list[PlannerRow],
    pay_frequency: Frequency,
    output_dir: str | Path = ".",
    today: Optional[date] = None,
) -> Path:
    """Write the planner CSV into *output_dir* and return its path."""
    path = Path(output_dir) / export_filename(today)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_planner_csv(rows, pay_frequency), encoding="utf-8")
    return path
