"""Budget Mate MCP Server.

Exposes envelope budgeting calculations (planner, health checks, what-if
scenarios, reconciliation and pay planning) as MCP tools backed by the
app's Supabase database.
"""

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from dotenv import load_dotenv
from mcp.server.fastmcp import Context, FastMCP

# Ensure project root is on sys.path so `budget_mate` is importable when loaded
# directly by tools like `mcp dev` (which use importlib, not `python -m`).
_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

load_dotenv()

from budget_mate.core.exporters import planner_rows, write_planner_csv
from budget_mate.core.frequency import annualize, parse_frequency, required_contribution
from budget_mate.core.leveling import leveled_bills
from budget_mate.core.pay_plan import (
    apply_surplus_suggestion,
    build_pay_plan,
    initial_distribution,
    payday_allocation,
    recompute_contributions,
)
from budget_mate.core.progress import all_envelope_health
from budget_mate.core.reconciliation import (
    balance_summary,
    multi_account_reconciliation,
    validate_reconciliation,
    validate_reconciliation_from_data,
)
from budget_mate.core.resolvers import resolve_envelope, resolve_scenario
from budget_mate.core.scenarios import calculate_all_scenarios, calculate_scenario, common_scenarios
from budget_mate.core.supabase_client import SupabaseClient
from budget_mate.mcp.error_handling import handle_tool_errors
from budget_mate.mcp.formatters import (
    format_applied_surplus,
    format_contribution_preview,
    format_contributions_applied,
    format_envelope_health,
    format_envelope_target_updated,
    format_export_written,
    format_initial_distribution,
    format_leveled_bills,
    format_multi_account_reconciliation,
    format_pay_plan,
    format_payday_allocation,
    format_planner,
    format_reconciliation,
    format_scenario_detail,
    format_scenarios_overview,
)
from budget_mate.models.schemas import (
    AccountReconcileInput,
    ExportPlannerInput,
    Frequency,
    InitialDistributionInput,
    LeveledBillsInput,
    PaydayInput,
    ReconcileInput,
    RecomputeContributionsInput,
    ScenarioDetailInput,
    SetEnvelopeTargetInput,
)


# --- Lifespan: initialize shared resources ---


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    url = os.environ.get("SUPABASE_URL", "")
    key = os.environ.get("SUPABASE_KEY", "")
    user_id = os.environ.get("BUDGET_MATE_USER_ID") or None
    pay_frequency = parse_frequency(os.environ.get("BUDGET_MATE_PAY_FREQUENCY", "fortnightly"))

    if not url or not key:
        raise RuntimeError(
            "SUPABASE_URL and SUPABASE_KEY environment variables are required. "
            "Find them under Project Settings > API in the Supabase dashboard."
        )

    client = SupabaseClient(url=url, api_key=key, user_id=user_id)

    yield {"db": client, "pay_frequency": pay_frequency}

    await client.close()


mcp = FastMCP("budget_mate", lifespan=app_lifespan)


# --- Helper to get client from context ---


def _get_deps(ctx) -> tuple[SupabaseClient, Frequency]:
    state = ctx.request_context.lifespan_context
    return state["db"], state["pay_frequency"]


# --- Read-Only Tools ---


@mcp.tool(
    name="budget_envelope_planner",
    annotations={
        "title": "Envelope Planner",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_envelope_planner(ctx: Context) -> str:
    """Show every envelope's required per-pay contribution, expected balance, status and due date."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    incomes = await db.get_income_streams()
    plan = build_pay_plan(incomes, envelopes)
    rows = planner_rows(envelopes, pay_frequency, plan)
    return format_planner(rows, pay_frequency)


@mcp.tool(
    name="budget_envelope_health",
    annotations={
        "title": "Envelope Health Check",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_envelope_health(ctx: Context) -> str:
    """Check which expense envelopes are behind, on track or ahead of their due dates."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    return format_envelope_health(all_envelope_health(envelopes, pay_frequency))


@mcp.tool(
    name="budget_scenarios",
    annotations={
        "title": "What-if Scenarios",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_scenarios(ctx: Context) -> str:
    """Compare the built-in what-if scenarios: how much each saves and how fast it closes the gap."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    return format_scenarios_overview(calculate_all_scenarios(envelopes, pay_frequency))


@mcp.tool(
    name="budget_scenario_detail",
    annotations={
        "title": "Scenario Detail",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_scenario_detail(params: ScenarioDetailInput, ctx: Context) -> str:
    """Show which envelopes a scenario reduces and the projected gap afterwards."""
    db, pay_frequency = _get_deps(ctx)
    scenario = resolve_scenario(common_scenarios(pay_frequency), params.scenario)
    envelopes = await db.get_envelopes()
    return format_scenario_detail(calculate_scenario(envelopes, pay_frequency, scenario))


@mcp.tool(
    name="budget_reconcile",
    annotations={
        "title": "Reconcile Accounts",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_reconcile(ctx: Context) -> str:
    """Check that bank balances, less money held for credit cards, match the envelope total."""
    db, _ = _get_deps(ctx)
    accounts = await db.get_accounts()
    envelopes = await db.get_envelopes()
    result = validate_reconciliation_from_data(accounts, envelopes)
    return format_reconciliation(result, balance_summary(accounts, envelopes))


@mcp.tool(
    name="budget_reconcile_manual",
    annotations={
        "title": "Reconcile Entered Balances",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@handle_tool_errors
async def budget_reconcile_manual(params: ReconcileInput, ctx: Context) -> str:
    """Reconcile balances typed in by the user, e.g. straight from a bank statement."""
    result = validate_reconciliation(
        params.bank_balance, params.envelope_total, params.cc_holding_balance
    )
    return format_reconciliation(result)


@mcp.tool(
    name="budget_pay_plan",
    annotations={
        "title": "Pay Plan",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_pay_plan(ctx: Context) -> str:
    """Summarize recurring income and how each pay is split across envelopes."""
    db, _ = _get_deps(ctx)
    incomes = await db.get_income_streams()
    envelopes = await db.get_envelopes()
    return format_pay_plan(build_pay_plan(incomes, envelopes))


@mcp.tool(
    name="budget_payday_allocation",
    annotations={
        "title": "Payday Allocation",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_payday_allocation(params: PaydayInput, ctx: Context) -> str:
    """Split a pay into regular envelope contributions and suggest where any surplus should go."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    result = payday_allocation(params.pay_amount, envelopes, pay_frequency)
    text = format_payday_allocation(result)
    if params.apply_suggestion:
        applied = apply_surplus_suggestion(result, params.apply_suggestion - 1)
        text += "\n\n" + format_applied_surplus(applied, params.apply_suggestion)
    return text


@mcp.tool(
    name="budget_reconcile_accounts",
    annotations={
        "title": "Reconcile Each Account",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_reconcile_accounts(params: AccountReconcileInput, ctx: Context) -> str:
    """Break the bank side down per account and compare the total with envelopes less CC holding plus surplus."""
    db, _ = _get_deps(ctx)
    accounts = await db.get_accounts()
    envelopes = await db.get_envelopes()
    result = multi_account_reconciliation(accounts, envelopes, params.surplus)
    return format_multi_account_reconciliation(result)


@mcp.tool(
    name="budget_initial_distribution",
    annotations={
        "title": "Distribute Existing Balance",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_initial_distribution(params: InitialDistributionInput, ctx: Context) -> str:
    """Work out how money already on hand should be spread so envelopes catch up to schedule."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    result = initial_distribution(params.current_balance, envelopes, pay_frequency)
    return format_initial_distribution(result, params.current_balance)


@mcp.tool(
    name="budget_leveled_bills",
    annotations={
        "title": "Leveled Bills",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_leveled_bills(params: LeveledBillsInput, ctx: Context) -> str:
    """Show per-pay savings and buffer health for seasonal bills such as power and gas."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    bills = leveled_bills(envelopes, pay_frequency, params.start_month)
    return format_leveled_bills(bills, pay_frequency)


# --- Write Tools ---


@mcp.tool(
    name="budget_recompute_contributions",
    annotations={
        "title": "Recompute Per-Pay Contributions",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_recompute_contributions(params: RecomputeContributionsInput, ctx: Context) -> str:
    """Recompute every envelope's per-pay contribution from its target. Preview unless apply is set."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    updates = recompute_contributions(envelopes, pay_frequency)

    if not params.apply:
        return format_contribution_preview(updates, pay_frequency)

    for u in updates:
        if u.changed:
            await db.update_envelope(
                u.envelope_id,
                {
                    "annual_amount": u.annual_amount,
                    "pay_cycle_amount": u.new_pay_cycle_amount,
                },
            )

    return format_contributions_applied(updates)


@mcp.tool(
    name="budget_set_envelope_target",
    annotations={
        "title": "Set Envelope Target",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_set_envelope_target(params: SetEnvelopeTargetInput, ctx: Context) -> str:
    """Change an envelope's target amount and frequency, and recompute its per-pay contribution."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    envelope = resolve_envelope(envelopes, params.envelope_name)

    frequency = params.frequency or envelope.frequency
    annual = annualize(params.target_amount, frequency)
    updates = {
        "target_amount": params.target_amount,
        "frequency": frequency.value,
        "annual_amount": annual,
        "pay_cycle_amount": required_contribution(annual, pay_frequency),
    }
    if params.next_payment_due:
        updates["next_payment_due"] = params.next_payment_due

    updated = await db.update_envelope(envelope.id, updates)
    return format_envelope_target_updated(updated, pay_frequency)


@mcp.tool(
    name="budget_export_planner_csv",
    annotations={
        "title": "Export Planner CSV",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@handle_tool_errors
async def budget_export_planner_csv(params: ExportPlannerInput, ctx: Context) -> str:
    """Write the envelope planner to envelope-planning-YYYY-MM-DD.csv."""
    db, pay_frequency = _get_deps(ctx)
    envelopes = await db.get_envelopes()
    incomes = await db.get_income_streams()
    rows = planner_rows(envelopes, pay_frequency, build_pay_plan(incomes, envelopes))
    path = write_planner_csv(rows, pay_frequency, params.output_dir or ".")
    return format_export_written(path, len(rows))


# --- Entry point ---

if __name__ == "__main__":
    mcp.run()
