"""Result dataclasses for budget calculations.

These are internal types consumed by formatters and exporters. They are
lightweight dataclasses rather than Pydantic models since they are
derived, never persisted, and don't need validation.
"""

from dataclasses import dataclass, field
from typing import Optional

from budget_mate.models.schemas import Frequency, Priority


@dataclass
class DueProgress:
    """Relative due-date copy for an envelope."""
    label: str                     # "Today!", "In 3 days", "" when no due date
    formatted: Optional[str] = None  # dd/mm/YYYY
    days_until: Optional[int] = None


@dataclass
class PlannerRow:
    """One envelope as shown in the envelope planner."""
    envelope_id: str
    name: str
    category_name: Optional[str]
    frequency: Frequency
    target_amount: float
    annual_amount: float
    per_pay: float            # required contribution at the user's pay frequency
    expected_balance: float   # opening balance + one contribution
    current_balance: float
    status: str               # "under" | "on-track" | "over"
    due: DueProgress
    plan_per_pay: Optional[float] = None   # what the pay plan actually allocates
    plan_variance: Optional[float] = None  # per_pay - plan_per_pay
    notes: Optional[str] = None


@dataclass
class EnvelopeHealth:
    """Where an envelope should be versus where it is."""
    envelope_id: str
    name: str
    priority: Priority
    due_date: Optional[str]
    total_due_amount: float
    current_balance: float
    should_have_saved: float
    gap: float                # should_have_saved - current_balance; positive = behind
    gap_status: str           # "ahead" | "on-track" | "behind"
    percent_complete: float
    regular_per_pay: float
    days_until_due: Optional[int]
    pays_until_due: Optional[int]
    priority_score: float     # lower = more urgent
    priority_reason: str


@dataclass(frozen=True)
class Scenario:
    """A named reduction rule applied to non-essential envelopes."""
    id: str
    name: str
    description: str
    duration: int                       # pay cycles
    affected_priorities: tuple[Priority, ...]
    reduction: float                    # fraction, 0.0 - 1.0
    specific_envelopes: tuple[str, ...] = ()

    def __post_init__(self):
        if not 0.0 <= self.reduction <= 1.0:
            raise ValueError(
                f"Scenario reduction must be between 0 and 1, got {self.reduction}"
            )
        if self.duration < 0:
            raise ValueError(f"Scenario duration cannot be negative, got {self.duration}")


@dataclass
class ImpactedEnvelope:
    """Per-pay effect of a scenario on one envelope."""
    envelope_id: str
    name: str
    priority: Priority
    current_per_pay: float
    new_per_pay: float
    saved_per_pay: float


@dataclass
class ScenarioProjection:
    current_gap: float
    gap_after_scenario: float
    time_to_close_gap: Optional[int]  # pays; None = never at this saving rate
    buffer_after_gap: float
    on_track_after_pays: Optional[int]


@dataclass
class ScenarioResult:
    scenario: Scenario
    savings_per_pay: float
    savings_per_month: float
    total_savings_over_period: float
    impacted_envelopes: list[ImpactedEnvelope]
    projection: ScenarioProjection
    health_after_scenario: dict[Priority, list[EnvelopeHealth]] = field(default_factory=dict)


@dataclass
class ReconciliationBreakdown:
    bank_balance: float
    envelope_total: float
    cc_holding_balance: float
    adjusted_envelope_total: float
    available_cash: float


@dataclass
class ReconciliationResult:
    is_balanced: bool
    discrepancy: float        # positive = more in the bank than in envelopes
    status: str               # "balanced" | "minor difference" | "out of balance"
    breakdown: ReconciliationBreakdown
    explanation: str


@dataclass
class BalanceSummary:
    bank_total: float
    credit_card_debt: float
    envelope_total: float
    cc_holding_total: float
    available_cash: float
    unallocated: float
    net_worth: float


@dataclass
class PayPlanAllocation:
    envelope_id: Optional[str]
    envelope_name: str
    amount: float             # per occurrence of the income stream
    annual_amount: float
    per_pay_amount: float = 0.0


@dataclass
class PayPlanStream:
    id: str
    name: str
    frequency: Frequency
    amount: float
    annual_amount: float
    allocations: list[PayPlanAllocation] = field(default_factory=list)
    allocations_total: float = 0.0
    allocations_annual: float = 0.0
    surplus: float = 0.0
    surplus_annual: float = 0.0


@dataclass
class PayPlanEnvelope:
    envelope_id: str
    envelope_name: str
    annual_amount: float
    per_pay_amount: float = 0.0


@dataclass
class PayPlanTotals:
    annual_income: float = 0.0
    annual_allocated: float = 0.0
    annual_surplus: float = 0.0
    per_pay_income: float = 0.0
    per_pay_allocated: float = 0.0
    per_pay_surplus: float = 0.0


@dataclass
class PayPlan:
    primary_frequency: Frequency
    streams: list[PayPlanStream] = field(default_factory=list)
    envelopes: list[PayPlanEnvelope] = field(default_factory=list)
    totals: PayPlanTotals = field(default_factory=PayPlanTotals)


@dataclass
class RegularAllocation:
    envelope_id: str
    name: str
    priority: Priority
    amount: float


@dataclass
class SurplusAllocation:
    envelope_id: str
    name: str
    amount: float


@dataclass
class SurplusSuggestion:
    type: str                 # "top-up" | "new-goal" | "buffer"
    suggested_amount: float
    reason: str
    impact: str
    envelope_id: Optional[str] = None
    envelope_name: Optional[str] = None
    urgency_score: Optional[float] = None
    allocations: list[SurplusAllocation] = field(default_factory=list)  # split suggestions only


@dataclass
class PaydayAllocation:
    pay_amount: float
    pay_cycle: Frequency
    regular_allocations: list[RegularAllocation]
    total_regular: float
    surplus: float
    surplus_status: str       # "available" | "exact" | "shortfall"
    envelope_health: list[EnvelopeHealth]
    suggestions: list[SurplusSuggestion]
    totals_by_priority: dict[Priority, float]
    behind_count: int
    total_gap: float


@dataclass
class ContributionUpdate:
    """A recomputed contribution for one envelope."""
    envelope_id: str
    name: str
    annual_amount: float
    current_pay_cycle_amount: float
    new_pay_cycle_amount: float

    @property
    def changed(self) -> bool:
        return abs(self.new_pay_cycle_amount - self.current_pay_cycle_amount) >= 0.01


@dataclass
class LevelingBufferStatus:
    """How a leveled bill envelope compares with where it should be by now."""
    expected_balance: float
    actual_balance: float
    buffer_amount: float      # actual - expected
    status: str               # "ahead" | "on-track" | "behind" | "critical"
    percentage_of_expected: float


@dataclass
class LevelingBenefit:
    yearly_total: float
    monthly_average: float
    peak_month_amount: float
    low_month_amount: float
    peak_to_average_ratio: float
    variation_percent: float


@dataclass
class LeveledBill:
    """One leveled envelope as shown in the leveled bills view."""
    envelope_id: str
    name: str
    seasonal_pattern: Optional[str]
    per_pay: float
    estimated_this_month: float
    in_high_season: bool
    buffer: LevelingBufferStatus


@dataclass
class AccountSummary:
    account_id: str
    display_name: str
    account_name: str
    account_type: str
    current_balance: float


@dataclass
class MultiAccountReconciliation:
    """Every bank account against envelopes less CC holding plus surplus."""
    total_bank_balance: float
    accounts: list[AccountSummary]
    total_envelope_balance: float
    cc_holding_balance: float
    surplus: float
    expected_bank_balance: float
    discrepancy: float        # rounded to cents; positive = more in the bank than expected
    is_balanced: bool
    explanation: str


@dataclass
class AppliedSurplus:
    """The envelope amounts that follow from picking one surplus suggestion."""
    regular_allocations: list[RegularAllocation]
    surplus_allocations: list[SurplusAllocation]
    remaining_surplus: float


@dataclass
class DistributionAllocation:
    envelope_id: str
    name: str
    amount: float
    percent_of_needed: float


@dataclass
class InitialDistribution:
    """How an existing balance should be spread to catch envelopes up."""
    envelope_health: list[EnvelopeHealth]
    total_needed: float
    can_fully_fund: bool
    allocations: list[DistributionAllocation]
    remaining_balance: float
