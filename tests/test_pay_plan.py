"""Tests for pay plans, payday allocation and contribution recompute."""

from datetime import date

import pytest

from budget_mate.core.pay_plan import (
    apply_surplus_suggestion,
    build_pay_plan,
    detect_primary_frequency,
    initial_distribution,
    payday_allocation,
    recompute_contribution,
    recompute_contributions,
)
from budget_mate.models.results import PayPlanStream
from budget_mate.models.schemas import Envelope, Frequency, InvalidAmount, Priority
from tests.conftest import make_envelope, make_income

TODAY = date(2025, 3, 17)


class TestRecompute:
    def test_power_example(self):
        env = make_envelope(name="Power", target_amount=450.0, frequency="quarterly")
        update = recompute_contribution(env, Frequency.FORTNIGHTLY)
        assert update.annual_amount == 1800.0
        assert round(update.new_pay_cycle_amount, 2) == 69.23
        assert update.changed

    def test_unchanged_within_a_cent(self):
        env = make_envelope(
            name="Insurance", target_amount=260.0, frequency="annually", pay_cycle_amount=10.0
        )
        assert not recompute_contribution(env, Frequency.FORTNIGHTLY).changed

    def test_negative_target_rejected(self):
        env = Envelope.model_construct(
            id="env-bad", name="Bad", target_amount=-5.0, frequency=Frequency.MONTHLY
        )
        with pytest.raises(InvalidAmount):
            recompute_contribution(env, Frequency.FORTNIGHTLY)

    def test_skips_holding_and_income(self):
        envelopes = [
            make_envelope(name="Power"),
            make_envelope(name="Visa Holding", is_cc_holding=True),
            make_envelope(name="Pay", envelope_type="income"),
        ]
        updates = recompute_contributions(envelopes, Frequency.FORTNIGHTLY)
        assert [u.name for u in updates] == ["Power"]


class TestBuildPayPlan:
    def _plan(self):
        envelopes = [make_envelope(name="Power"), make_envelope(name="Food")]
        incomes = [
            make_income(
                "Salary", 2000.0, "fortnightly",
                allocations=[
                    {"envelopeId": "env-power", "amount": 100},
                    {"envelope": "food", "amount": "300"},
                ],
            ),
            make_income(
                "Side Gig", 500.0, "monthly",
                allocations=[{"envelope_id": "env-power", "amount": 50}],
            ),
        ]
        return build_pay_plan(incomes, envelopes)

    def test_no_income_gives_none(self):
        assert build_pay_plan([], [make_envelope()]) is None

    def test_primary_frequency(self):
        assert self._plan().primary_frequency == Frequency.FORTNIGHTLY

    def test_totals(self):
        t = self._plan().totals
        assert t.annual_income == 58000.0
        assert t.annual_allocated == 11000.0
        assert t.annual_surplus == 47000.0
        assert t.per_pay_income == pytest.approx(58000.0 / 26)
        assert t.per_pay_surplus == pytest.approx(47000.0 / 26)

    def test_envelopes_aggregated_across_streams(self):
        by_id = {e.envelope_id: e for e in self._plan().envelopes}
        assert by_id["env-power"].annual_amount == 3200.0
        assert by_id["env-power"].per_pay_amount == pytest.approx(3200.0 / 26)
        assert by_id["env-food"].envelope_name == "Food"
        assert by_id["env-food"].per_pay_amount == pytest.approx(300.0)

    def test_stream_surplus(self):
        salary = self._plan().streams[0]
        assert salary.allocations_total == 400.0
        assert salary.surplus == 1600.0

    def test_unmatched_allocation_kept_on_stream_only(self):
        incomes = [make_income(allocations=[{"envelope": "Holiday", "amount": 25}])]
        plan = build_pay_plan(incomes, [make_envelope()])
        assert plan.envelopes == []
        assert plan.streams[0].allocations[0].envelope_name == "Holiday"
        assert plan.streams[0].allocations[0].envelope_id is None

    def test_detect_primary_defaults_to_fortnightly(self):
        assert detect_primary_frequency([]) == Frequency.FORTNIGHTLY

    def test_detect_primary_largest_annual(self):
        streams = [
            PayPlanStream(id="a", name="A", frequency=Frequency.WEEKLY, amount=10, annual_amount=520),
            PayPlanStream(id="b", name="B", frequency=Frequency.MONTHLY, amount=100, annual_amount=1200),
        ]
        assert detect_primary_frequency(streams) == Frequency.MONTHLY


class TestPaydayAllocation:
    def _envelopes(self):
        return [
            make_envelope(name="Rent", priority="essential", pay_cycle_amount=500.0),
            make_envelope(name="Netflix", priority="discretionary", pay_cycle_amount=10.0),
            make_envelope(
                name="Car Rego",
                priority="important",
                target_amount=300.0,
                frequency="monthly",
                pay_cycle_amount=30.0,
                current_amount=50.0,
                next_payment_due="2025-03-31",
            ),
        ]

    def test_surplus_available(self):
        result = payday_allocation(1000.0, self._envelopes(), Frequency.FORTNIGHTLY, TODAY)
        assert result.total_regular == 540.0
        assert result.surplus == 460.0
        assert result.surplus_status == "available"
        assert result.totals_by_priority[Priority.ESSENTIAL] == 500.0
        assert result.totals_by_priority[Priority.IMPORTANT] == 30.0
        assert result.totals_by_priority[Priority.DISCRETIONARY] == 10.0
        assert result.behind_count == 1
        assert result.total_gap == pytest.approx(150.0)

    def test_suggestions(self):
        result = payday_allocation(1000.0, self._envelopes(), Frequency.FORTNIGHTLY, TODAY)
        assert [s.type for s in result.suggestions] == ["top-up", "new-goal", "buffer"]
        top_up = result.suggestions[0]
        assert top_up.envelope_name == "Car Rego"
        assert top_up.suggested_amount == pytest.approx(150.0)
        assert result.suggestions[1].suggested_amount == pytest.approx(310.0)

    def test_exact(self):
        result = payday_allocation(540.0, self._envelopes(), Frequency.FORTNIGHTLY, TODAY)
        assert result.surplus_status == "exact"
        assert result.suggestions == []

    def test_shortfall(self):
        result = payday_allocation(400.0, self._envelopes(), Frequency.FORTNIGHTLY, TODAY)
        assert result.surplus_status == "shortfall"
        assert result.surplus == -140.0
        assert result.suggestions == []


def _two_behind():
    # Rates: should have 400, has 200 (gap 200). Rego: should have 200, has 50 (gap 150).
    return [
        make_envelope(
            name="Rates",
            target_amount=600.0,
            frequency="monthly",
            current_amount=200.0,
            next_payment_due="2025-03-31",
        ),
        make_envelope(
            name="Rego",
            target_amount=300.0,
            frequency="monthly",
            pay_cycle_amount=30.0,
            current_amount=50.0,
            next_payment_due="2025-03-31",
        ),
        make_envelope(name="Gift", target_amount=50.0, frequency="none"),
    ]


class TestSplitSuggestion:
    def test_split_names_each_envelope(self):
        result = payday_allocation(130.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        assert result.surplus == 100.0
        assert [s.type for s in result.suggestions] == ["top-up", "top-up"]
        split = result.suggestions[1]
        assert split.envelope_id is None
        assert {a.name: a.amount for a in split.allocations} == {"Rates": 57.14, "Rego": 42.86}

    def test_targeted_top_up_has_no_split(self):
        result = payday_allocation(130.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        assert result.suggestions[0].envelope_name == "Rates"
        assert result.suggestions[0].allocations == []


class TestApplySurplusSuggestion:
    def test_targeted_top_up(self):
        allocation = payday_allocation(130.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        applied = apply_surplus_suggestion(allocation, 0)
        assert [(a.name, a.amount) for a in applied.surplus_allocations] == [("Rates", 100.0)]
        assert applied.remaining_surplus == pytest.approx(0.0)
        assert applied.regular_allocations == allocation.regular_allocations

    def test_split_uses_whole_surplus(self):
        allocation = payday_allocation(130.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        applied = apply_surplus_suggestion(allocation, 1)
        amounts = {a.name: a.amount for a in applied.surplus_allocations}
        assert amounts == {"Rates": 57.14, "Rego": 42.86}
        assert sum(amounts.values()) == pytest.approx(100.0)
        assert applied.remaining_surplus == 0.0

    def test_goal_and_buffer_leave_surplus(self):
        allocation = payday_allocation(1000.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        assert allocation.suggestions[-1].type == "buffer"
        applied = apply_surplus_suggestion(allocation, len(allocation.suggestions) - 1)
        assert applied.surplus_allocations == []
        assert applied.remaining_surplus == allocation.surplus

    @pytest.mark.parametrize("index", [5, -1])
    def test_missing_suggestion_leaves_surplus(self, index):
        allocation = payday_allocation(130.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        applied = apply_surplus_suggestion(allocation, index)
        assert applied.surplus_allocations == []
        assert applied.remaining_surplus == 100.0


class TestInitialDistribution:
    def test_fully_funded(self):
        result = initial_distribution(500.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        assert result.can_fully_fund
        assert result.total_needed == pytest.approx(350.0)
        assert {a.name: a.amount for a in result.allocations} == pytest.approx(
            {"Rates": 200.0, "Rego": 150.0, "Gift": 0.0}
        )
        assert all(a.percent_of_needed == 100.0 for a in result.allocations)
        assert result.remaining_balance == pytest.approx(150.0)

    def test_proportional_when_short(self):
        result = initial_distribution(175.0, _two_behind(), Frequency.FORTNIGHTLY, TODAY)
        assert not result.can_fully_fund
        by_name = {a.name: a for a in result.allocations}
        assert by_name["Rates"].amount == 100.0
        assert by_name["Rego"].amount == 75.0
        assert by_name["Rates"].percent_of_needed == pytest.approx(50.0)
        assert by_name["Gift"].amount == 0.0
        assert by_name["Gift"].percent_of_needed == 100.0
        assert result.remaining_balance == 0.0

    def test_nothing_needed(self):
        result = initial_distribution(0.0, [make_envelope(name="Gift", frequency="none")],
                                      Frequency.FORTNIGHTLY, TODAY)
        assert result.can_fully_fund
        assert result.total_needed == 0.0
        assert result.remaining_balance == 0.0
