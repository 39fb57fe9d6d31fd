"""Tests for frequency normalisation."""

from datetime import date

import pytest

from budget_mate.core.frequency import (
    InvalidFrequency,
    annualize,
    frequency_label,
    last_due_date,
    occurrences_per_year,
    parse_frequency,
    pay_cycles_in_months,
    pays_between,
    required_contribution,
)
from budget_mate.models.schemas import Frequency


class TestParseFrequency:
    def test_enum_passes_through(self):
        assert parse_frequency(Frequency.WEEKLY) is Frequency.WEEKLY

    def test_case_and_whitespace_insensitive(self):
        assert parse_frequency("  Monthly ") == Frequency.MONTHLY

    @pytest.mark.parametrize("alias", ["annual", "Yearly"])
    def test_annual_aliases(self, alias):
        assert parse_frequency(alias) == Frequency.ANNUALLY

    def test_once_is_none(self):
        assert parse_frequency("once") == Frequency.NONE

    @pytest.mark.parametrize("value", ["biweekly", "", None, 12])
    def test_unknown_raises(self, value):
        with pytest.raises(InvalidFrequency):
            parse_frequency(value)

    def test_invalid_frequency_is_value_error(self):
        with pytest.raises(ValueError, match="Unknown frequency"):
            parse_frequency("daily")


class TestOccurrences:
    def test_table(self):
        assert occurrences_per_year("weekly") == 52
        assert occurrences_per_year("fortnightly") == 26
        assert occurrences_per_year("monthly") == 12
        assert occurrences_per_year("quarterly") == 4
        assert occurrences_per_year("annually") == 1
        assert occurrences_per_year("none") == 0

    def test_labels(self):
        assert frequency_label("fortnightly") == "Fortnightly"
        assert frequency_label(Frequency.NONE) == "None"


class TestAnnualize:
    def test_monthly(self):
        assert annualize(1200, Frequency.MONTHLY) == 14400

    def test_none_is_zero(self):
        assert annualize(500, Frequency.NONE) == 0

    @pytest.mark.parametrize("freq", [f for f in Frequency if f != Frequency.NONE])
    def test_round_trip(self, freq):
        # Annualising then paying at the same frequency gives back the input amount
        annual = annualize(123.45, freq)
        assert required_contribution(annual, freq) == pytest.approx(123.45, abs=1e-9)


class TestRequiredContribution:
    def test_fortnightly(self):
        assert required_contribution(14400, Frequency.FORTNIGHTLY) == pytest.approx(553.846, abs=1e-3)

    def test_none_pay_frequency_is_zero(self):
        assert required_contribution(1000, Frequency.NONE) == 0.0

    def test_power_example(self):
        annual = annualize(450, "quarterly")
        assert annual == 1800
        assert round(required_contribution(annual, "fortnightly"), 2) == 69.23


class TestPaysBetween:
    def test_rounds_up(self):
        assert pays_between(date(2025, 1, 1), date(2025, 1, 16), Frequency.FORTNIGHTLY) == 2

    def test_exact_multiple(self):
        assert pays_between(date(2025, 1, 1), date(2025, 1, 15), Frequency.FORTNIGHTLY) == 1

    def test_end_before_start(self):
        assert pays_between(date(2025, 2, 1), date(2025, 1, 1), Frequency.WEEKLY) == 0

    def test_none_cycle(self):
        assert pays_between(date(2025, 1, 1), date(2025, 6, 1), Frequency.NONE) == 0


class TestLastDueDate:
    def test_weekly(self):
        assert last_due_date(date(2025, 3, 10), "weekly") == date(2025, 3, 3)

    def test_fortnightly(self):
        assert last_due_date(date(2025, 3, 10), "fortnightly") == date(2025, 2, 24)

    def test_monthly_clamps_to_month_end(self):
        assert last_due_date(date(2025, 3, 31), "monthly") == date(2025, 2, 28)

    def test_monthly_leap_year(self):
        assert last_due_date(date(2024, 3, 31), "monthly") == date(2024, 2, 29)

    def test_quarterly_crosses_year(self):
        assert last_due_date(date(2025, 2, 15), "quarterly") == date(2024, 11, 15)

    def test_annual_and_none_go_back_a_year(self):
        assert last_due_date(date(2025, 6, 1), "annually") == date(2024, 6, 1)
        assert last_due_date(date(2025, 6, 1), "none") == date(2024, 6, 1)


class TestPayCyclesInMonths:
    def test_three_months(self):
        assert pay_cycles_in_months(3, Frequency.WEEKLY) == 13
        assert pay_cycles_in_months(3, Frequency.FORTNIGHTLY) == 6
        assert pay_cycles_in_months(3, Frequency.MONTHLY) == 3

    def test_six_months_fortnightly(self):
        assert pay_cycles_in_months(6, Frequency.FORTNIGHTLY) == 13
