"""Tests for leveled bill calculations."""

from datetime import date

import pytest

from budget_mate.core.leveling import (
    analyze_leveling_benefit,
    calculate_buffer_status,
    estimated_monthly_bill,
    is_high_season,
    leveled_bills,
    leveled_pay_cycle_amount,
    leveling_from_monthly_amounts,
    leveling_from_quick_estimate,
)
from budget_mate.models.schemas import Envelope, Frequency, InvalidAmount, LevelingData
from tests.conftest import envelope_row

POWER_BILLS = [120, 110, 130, 150, 180, 220, 250, 240, 200, 170, 140, 120]
TODAY = date(2025, 7, 10)


class TestFromMonthlyAmounts:
    def test_average_and_defaults(self):
        data = leveling_from_monthly_amounts(POWER_BILLS, today=TODAY)
        assert data.yearly_average == pytest.approx(2030 / 12)
        assert data.buffer_percent == 10.0
        assert data.estimation_type == "12-month"
        assert data.last_updated == "2025-07-10"

    def test_needs_twelve_months(self):
        with pytest.raises(ValueError, match="exactly 12"):
            leveling_from_monthly_amounts(POWER_BILLS[:11])

    def test_negative_bill_rejected(self):
        with pytest.raises(InvalidAmount):
            leveling_from_monthly_amounts([-1] + POWER_BILLS[1:])


class TestFromQuickEstimate:
    def test_winter_peak(self):
        data = leveling_from_quick_estimate(250.0, 100.0, "winter-peak", today=TODAY)
        assert data.monthly_amounts == [
            100, 100, 175, 175, 175, 250, 250, 250, 175, 175, 175, 100,
        ]
        assert data.yearly_average == 175.0
        assert data.estimation_type == "quick-estimate"
        assert data.high_season_estimate == 250.0
        assert data.low_season_estimate == 100.0

    def test_summer_peak(self):
        data = leveling_from_quick_estimate(250.0, 100.0, "summer-peak", today=TODAY)
        assert data.monthly_amounts[0] == 250.0
        assert data.monthly_amounts[6] == 100.0
        assert data.monthly_amounts[3] == 175.0

    def test_unknown_pattern(self):
        with pytest.raises(ValueError, match="seasonal pattern"):
            leveling_from_quick_estimate(250.0, 100.0, "custom")


class TestLeveledPayCycleAmount:
    def test_fortnightly_includes_buffer(self):
        data = leveling_from_monthly_amounts(POWER_BILLS, today=TODAY)
        # average 169.17 + 10% = 186.08 a month, 2233 a year, over 26 pays
        assert leveled_pay_cycle_amount(data, Frequency.FORTNIGHTLY) == pytest.approx(2233 / 26)

    def test_monthly(self):
        data = leveling_from_monthly_amounts([100] * 12, buffer_percent=0, today=TODAY)
        assert leveled_pay_cycle_amount(data, Frequency.MONTHLY) == pytest.approx(100.0)

    def test_no_pay_frequency(self):
        data = leveling_from_monthly_amounts(POWER_BILLS, today=TODAY)
        assert leveled_pay_cycle_amount(data, Frequency.NONE) == 0.0


class TestBufferStatus:
    def _flat(self, buffer_percent=10.0):
        return leveling_from_monthly_amounts([100] * 12, buffer_percent, today=TODAY)

    def test_expected_balance(self):
        # Three months in: 330 saved with buffer, 300 paid out
        status = calculate_buffer_status(self._flat(), 30.0, start_month=1, current_month=3)
        assert status.expected_balance == pytest.approx(30.0)
        assert status.buffer_amount == pytest.approx(0.0)
        assert status.status == "on-track"

    @pytest.mark.parametrize("balance,expected", [
        (40.0, "ahead"),
        (28.0, "on-track"),
        (20.0, "behind"),
        (10.0, "critical"),
    ])
    def test_bands(self, balance, expected):
        status = calculate_buffer_status(self._flat(), balance, start_month=1, current_month=3)
        assert status.status == expected

    def test_wraps_around_year_end(self):
        status = calculate_buffer_status(self._flat(), 40.0, start_month=11, current_month=2)
        assert status.expected_balance == pytest.approx(40.0)

    def test_no_expected_balance_counts_as_full(self):
        status = calculate_buffer_status(self._flat(0.0), 15.0, start_month=1, current_month=6)
        assert status.percentage_of_expected == 100.0
        assert status.status == "on-track"
        assert status.buffer_amount == pytest.approx(15.0)

    def test_bad_month(self):
        with pytest.raises(ValueError, match="between 1 and 12"):
            calculate_buffer_status(self._flat(), 0.0, start_month=13, current_month=1)


class TestSeasons:
    def test_high_season(self):
        assert is_high_season("winter-peak", 7)
        assert not is_high_season("winter-peak", 1)
        assert is_high_season("summer-peak", 1)
        assert not is_high_season("custom", 7)
        assert not is_high_season(None, 7)

    def test_estimated_bill(self):
        data = leveling_from_monthly_amounts(POWER_BILLS, today=TODAY)
        assert estimated_monthly_bill(data, 7) == 250.0


class TestLevelingBenefit:
    def test_swing(self):
        benefit = analyze_leveling_benefit(leveling_from_monthly_amounts(POWER_BILLS, today=TODAY))
        assert benefit.yearly_total == 2030.0
        assert benefit.peak_month_amount == 250.0
        assert benefit.low_month_amount == 110.0
        assert benefit.peak_to_average_ratio == pytest.approx(250 / (2030 / 12))
        assert benefit.variation_percent == pytest.approx(140 / (2030 / 12) * 100)

    def test_zero_bills(self):
        benefit = analyze_leveling_benefit(leveling_from_monthly_amounts([0] * 12, today=TODAY))
        assert benefit.peak_to_average_ratio == 0.0
        assert benefit.variation_percent == 0.0


class TestLevelingDataModel:
    def test_camel_case_json(self):
        data = LevelingData.model_validate({
            "monthlyAmounts": POWER_BILLS,
            "yearlyAverage": 169.17,
            "bufferPercent": 10,
            "estimationType": "seasonal",
            "lastUpdated": "2026-01-15",
        })
        assert data.yearly_average == 169.17
        assert data.estimation_type == "seasonal"

    def test_average_filled_in(self):
        data = LevelingData.model_validate({"monthlyAmounts": [12] * 12})
        assert data.yearly_average == 12.0
        assert data.buffer_percent == 10.0


class TestLeveledBills:
    def test_only_leveled_envelopes(self):
        envelopes = [
            Envelope(**envelope_row(
                current_amount="300",
                leveling_data={"monthlyAmounts": POWER_BILLS, "bufferPercent": 10},
                seasonal_pattern="winter-peak",
            )),
            Envelope(**envelope_row(id="env-2", name="Rent")),
        ]
        bills = leveled_bills(envelopes, Frequency.FORTNIGHTLY, today=TODAY)
        assert len(bills) == 1
        bill = bills[0]
        assert bill.name == "Power"
        assert bill.per_pay == pytest.approx(2233 / 26)
        assert bill.estimated_this_month == 250.0
        assert bill.in_high_season
        # Jan-Jul: 1302.58 saved, 1160 paid out
        assert bill.buffer.expected_balance == pytest.approx(2030 / 12 * 7 * 1.1 - 1160)
        assert bill.buffer.status == "ahead"
