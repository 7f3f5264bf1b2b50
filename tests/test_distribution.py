"""
Tests for the distribution rules.

Each obligation type moves money differently between the owner's
settlement (owner_impact) and the agency's books (agency_impact).
"""

import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from inmodash.services.distribution import (
    calculate_commission,
    calculate_distribution,
    calculate_status,
    clamp_day,
    month_bounds,
    months_between,
    normalize_period,
    owner_share_of_payment,
    parse_month,
    to_money,
    validate_manual_distribution,
)


# =============================================================================
# Rent
# =============================================================================

class TestRentDistribution:

    def test_percentage_commission(self):
        result = calculate_distribution("rent", Decimal("100000"), "tenant", "percentage", Decimal("10"))

        assert result.commission_amount == Decimal("10000.00")
        assert result.owner_amount == Decimal("90000.00")
        assert result.owner_impact == Decimal("90000.00")
        assert result.agency_impact == Decimal("10000.00")

    def test_fixed_commission(self):
        result = calculate_distribution("rent", Decimal("100000"), "tenant", "fixed", Decimal("5000"))

        assert result.commission_amount == Decimal("5000.00")
        assert result.owner_impact == Decimal("95000.00")

    def test_fixed_commission_above_rent_is_rejected(self):
        with pytest.raises(ValueError):
            calculate_distribution("rent", Decimal("1000"), "tenant", "fixed", Decimal("1500"))

    def test_no_commission_configured(self):
        result = calculate_distribution("rent", Decimal("50000"))

        assert result.commission_amount == Decimal("0.00")
        assert result.owner_impact == Decimal("50000.00")
        assert result.agency_impact == Decimal("0.00")

    def test_zero_commission_value_is_ignored(self):
        result = calculate_distribution("rent", Decimal("50000"), "tenant", "percentage", Decimal("0"))
        assert result.commission_amount == Decimal("0.00")

    def test_commission_rounds_to_cents(self):
        assert calculate_commission(Decimal("333.33"), "percentage", Decimal("7")) == Decimal("23.33")

    def test_unknown_commission_type(self):
        with pytest.raises(ValueError):
            calculate_commission(Decimal("100"), "per_unit", Decimal("3"))

    def test_impacts_add_up_to_amount(self):
        result = calculate_distribution("rent", Decimal("87345.67"), "tenant", "percentage", Decimal("8.5"))
        assert result.owner_impact + result.agency_impact == Decimal("87345.67")


# =============================================================================
# Other obligation types
# =============================================================================

class TestNonRentDistribution:

    def test_expenses_are_tracking_only(self):
        result = calculate_distribution("expenses", Decimal("20000"), "owner")
        assert result.owner_impact == Decimal("0.00")
        assert result.agency_impact == Decimal("0.00")

    @pytest.mark.parametrize("paid_by,owner_impact,agency_impact", [
        ("tenant", "0.00", "0.00"),
        ("owner", "-3000.00", "0.00"),
        ("agency", "0.00", "-3000.00"),
    ])
    def test_service_depends_on_payer(self, paid_by, owner_impact, agency_impact):
        result = calculate_distribution("service", Decimal("3000"), paid_by)
        assert result.owner_impact == Decimal(owner_impact)
        assert result.agency_impact == Decimal(agency_impact)

    @pytest.mark.parametrize("paid_by", ["tenant", "owner", "agency"])
    def test_tax_is_always_deducted_from_owner(self, paid_by):
        result = calculate_distribution("tax", Decimal("4500"), paid_by)
        assert result.owner_impact == Decimal("-4500.00")
        assert result.agency_impact == Decimal("0.00")

    def test_insurance_only_affects_owner_when_owner_pays(self):
        assert calculate_distribution("insurance", Decimal("800"), "owner").owner_impact == Decimal("-800.00")
        assert calculate_distribution("insurance", Decimal("800"), "tenant").owner_impact == Decimal("0.00")
        assert calculate_distribution("insurance", Decimal("800"), "agency").agency_impact == Decimal("0.00")

    def test_maintenance_paid_by_agency_is_agency_expense(self):
        result = calculate_distribution("maintenance", Decimal("12000"), "agency")
        assert result.agency_impact == Decimal("-12000.00")
        assert result.owner_impact == Decimal("0.00")

    def test_debt_defaults_to_maintenance_rule(self):
        result = calculate_distribution("debt", Decimal("7000"), "owner")
        assert result.owner_impact == Decimal("-7000.00")

    def test_paid_by_defaults_to_tenant(self):
        result = calculate_distribution("maintenance", Decimal("100"), None)
        assert result.owner_impact == Decimal("0.00")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            calculate_distribution("tax", Decimal("-1"), "owner")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            calculate_distribution("parking", Decimal("10"), "owner")

    def test_unknown_payer_rejected(self):
        with pytest.raises(ValueError):
            calculate_distribution("service", Decimal("10"), "neighbour")


class TestManualDistribution:

    def test_accepts_impacts_within_amount(self):
        owner, agency = validate_manual_distribution(Decimal("1000"), Decimal("-600"), Decimal("400"))
        assert owner == Decimal("-600.00")
        assert agency == Decimal("400.00")

    def test_missing_impact_is_zero(self):
        owner, agency = validate_manual_distribution(Decimal("1000"), Decimal("250"), None)
        assert agency == Decimal("0.00")

    def test_rejects_impacts_above_amount(self):
        with pytest.raises(ValueError):
            validate_manual_distribution(Decimal("1000"), Decimal("-800"), Decimal("-300"))


# =============================================================================
# Status & periods
# =============================================================================

class TestStatus:

    def test_fully_paid(self):
        assert calculate_status(Decimal("100"), Decimal("100"), date(2020, 1, 1), date(2026, 1, 1)) == "paid"

    def test_partially_paid_even_when_late(self):
        assert calculate_status(Decimal("100"), Decimal("40"), date(2020, 1, 1), date(2026, 1, 1)) == "partial"

    def test_unpaid_past_due(self):
        assert calculate_status(Decimal("100"), Decimal("0"), date(2026, 1, 9), date(2026, 1, 10)) == "overdue"

    def test_unpaid_due_today_is_pending(self):
        assert calculate_status(Decimal("100"), Decimal("0"), date(2026, 1, 10), date(2026, 1, 10)) == "pending"

    def test_missing_paid_amount(self):
        assert calculate_status(Decimal("100"), None, date(2026, 2, 1), date(2026, 1, 10)) == "pending"


class TestPeriods:

    def test_normalize_date(self):
        assert normalize_period(date(2026, 3, 17)) == date(2026, 3, 1)

    def test_normalize_month_string(self):
        assert normalize_period("2026-03") == date(2026, 3, 1)

    def test_normalize_iso_string(self):
        assert normalize_period("2026-03-17T12:00:00Z") == date(2026, 3, 1)

    @pytest.mark.parametrize("value", ["2026-13", "2026/03", "march", "", "2026-3"])
    def test_parse_month_rejects_malformed(self, value):
        with pytest.raises(ValueError, match="YYYY-MM"):
            parse_month(value)

    def test_month_bounds_leap_year(self):
        assert month_bounds(date(2028, 2, 1)) == (date(2028, 2, 1), date(2028, 2, 29))

    def test_clamp_day_short_month(self):
        assert clamp_day(2026, 2, 31) == date(2026, 2, 28)
        assert clamp_day(2026, 4, 31) == date(2026, 4, 30)
        assert clamp_day(2026, 1, 31) == date(2026, 1, 31)

    def test_months_between(self):
        assert months_between(date(2025, 11, 15), date(2026, 2, 1)) == 3
        assert months_between(date(2026, 2, 1), date(2026, 2, 28)) == 0


def test_owner_share_of_payment_is_proportional():
    obligation = SimpleNamespace(amount=Decimal("1000.00"), owner_amount=Decimal("900.00"))
    assert owner_share_of_payment(obligation, Decimal("500")) == Decimal("450.00")


def test_owner_share_without_owner_amount():
    obligation = SimpleNamespace(amount=Decimal("1000.00"), owner_amount=Decimal("0"))
    assert owner_share_of_payment(obligation, Decimal("500")) == Decimal("0.00")


def test_to_money():
    assert to_money(None) == Decimal("0.00")
    assert to_money(10.005) == Decimal("10.01")
    assert to_money("3") == Decimal("3.00")
