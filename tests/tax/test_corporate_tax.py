import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from model.ProjectionData import InvestmentReturns
from tax.CorporateTax import (adjusted_aggregate_investment_income, corporate_tax, passive_income_grind,
                              reduced_sbd_limit)
from tax.TaxYearDataProvider import TaxYearDataProvider


@pytest.fixture(scope="module")
def on_2026():
    return TaxYearDataProvider(0.02, 2028).get_tax_year_data(2026, 'ON')


def test_reduced_limit_at_100000_aaii():
    assert reduced_sbd_limit(100000) == 250000


def test_reduced_limit_below_threshold():
    assert reduced_sbd_limit(40000) == 500000


def test_reduced_limit_fully_ground():
    assert reduced_sbd_limit(150000) == 0
    assert reduced_sbd_limit(400000) == 0


def test_aaii_includes_half_of_realized_gains():
    returns = InvestmentReturns(foreign_income=10000, realized_capital_gain=20000)
    assert adjusted_aggregate_investment_income(returns) == 20000


def test_corporate_tax_small_business_rate(on_2026):
    result = corporate_tax(300000, 50000, 100000, on_2026)

    assert result.taxable_business_income == 250000
    assert result.tax_on_active == pytest.approx(250000 * 0.122)
    assert result.tax_on_passive == pytest.approx(100000 * 0.5017)
    assert result.after_tax_business_income == pytest.approx(250000 * (1 - 0.122))


def test_corporate_tax_fully_ground_uses_general_rate(on_2026):
    result = corporate_tax(300000, 50000, 150000, on_2026)

    assert result.grind.is_fully_ground
    assert result.tax_on_active == pytest.approx(250000 * 0.265)


def test_expenses_above_income_clamp_to_zero(on_2026):
    result = corporate_tax(50000, 80000, 0, on_2026)

    assert result.taxable_business_income == 0
    assert result.total_tax == 0


def test_grind_additional_tax(on_2026):
    grind = passive_income_grind(100000, 400000, on_2026)

    assert grind.sbd_reduction == 250000
    assert grind.additional_tax_from_grind == pytest.approx(250000 * (0.265 - 0.122))
    assert not grind.is_fully_ground
